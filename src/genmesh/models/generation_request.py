"""GenerationRequest - normalized user submission for one prediction."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModelType(str, Enum):
    """Discriminant selecting the generative model and its input schema."""

    DYNAMIC_GLB = "dynamic_glb"
    PLY = "ply"


class ImageUpload(BaseModel):
    """Inline binary image read from a form file field."""

    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: str = "application/octet-stream"
    data: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


class GenerationRequest(BaseModel):
    """Typed input for a single submission.

    Optional fields left as None are omitted from the model input so the provider
    applies its own defaults.
    """

    model_config = ConfigDict(frozen=True)

    model_type: ModelType
    prompt: str | None = None
    negative_prompt: str | None = None
    guidance_scale: float | None = None
    num_steps: int | None = None
    max_steps: int | None = None
    seed: int | None = None
    use_fast_configs: bool = False
    avatar: bool = False
    image_url: str | None = None
    image_upload: ImageUpload | None = None

    @property
    def needs_upload(self) -> bool:
        return self.image_upload is not None

    def to_model_input(self, image_url: str | None = None) -> dict[str, Any]:
        """Build the provider input record for this request's model type.

        Args:
            image_url: URL of the relayed upload (overrides ``self.image_url``)

        Returns:
            Input dict containing only the keys the model accepts and that were provided
        """
        if self.model_type == ModelType.DYNAMIC_GLB:
            model_input: dict[str, Any] = {
                "prompt": self.prompt,
                "image": image_url or self.image_url,
            }
            if self.use_fast_configs:
                model_input["use_fast_configs"] = True
            optional = {
                "guidance_scale": self.guidance_scale,
                "num_steps": self.num_steps,
                "seed": self.seed,
            }
        else:
            model_input = {"prompt": self.prompt}
            if self.negative_prompt:
                model_input["negative_prompt"] = self.negative_prompt
            optional = {
                "guidance_scale": self.guidance_scale,
                "max_steps": self.max_steps,
            }
            if self.avatar:
                optional["avatar"] = True
            optional["seed"] = self.seed

        model_input.update(optional)
        return {key: value for key, value in model_input.items() if value is not None}
