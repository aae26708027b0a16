"""Form input normalization for generation requests.

Turns raw form fields (strings and file blobs addressed by name) into a typed
GenerationRequest for the selected model type.
"""

import math
import re
from typing import Mapping

from genmesh.models.generation_request import GenerationRequest, ImageUpload, ModelType
from genmesh.services.exceptions import (
    InvalidModelTypeError,
    MissingAssetError,
    ValidationError,
)

FormValue = str | ImageUpload

# Leading-number grammars of parseFloat and radix-less parseInt
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"^\s*([+-]?)(?:0[xX]([0-9a-fA-F]*)|(\d+))")

CHECKBOX_ON = "on"


def _text(fields: Mapping[str, FormValue], name: str) -> str | None:
    value = fields.get(name)
    if isinstance(value, str):
        return value
    return None


def parse_optional_float(value: str | None) -> float | None:
    """Parse the leading decimal number of a form value.

    Returns None for missing, empty or non-numeric values so the field is omitted
    rather than sent as zero or NaN.
    """
    if not value:
        return None
    match = _FLOAT_PREFIX.match(value)
    if not match:
        return None
    number = float(match.group(1))
    if not math.isfinite(number):
        return None
    return number


def parse_optional_int(value: str | None) -> int | None:
    """Parse the leading integer of a form value ("7.9" -> 7, "0x10" -> 16), or None."""
    if not value:
        return None
    match = _INT_PREFIX.match(value)
    if not match:
        return None
    sign, hex_digits, digits = match.groups()
    if hex_digits is not None:
        if not hex_digits:
            return None
        number = int(hex_digits, 16)
    else:
        number = int(digits)
    return -number if sign == "-" else number


def parse_checkbox(value: str | None) -> bool:
    return value == CHECKBOX_ON


def parse_model_type(value: str | None) -> ModelType:
    """Resolve the model discriminant.

    Raises:
        InvalidModelTypeError: If the value is missing or not a supported model type
    """
    try:
        return ModelType(value)
    except ValueError:
        raise InvalidModelTypeError() from None


def _image_upload(fields: Mapping[str, FormValue]) -> ImageUpload:
    image = fields.get("image")
    if not isinstance(image, ImageUpload) or image.size == 0:
        raise MissingAssetError()
    return image


def normalize_request(fields: Mapping[str, FormValue]) -> GenerationRequest:
    """Build a GenerationRequest from raw form fields.

    Args:
        fields: Form values by name; file fields are ImageUpload instances

    Returns:
        Request holding only the fields the selected model accepts

    Raises:
        InvalidModelTypeError: Unknown or missing ``model_type``
        MissingAssetError: ``image_type=upload`` without a non-empty ``image`` file
        ValidationError: ``image_type=url`` without an ``image_url``
    """
    model_type = parse_model_type(_text(fields, "model_type"))
    prompt = _text(fields, "prompt")
    guidance_scale = parse_optional_float(_text(fields, "guidance_scale"))
    seed = parse_optional_int(_text(fields, "seed"))

    if model_type == ModelType.DYNAMIC_GLB:
        image_type = _text(fields, "image_type")
        image_url = None
        image_upload = None

        if image_type == "url":
            image_url = (_text(fields, "image_url") or "").strip()
            if not image_url:
                raise ValidationError("No image URL provided")
        elif image_type == "upload":
            image_upload = _image_upload(fields)

        return GenerationRequest(
            model_type=model_type,
            prompt=prompt,
            guidance_scale=guidance_scale,
            num_steps=parse_optional_int(_text(fields, "num_steps")),
            seed=seed,
            use_fast_configs=parse_checkbox(_text(fields, "use_fast_configs")),
            image_url=image_url,
            image_upload=image_upload,
        )

    return GenerationRequest(
        model_type=model_type,
        prompt=prompt,
        negative_prompt=_text(fields, "negative_prompt") or None,
        guidance_scale=guidance_scale,
        max_steps=parse_optional_int(_text(fields, "max_steps")),
        seed=seed,
        avatar=parse_checkbox(_text(fields, "avatar")),
    )
