"""Prediction submission: resolve model version, relay input image, create the job."""

import time
from typing import Protocol

import structlog

from genmesh.core.config import Settings
from genmesh.models.asset import UploadedAsset
from genmesh.models.generation_request import GenerationRequest, ImageUpload, ModelType
from genmesh.models.job import Job
from genmesh.services.exceptions import ConfigurationError

logger = structlog.get_logger()


class PredictionGateway(Protocol):
    async def create_prediction(self, version: str, model_input: dict) -> Job: ...

    async def get_prediction(self, prediction_id: str) -> Job: ...


class AssetRelay(Protocol):
    async def upload(self, image: ImageUpload | None) -> UploadedAsset: ...


def resolve_model_version(model_type: ModelType, settings: Settings) -> str:
    """Look up the pinned model version for a discriminant.

    Raises:
        ConfigurationError: If no version is configured for the model type
    """
    version = settings.model_versions.get(model_type)
    if not version:
        raise ConfigurationError(
            f"No model version configured for '{model_type.value}' "
            f"(set {model_type.value.upper()}_MODEL_VERSION)"
        )
    return version


async def submit_generation(
    request: GenerationRequest,
    gateway: PredictionGateway,
    relay: AssetRelay,
    settings: Settings,
) -> Job:
    """Create a single prediction for a normalized request.

    Workflow:
    1. Resolve pinned model version (fails before any network call)
    2. Relay inline image to object storage, if the request carries one
    3. Build the model input and create the prediction

    There is no idempotency key: calling this twice creates two jobs.

    Args:
        request: Normalized generation request
        gateway: Inference provider gateway
        relay: Upload relay for inline images
        settings: Application settings (model version mapping)

    Returns:
        Newly created Job

    Raises:
        ConfigurationError: Model version or storage not configured
        UploadError: Image relay failed
        SubmissionRejectedError: Provider rejected the prediction
        TransportError: Provider unreachable or response malformed
    """
    start_time = time.time()
    version = resolve_model_version(request.model_type, settings)

    image_url = None
    if request.needs_upload:
        uploaded = await relay.upload(request.image_upload)
        image_url = uploaded.url

    model_input = request.to_model_input(image_url=image_url)
    job = await gateway.create_prediction(version, model_input)

    logger.info(
        "prediction.submitted",
        prediction_id=job.id,
        model_type=request.model_type.value,
        version=version,
        status=job.status.value,
        input_keys=sorted(model_input),
        duration_seconds=time.time() - start_time,
    )
    return job
