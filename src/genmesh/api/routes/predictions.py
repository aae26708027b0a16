"""Prediction API endpoints.

This module implements the generation relay endpoints:
- POST /predictions - Validate form input, relay the image and create one prediction
- GET /predictions/{prediction_id} - Current state of a prediction (polled by the page)
- GET /predictions/{prediction_id}/asset - Resolved output asset for the 3D viewer

Errors raised by the pipeline are GenerationError subclasses and are rendered by
the application exception handler as ``{"error": ...}`` or ``{"detail": ...}``.
"""

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.datastructures import UploadFile

from genmesh.api.dependencies import get_gateway, get_http_client, get_settings, get_upload_relay
from genmesh.core.config import Settings
from genmesh.models.generation_request import ImageUpload
from genmesh.models.job import Job, JobStatus
from genmesh.services.assets.presenter import resolve_asset
from genmesh.services.exceptions import (
    ConfigurationError,
    PredictionNotFoundError,
    ProviderError,
    TransportError,
    UploadError,
    ValidationError,
)
from genmesh.services.generation.normalizer import FormValue, normalize_request
from genmesh.services.generation.replicate_client import ReplicateGateway
from genmesh.services.generation.submitter import submit_generation
from genmesh.services.storage.upload_relay import UploadRelay

logger = structlog.get_logger()
router = APIRouter(prefix="/predictions", tags=["predictions"])

CREATE_FAILED_MESSAGE = "An unexpected error occurred during prediction creation."
LOOKUP_FAILED_MESSAGE = "An error occurred while fetching the prediction."


async def read_form_fields(request: Request) -> dict[str, FormValue]:
    """Read multipart/urlencoded form into plain values, loading file fields into memory."""
    form = await request.form()
    fields: dict[str, FormValue] = {}
    for name, value in form.multi_items():
        if name in fields:
            continue  # first value wins for repeated fields
        if isinstance(value, UploadFile):
            fields[name] = ImageUpload(
                filename=value.filename or "upload",
                content_type=value.content_type or "application/octet-stream",
                data=await value.read(),
            )
        else:
            fields[name] = value
    await form.close()
    return fields


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Job)
async def create_prediction(
    request: Request,
    gateway: ReplicateGateway = Depends(get_gateway),
    relay: UploadRelay = Depends(get_upload_relay),
    settings: Settings = Depends(get_settings),
):
    """Create a prediction from multipart form input.

    Form fields:
        model_type: "dynamic_glb" or "ply"
        dynamic_glb: prompt, image_type ("upload" | "url"), image | image_url,
            use_fast_configs, guidance_scale, num_steps, seed
        ply: prompt, negative_prompt, guidance_scale, max_steps, avatar, seed

    Returns:
        201: Job body
        400: {"error": ...} for invalid form input
        500: {"error": ...} for configuration/upload failures, {"detail": ...} otherwise
    """
    try:
        fields = await read_form_fields(request)
        generation_request = normalize_request(fields)
        return await submit_generation(generation_request, gateway, relay, settings)

    except (ValidationError, ConfigurationError, UploadError, ProviderError):
        raise

    except TransportError as e:
        logger.error("prediction.create_transport_error", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": CREATE_FAILED_MESSAGE},
        )

    except Exception as e:
        logger.exception("prediction.create_unexpected_error", error_type=type(e).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": CREATE_FAILED_MESSAGE},
        )


@router.get("/{prediction_id}", response_model=Job)
async def get_prediction(
    prediction_id: str,
    gateway: ReplicateGateway = Depends(get_gateway),
):
    """Fetch the current state of a prediction.

    Returns:
        200: Job body (failed jobs carry ``error``)
        404: {"detail": "Prediction not found"}
        500: {"detail": "An error occurred while fetching the prediction."}
    """
    try:
        return await gateway.get_prediction(prediction_id)

    except PredictionNotFoundError:
        logger.warning("prediction.not_found", prediction_id=prediction_id)
        raise

    except (TransportError, ProviderError) as e:
        logger.error(
            "prediction.lookup_failed",
            prediction_id=prediction_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": LOOKUP_FAILED_MESSAGE},
        )


@router.get("/{prediction_id}/asset")
async def get_prediction_asset(
    prediction_id: str,
    gateway: ReplicateGateway = Depends(get_gateway),
    client=Depends(get_http_client),
):
    """Serve the loadable 3D asset of a succeeded prediction.

    Archive outputs are unpacked and the contained model is returned directly;
    direct 3D outputs redirect to the provider URL.

    Returns:
        200: Extracted model bytes
        307: Redirect to a direct model URL
        409: {"detail": ...} if the prediction has not succeeded
        422: {"detail": ...} if the output cannot be displayed
    """
    job = await gateway.get_prediction(prediction_id)

    if job.status != JobStatus.SUCCEEDED:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": f"Prediction is {job.status.value}, no asset available yet"},
        )

    asset = await resolve_asset(job, client=client)

    if asset.data is None:
        return RedirectResponse(asset.source_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

    return Response(
        content=asset.data,
        media_type=asset.media_type,
        headers={"Content-Disposition": f'inline; filename="{asset.filename}"'},
    )
