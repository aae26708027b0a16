"""FastAPI dependencies for settings and external service clients."""

from typing import AsyncGenerator

import httpx
from fastapi import Depends

from genmesh.core.config import Settings
from genmesh.services.generation.replicate_client import ReplicateGateway
from genmesh.services.storage.upload_relay import UploadRelay


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance loaded from environment variables.
    """
    return Settings()  # type: ignore[call-arg]  # Pydantic loads from env vars


def get_gateway(settings: Settings = Depends(get_settings)) -> ReplicateGateway:
    """Get the inference provider gateway.

    Raises ConfigurationError (rendered as 500) when REPLICATE_API_TOKEN is unset,
    before the request body is read or any network call is made.
    """
    return ReplicateGateway(settings.replicate_api_token)


def get_upload_relay(settings: Settings = Depends(get_settings)) -> UploadRelay:
    """Get the object storage relay (storage client is created on first upload)."""
    return UploadRelay(settings)


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Yield a request-scoped HTTP client for downloading output assets."""
    async with httpx.AsyncClient(timeout=settings.asset_fetch_timeout_seconds) as client:
        yield client
