"""pytest fixtures for genmesh tests.

Provides:
- settings: Fully configured Settings for the test environment
- fake_gateway: In-process stand-in for the Replicate gateway
- fake_relay: In-process stand-in for the object storage relay
- test_client: httpx AsyncClient bound to the app with fakes injected
"""

from types import SimpleNamespace
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from genmesh.api.dependencies import get_gateway, get_settings, get_upload_relay
from genmesh.app import app
from genmesh.core.config import Settings
from genmesh.models.asset import UploadedAsset
from genmesh.models.generation_request import ImageUpload
from genmesh.models.job import Job

GLB_VERSION = "glb-version-0001"


def make_prediction(
    prediction_id: str = "pred-123",
    status: str = "starting",
    output: Any = None,
    error: Any = None,
    version: str = "v1",
) -> SimpleNamespace:
    """Build an object shaped like a Replicate SDK Prediction."""
    return SimpleNamespace(
        id=prediction_id,
        status=status,
        output=output,
        error=error,
        version=version,
        logs="",
        created_at="2024-05-01T12:00:00.000000Z",
        completed_at=None,
    )


def make_job(prediction_id: str = "pred-123", status: str = "starting", **kwargs) -> Job:
    return Job.from_provider(make_prediction(prediction_id, status, **kwargs))


class FakeGateway:
    """Records created predictions and replays scripted lookups."""

    def __init__(self):
        self.created: list[dict[str, Any]] = []
        self.lookups: list[str] = []
        self.create_error: Exception | None = None
        self.responses: dict[str, list[Job | Exception]] = {}

    async def create_prediction(self, version: str, model_input: dict) -> Job:
        self.created.append({"version": version, "input": model_input})
        if self.create_error is not None:
            raise self.create_error
        return make_job(f"pred-{len(self.created)}", "starting", version=version)

    async def get_prediction(self, prediction_id: str) -> Job:
        self.lookups.append(prediction_id)
        script = self.responses[prediction_id]
        result = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeRelay:
    """Records uploads and returns a signed-looking URL."""

    def __init__(self):
        self.uploads: list[ImageUpload] = []
        self.error: Exception | None = None

    async def upload(self, image: ImageUpload | None) -> UploadedAsset:
        if self.error is not None:
            raise self.error
        assert image is not None
        self.uploads.append(image)
        key = f"uploads/abc123/{image.filename}"
        return UploadedAsset(
            key=key,
            url=f"https://bucket.example.com/{key}?X-Amz-Signature=sig",
            content_type=image.content_type,
        )


@pytest.fixture
def settings() -> Settings:
    """Settings with every outbound credential configured."""
    return Settings(  # type: ignore[call-arg]
        APP_ENV="test",
        REPLICATE_API_TOKEN="r8_test_token",
        DYNAMIC_GLB_MODEL_VERSION=GLB_VERSION,
        STORAGE_BUCKET="genmesh-uploads",
        STORAGE_ACCESS_KEY="access",
        STORAGE_SECRET_KEY="secret",
        POLL_INTERVAL_SECONDS=0.01,
    )


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def fake_relay() -> FakeRelay:
    return FakeRelay()


@pytest_asyncio.fixture
async def test_client(settings, fake_gateway, fake_relay):
    """Provide AsyncClient for testing API endpoints with fake external services."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_upload_relay] = lambda: fake_relay

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
