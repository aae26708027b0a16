"""Replicate API gateway for prediction creation and lookup with error classification."""

import asyncio
from typing import Any

import httpx
import replicate
import structlog
from replicate.exceptions import ReplicateError as ReplicateAPIError

from genmesh.models.job import Job
from genmesh.services.exceptions import (
    ConfigurationError,
    GenerationError,
    PredictionNotFoundError,
    ProviderError,
    SubmissionRejectedError,
    TransportError,
)

logger = structlog.get_logger()


def _api_error_parts(exception: Exception) -> tuple[int | None, str]:
    status = getattr(exception, "status", None)
    message = getattr(exception, "detail", None) or getattr(exception, "title", None)
    return (status if isinstance(status, int) else None), str(message or exception)


def classify_error(exception: Exception, *, lookup: bool = False) -> GenerationError:
    """Classify a provider or network exception into the service error taxonomy.

    Args:
        exception: Original exception from the Replicate SDK or network layer
        lookup: True when the failing call fetched an existing prediction

    Returns:
        Classified GenerationError subclass instance

    Classification rules:
        - Provider API 5xx or "service unavailable" → TransportError
        - Provider API 404 or "not found" on lookup → PredictionNotFoundError
        - Other provider API errors (422 input, 402 billing, 429 rate limit,
          401/403 auth) → SubmissionRejectedError on create, ProviderError on lookup
        - Timeout / connection errors → TransportError
        - Anything else (malformed responses) → TransportError
    """
    status, message = _api_error_parts(exception)
    message_lower = message.lower()

    if isinstance(exception, ReplicateAPIError):
        if (status is not None and status >= 500) or "service unavailable" in message_lower:
            return TransportError(f"Service unavailable: {message}")

        if lookup:
            if status == 404 or "not found" in message_lower:
                return PredictionNotFoundError()
            return ProviderError(message)

        return SubmissionRejectedError(message)

    if isinstance(exception, (httpx.TimeoutException, TimeoutError)) or "timeout" in message_lower:
        return TransportError(f"Network timeout: {message}")

    if isinstance(exception, (httpx.TransportError, ConnectionError, OSError)):
        return TransportError(f"Connection error: {message}")

    return TransportError(f"Unexpected provider response: {message}")


class ReplicateGateway:
    """Prediction client for the Replicate inference provider.

    The Replicate SDK is synchronous, so every call runs in a worker thread.
    """

    def __init__(self, api_token: str, client: Any | None = None):
        """Initialize gateway.

        Args:
            api_token: Replicate API token (from REPLICATE_API_TOKEN env var)
            client: Pre-built SDK client (tests inject a fake)

        Raises:
            ConfigurationError: If no API token is configured
        """
        if not api_token:
            raise ConfigurationError("Missing REPLICATE_API_TOKEN")
        self._client = client if client is not None else replicate.Client(api_token=api_token)

    async def create_prediction(self, version: str, model_input: dict[str, Any]) -> Job:
        """Create one prediction. Each call creates a new remote job.

        Args:
            version: Pinned model version id
            model_input: Model input record

        Returns:
            Job in the state reported by the provider (usually queued)

        Raises:
            SubmissionRejectedError: Provider rejected the request or reported an error
            TransportError: Network failure or malformed response
        """
        try:
            prediction = await asyncio.to_thread(
                self._client.predictions.create, version=version, input=model_input
            )
        except Exception as e:
            classified = classify_error(e)
            logger.error(
                "prediction.create_failed",
                version=version,
                error=str(e),
                error_type=type(e).__name__,
                classified_as=type(classified).__name__,
            )
            raise classified from e

        error = getattr(prediction, "error", None)
        if error:
            raise SubmissionRejectedError(
                str(error.get("message", error) if isinstance(error, dict) else error)
            )

        try:
            return Job.from_provider(prediction)
        except ValueError as e:
            raise TransportError(f"Malformed prediction response: {e}") from e

    async def get_prediction(self, prediction_id: str) -> Job:
        """Fetch the current state of a prediction.

        Raises:
            PredictionNotFoundError: Prediction id unknown to the provider
            ProviderError: Provider returned another error payload
            TransportError: Network failure or malformed response
        """
        try:
            prediction = await asyncio.to_thread(self._client.predictions.get, prediction_id)
        except Exception as e:
            raise classify_error(e, lookup=True) from e

        if prediction is None:
            raise PredictionNotFoundError()

        try:
            return Job.from_provider(prediction)
        except ValueError as e:
            raise TransportError(f"Malformed prediction response: {e}") from e
