"""Service error hierarchy for the generation pipeline.

Every error carries the HTTP status and response body key used when it reaches
the API layer:
- ValidationError: Bad or missing form fields (400, user-correctable)
- ConfigurationError: Missing credentials or model versions (500, operator-correctable)
- TransportError: Network or provider unreachable (500, not retried)
- ProviderError: Provider returned an explicit error payload (500, message verbatim)
- AssetError: Output asset cannot be resolved (422, job itself is unaffected)
"""


class GenerationError(Exception):
    """Base exception for all pipeline errors."""

    status_code: int = 500
    body_key: str = "detail"
    default_message: str = "Generation error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(GenerationError):
    """Form input that the user has to correct."""

    status_code = 400
    body_key = "error"
    default_message = "Invalid request"


class InvalidModelTypeError(ValidationError):
    """Model discriminant missing or not supported."""

    default_message = "Invalid model type"


class MissingAssetError(ValidationError):
    """Upload requested but no (or an empty) file was attached."""

    default_message = "No image file provided"


class ConfigurationError(GenerationError):
    """Credentials or pinned model versions are not configured."""

    status_code = 500
    body_key = "error"
    default_message = "Service is not configured"


class TransportError(GenerationError):
    """Network failure or unusable response from an external service."""

    default_message = "An unexpected error occurred during prediction creation."


class UploadError(TransportError):
    """Object storage write or URL signing failed."""

    body_key = "error"
    default_message = "Error uploading image"


class PollTransportError(TransportError):
    """Status fetch failed while polling; polling stops."""

    default_message = "An error occurred while fetching the prediction."


class PollTimeoutError(TransportError):
    """Job did not reach a terminal state within the configured wait."""

    status_code = 504
    default_message = "Timed out waiting for the prediction to finish."


class ProviderError(GenerationError):
    """Provider answered with an explicit error payload."""

    default_message = "The inference provider returned an error."


class SubmissionRejectedError(ProviderError):
    """Provider refused to create the prediction (invalid input, quota, auth)."""


class PredictionNotFoundError(ProviderError):
    """Prediction id unknown to the provider."""

    status_code = 404
    default_message = "Prediction not found"


class AssetError(GenerationError):
    """Output asset cannot be resolved for display."""

    status_code = 422
    default_message = "Output asset could not be resolved"


class AssetNotFoundInArchiveError(AssetError):
    """Archive output has no entry with the expected suffix."""

    default_message = "No .glb file found in the .zip archive."


class UnsupportedFormatError(AssetError):
    """Output URL suffix has no matching loader."""

    default_message = "Invalid output format."
