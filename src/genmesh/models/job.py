"""Job entity - snapshot of a prediction held by the inference provider."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class JobStatus(str, Enum):
    """Job lifecycle: queued -> running -> succeeded | failed."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Replicate prediction statuses
PROVIDER_STATUS_MAP = {
    "starting": JobStatus.QUEUED,
    "processing": JobStatus.RUNNING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.FAILED,
}

TERMINAL_STATUSES = frozenset({JobStatus.SUCCEEDED, JobStatus.FAILED})


def normalize_output(output: Any) -> list[str]:
    """Flatten provider output into an ordered list of asset URLs.

    Models return a single URL, a list of URLs, or a mapping of named URLs
    depending on their output schema.
    """
    if output is None:
        return []
    if isinstance(output, str):
        return [output] if output else []
    if isinstance(output, dict):
        return [str(v) for v in output.values() if isinstance(v, str) and v]
    if isinstance(output, (list, tuple)):
        return [str(item) for item in output if item]
    # FileOutput and similar URL wrappers
    url = getattr(output, "url", None)
    return [str(url)] if url else []


def _error_message(error: Any) -> str | None:
    if not error:
        return None
    if isinstance(error, dict):
        return str(error.get("detail") or error.get("message") or error)
    return str(error)


class Job(BaseModel):
    """Immutable view of a provider prediction.

    A new Job is built from every status fetch; local code never mutates one.
    ``output`` is set only for succeeded jobs and ``error`` only for failed jobs.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    status: JobStatus
    provider_status: str
    version: str | None = None
    output: list[str] | None = None
    error: str | None = None
    logs: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_provider(cls, prediction: Any) -> "Job":
        """Build a Job from a provider prediction object.

        Args:
            prediction: Prediction returned by the Replicate SDK (attribute access)

        Returns:
            Job with status mapped onto the local lifecycle

        Raises:
            ValueError: If the prediction has no id or an unrecognized status
        """
        job_id = getattr(prediction, "id", None)
        if not job_id:
            raise ValueError("Prediction has no id")

        provider_status = str(getattr(prediction, "status", "") or "")
        if provider_status not in PROVIDER_STATUS_MAP:
            raise ValueError(f"Unrecognized prediction status: {provider_status!r}")
        status = PROVIDER_STATUS_MAP[provider_status]

        output = None
        error = None
        if status == JobStatus.SUCCEEDED:
            output = normalize_output(getattr(prediction, "output", None))
            if not output:
                status = JobStatus.FAILED
                output = None
                error = "Prediction succeeded without output"
        elif status == JobStatus.FAILED:
            error = _error_message(getattr(prediction, "error", None))
            if not error:
                error = (
                    "Prediction was canceled" if provider_status == "canceled" else "Prediction failed"
                )

        return cls(
            id=str(job_id),
            status=status,
            provider_status=provider_status,
            version=getattr(prediction, "version", None),
            output=output,
            error=error,
            logs=getattr(prediction, "logs", None),
            created_at=getattr(prediction, "created_at", None),
            completed_at=getattr(prediction, "completed_at", None),
        )
