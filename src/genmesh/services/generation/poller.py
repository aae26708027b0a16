"""Status polling for submitted predictions."""

import asyncio
import time
from typing import Callable

import structlog

from genmesh.models.job import Job
from genmesh.services.exceptions import PollTimeoutError, PollTransportError, TransportError
from genmesh.services.generation.submitter import PredictionGateway

logger = structlog.get_logger()

DEFAULT_POLL_INTERVAL = 1.0


async def poll_until_terminal(
    gateway: PredictionGateway,
    job_id: str,
    *,
    interval: float = DEFAULT_POLL_INTERVAL,
    on_update: Callable[[Job], None] | None = None,
    max_wait: float | None = None,
) -> Job:
    """Fetch a job on a fixed interval until it succeeds or fails.

    The first fetch happens immediately. There is no backoff, jitter or retry;
    without ``max_wait`` the loop runs until a terminal state or until the
    calling task is cancelled.

    Args:
        gateway: Inference provider gateway
        job_id: Prediction id returned by submission
        interval: Seconds between fetches
        on_update: Called with every fetched Job (including the terminal one)
        max_wait: Optional deadline in seconds

    Returns:
        Terminal Job (succeeded or failed)

    Raises:
        PollTransportError: A status fetch failed; polling stops
        PollTimeoutError: ``max_wait`` elapsed before a terminal state
        ProviderError: Provider reported an error for the lookup (e.g. not found)
    """
    started = time.monotonic()
    attempt = 0

    while True:
        attempt += 1
        try:
            job = await gateway.get_prediction(job_id)
        except TransportError as e:
            logger.error("prediction.poll_failed", prediction_id=job_id, attempt=attempt, error=str(e))
            raise PollTransportError(str(e)) from e

        logger.debug("prediction.poll", prediction_id=job_id, attempt=attempt, status=job.status.value)
        if on_update is not None:
            on_update(job)

        if job.is_terminal:
            logger.info(
                "prediction.finished",
                prediction_id=job_id,
                status=job.status.value,
                attempts=attempt,
                duration_seconds=time.monotonic() - started,
            )
            return job

        if max_wait is not None and time.monotonic() - started + interval > max_wait:
            raise PollTimeoutError(
                f"Prediction {job_id} still {job.status.value} after {max_wait:.0f}s"
            )

        await asyncio.sleep(interval)
