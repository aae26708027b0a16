"""Tests for the status polling loop."""

import pytest

from conftest import make_job
from genmesh.models.job import JobStatus
from genmesh.services.exceptions import (
    PollTimeoutError,
    PollTransportError,
    PredictionNotFoundError,
    TransportError,
)
from genmesh.services.generation.poller import poll_until_terminal


@pytest.mark.asyncio
async def test_polls_until_succeeded(fake_gateway):
    fake_gateway.responses["pred-1"] = [
        make_job("pred-1", "starting"),
        make_job("pred-1", "processing"),
        make_job("pred-1", "succeeded", output=["https://cdn.example.com/a.glb"]),
    ]
    seen = []

    job = await poll_until_terminal(fake_gateway, "pred-1", interval=0, on_update=seen.append)

    assert job.status == JobStatus.SUCCEEDED
    assert job.output == ["https://cdn.example.com/a.glb"]
    assert [j.status for j in seen] == [JobStatus.QUEUED, JobStatus.RUNNING, JobStatus.SUCCEEDED]
    assert fake_gateway.lookups == ["pred-1"] * 3


@pytest.mark.asyncio
async def test_failed_is_terminal(fake_gateway):
    fake_gateway.responses["pred-1"] = [
        make_job("pred-1", "processing"),
        make_job("pred-1", "failed", error="Out of memory"),
    ]

    job = await poll_until_terminal(fake_gateway, "pred-1", interval=0)

    assert job.status == JobStatus.FAILED
    assert job.error == "Out of memory"


@pytest.mark.asyncio
async def test_already_terminal_fetches_once(fake_gateway):
    fake_gateway.responses["pred-1"] = [
        make_job("pred-1", "succeeded", output="https://cdn.example.com/a.ply")
    ]

    job = await poll_until_terminal(fake_gateway, "pred-1", interval=5)

    assert job.output == ["https://cdn.example.com/a.ply"]
    assert len(fake_gateway.lookups) == 1


@pytest.mark.asyncio
async def test_transport_failure_stops_polling(fake_gateway):
    fake_gateway.responses["pred-1"] = [
        make_job("pred-1", "processing"),
        TransportError("Connection error: reset by peer"),
        make_job("pred-1", "succeeded", output=["https://cdn.example.com/a.glb"]),
    ]

    with pytest.raises(PollTransportError):
        await poll_until_terminal(fake_gateway, "pred-1", interval=0)

    assert len(fake_gateway.lookups) == 2


@pytest.mark.asyncio
async def test_not_found_propagates(fake_gateway):
    fake_gateway.responses["gone"] = [PredictionNotFoundError()]

    with pytest.raises(PredictionNotFoundError):
        await poll_until_terminal(fake_gateway, "gone", interval=0)


@pytest.mark.asyncio
async def test_max_wait_deadline(fake_gateway):
    fake_gateway.responses["pred-1"] = [make_job("pred-1", "processing")]

    with pytest.raises(PollTimeoutError):
        await poll_until_terminal(fake_gateway, "pred-1", interval=0.01, max_wait=0.05)

    assert len(fake_gateway.lookups) >= 1
