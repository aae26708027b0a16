"""Prediction pipeline: input normalization, submission and polling."""

from genmesh.services.generation.normalizer import normalize_request
from genmesh.services.generation.poller import poll_until_terminal
from genmesh.services.generation.replicate_client import ReplicateGateway
from genmesh.services.generation.submitter import submit_generation

__all__ = [
    "normalize_request",
    "poll_until_terminal",
    "ReplicateGateway",
    "submit_generation",
]
