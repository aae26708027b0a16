"""Pydantic models for generation requests, jobs and assets."""

from genmesh.models.asset import AssetFormat, ResolvedAsset, UploadedAsset
from genmesh.models.generation_request import GenerationRequest, ImageUpload, ModelType
from genmesh.models.job import Job, JobStatus

__all__ = [
    "AssetFormat",
    "GenerationRequest",
    "ImageUpload",
    "Job",
    "JobStatus",
    "ModelType",
    "ResolvedAsset",
    "UploadedAsset",
]
