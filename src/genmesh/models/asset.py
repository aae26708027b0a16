"""Asset entities - relayed uploads and resolved output assets."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UploadedAsset(BaseModel):
    """Object written to storage for the provider to read through a signed URL."""

    model_config = ConfigDict(frozen=True)

    key: str
    url: str = Field(repr=False)  # embeds credentials
    content_type: str


class AssetFormat(str, Enum):
    GLTF = "gltf"
    PLY = "ply"
    OBJ = "obj"
    ARCHIVE = "archive"


class ResolvedAsset(BaseModel):
    """Loadable 3D asset for a succeeded job.

    ``data`` holds the bytes when they were materialized in memory (always for
    archive entries, for direct formats only when a download was requested).
    """

    model_config = ConfigDict(frozen=True)

    format: AssetFormat
    filename: str
    media_type: str
    source_url: str
    data: bytes | None = Field(default=None, repr=False)
