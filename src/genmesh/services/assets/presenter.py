"""Output asset resolution for succeeded jobs.

Selects a loader by the output URL suffix and unpacks ZIP outputs into an
in-memory asset.
"""

import io
import posixpath
import zipfile
from urllib.parse import unquote, urlparse

import httpx
import structlog

from genmesh.models.asset import AssetFormat, ResolvedAsset
from genmesh.models.job import Job, JobStatus
from genmesh.services.exceptions import (
    AssetError,
    AssetNotFoundInArchiveError,
    TransportError,
    UnsupportedFormatError,
)

logger = structlog.get_logger()

ARCHIVE_TARGET_SUFFIX = ".glb"

SUFFIX_FORMATS = {
    ".glb": AssetFormat.GLTF,
    ".gltf": AssetFormat.GLTF,
    ".ply": AssetFormat.PLY,
    ".obj": AssetFormat.OBJ,
    ".zip": AssetFormat.ARCHIVE,
}

MEDIA_TYPES = {
    ".glb": "model/gltf-binary",
    ".gltf": "model/gltf+json",
    ".ply": "application/octet-stream",
    ".obj": "model/obj",
    ".zip": "application/zip",
}


def _url_filename(url: str) -> str:
    return posixpath.basename(unquote(urlparse(url).path)) or "asset"


def _suffix(name: str) -> str:
    return posixpath.splitext(name)[1].lower()


def detect_format(url: str) -> AssetFormat:
    """Map an output URL to its asset format by path suffix (query string ignored).

    Raises:
        UnsupportedFormatError: If no loader handles the suffix
    """
    fmt = SUFFIX_FORMATS.get(_suffix(_url_filename(url)))
    if fmt is None:
        raise UnsupportedFormatError()
    return fmt


def extract_from_archive(
    archive: bytes, suffix: str = ARCHIVE_TARGET_SUFFIX
) -> tuple[str, bytes]:
    """Return name and bytes of the first archive entry ending with ``suffix``.

    Args:
        archive: ZIP file contents
        suffix: Entry name suffix to look for

    Returns:
        Tuple of (entry name, entry bytes)

    Raises:
        AssetNotFoundInArchiveError: No matching entry
        AssetError: Data is not a readable ZIP archive
    """
    suffix = suffix.lower()
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            for info in zf.infolist():
                if not info.is_dir() and info.filename.lower().endswith(suffix):
                    return info.filename, zf.read(info)
    except zipfile.BadZipFile as e:
        raise AssetError(f"Output archive is not a valid ZIP file: {e}") from e

    raise AssetNotFoundInArchiveError(f"No {suffix} file found in the .zip archive.")


async def fetch_bytes(url: str, client: httpx.AsyncClient) -> bytes:
    """Download an output asset.

    Raises:
        TransportError: Network failure or non-2xx response
    """
    try:
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()
        return response.content
    except httpx.HTTPError as e:
        raise TransportError(f"Failed to fetch output asset: {e}") from e


async def resolve_asset(
    job: Job,
    *,
    client: httpx.AsyncClient | None = None,
    download: bool = False,
    timeout: float = 60.0,
) -> ResolvedAsset:
    """Resolve the first output of a succeeded job into a loadable asset.

    Args:
        job: Terminal job
        client: HTTP client for downloads (a short-lived one is created if omitted)
        download: Also fetch bytes for direct formats
        timeout: Download timeout when no client is supplied

    Returns:
        ResolvedAsset; ``data`` is set for archives and when ``download`` is True

    Raises:
        AssetError: Job has no output to present
        UnsupportedFormatError: Output suffix has no loader
        AssetNotFoundInArchiveError: Archive has no matching entry
        TransportError: Download failed
    """
    if job.status != JobStatus.SUCCEEDED or not job.output:
        raise AssetError(f"Prediction {job.id} has no output to display ({job.status.value})")

    source_url = job.output[0]
    fmt = detect_format(source_url)
    filename = _url_filename(source_url)
    media_type = MEDIA_TYPES[_suffix(filename)]

    if fmt != AssetFormat.ARCHIVE and not download:
        return ResolvedAsset(
            format=fmt,
            filename=filename,
            media_type=media_type,
            source_url=source_url,
        )

    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as owned_client:
            data = await fetch_bytes(source_url, owned_client)
    else:
        data = await fetch_bytes(source_url, client)

    if fmt == AssetFormat.ARCHIVE:
        entry_name, data = extract_from_archive(data)
        filename = posixpath.basename(entry_name)
        fmt = SUFFIX_FORMATS[ARCHIVE_TARGET_SUFFIX]
        media_type = MEDIA_TYPES[ARCHIVE_TARGET_SUFFIX]
        logger.info(
            "asset.extracted",
            prediction_id=job.id,
            entry=entry_name,
            size_bytes=len(data),
        )

    return ResolvedAsset(
        format=fmt,
        filename=filename,
        media_type=media_type,
        source_url=source_url,
        data=data,
    )
