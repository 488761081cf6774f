"""Version and size metadata of the published library artifacts.

The download page shows the library version, the size of the development
build and the gzipped size of the production (minified) build. This module
derives those three values from the artifacts copied into the site.

The three reads are independent and run concurrently; a failure in one of
them does not prevent the others from being attempted and logged. Only
when all three succeed is a :class:`DownloadMetadata` returned.

Notes
-----
Sizes are rounded to the nearest kilobyte with halves rounding up, the way
the published download page has always displayed them. Python's built-in
``round`` (banker's rounding) would change some displayed values.
"""

from __future__ import annotations

import asyncio
import gzip
import logging
import math
import re
import zlib
from dataclasses import dataclass
from pathlib import Path

from sitebuild.config import GZIP_COMPRESSION_LEVEL, SiteConfig
from sitebuild.exceptions import (
    AppError,
    CompressionError,
    MetadataIncompleteError,
    VersionNotFoundError,
)

from . import fs_utils

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"@version\s*([\w.-]+)", re.IGNORECASE)


@dataclass(frozen=True)
class DownloadMetadata:
    """Values injected into the download page for one pipeline run."""

    version: str
    development_size: str
    production_size: str


def format_size(num_bytes: int) -> str:
    """Render a byte count as whole kilobytes.

    Examples
    --------
    >>> format_size(102400)
    '100 kB'
    >>> format_size(512)
    '1 kB'
    >>> format_size(511)
    '0 kB'
    """
    return f"{math.floor(num_bytes / 1024 + 0.5)} kB"


def gzip_size(data: bytes) -> int:
    """Return the length of ``data`` after gzip compression.

    The gzip header timestamp is pinned to zero so the result only depends
    on the input bytes.

    Raises
    ------
    CompressionError
        If the codec fails.
    """
    try:
        compressed = gzip.compress(data, compresslevel=GZIP_COMPRESSION_LEVEL, mtime=0)
    except (zlib.error, ValueError, OverflowError, MemoryError) as error:
        raise CompressionError(
            f"gzip compression failed: {error}", context={"input_bytes": len(data)}
        ) from error
    return len(compressed)


def extract_version(content: str) -> str:
    """Return the first ``@version`` token found in ``content``.

    Raises
    ------
    VersionNotFoundError
        If ``content`` has no ``@version`` tag.

    Examples
    --------
    >>> extract_version("/** @version 3.4.0 */")
    '3.4.0'
    >>> extract_version("@version 4.0.0-SNAPSHOT")
    '4.0.0-SNAPSHOT'
    """
    match = VERSION_PATTERN.search(content)
    if match is None:
        raise VersionNotFoundError("No @version tag found in artifact")
    return match.group(1)


async def development_size(path: Path) -> str:
    """Size of the unminified artifact at ``path``."""
    data = await fs_utils.read_bytes(path)
    return format_size(len(data))


async def production_size(path: Path) -> str:
    """Gzipped size of the minified artifact at ``path``."""
    data = await fs_utils.read_bytes(path)
    return format_size(await asyncio.to_thread(gzip_size, data))


async def embedded_version(path: Path) -> str:
    """Version tag embedded in the artifact at ``path``."""
    data = await fs_utils.read_bytes(path)
    try:
        return extract_version(data.decode("utf-8", errors="replace"))
    except VersionNotFoundError as error:
        error.context["path"] = str(path)
        raise


async def extract_metadata(artifact_path: Path, minified_path: Path) -> DownloadMetadata:
    """Compute the download metadata of a pair of artifacts.

    Parameters
    ----------
    artifact_path : Path
        The development (unminified) build.
    minified_path : Path
        The production (minified) build, also carrying the version tag.

    Returns
    -------
    DownloadMetadata
        Version and both sizes.

    Raises
    ------
    MetadataIncompleteError
        If any of the three values could not be determined. The exception is
        chained from the first underlying error and lists every missing
        field in ``context["missing"]``.
    """
    fields = ("development_size", "production_size", "version")
    results = await asyncio.gather(
        development_size(artifact_path),
        production_size(minified_path),
        embedded_version(minified_path),
        return_exceptions=True,
    )
    values: dict[str, str] = {}
    errors: dict[str, BaseException] = {}
    for name, result in zip(fields, results):
        if isinstance(result, BaseException):
            if not isinstance(result, (AppError, OSError)):
                raise result
            errors[name] = result
            logger.error("%s: %s", name.replace("_", " "), result)
        else:
            values[name] = result
            logger.info("%s: %s", name.replace("_", " "), result)

    if errors:
        first = next(iter(errors.values()))
        raise MetadataIncompleteError(
            "Failed to determine " + ", ".join(errors),
            context={
                "missing": list(errors),
                "errors": {name: str(err) for name, err in errors.items()},
            },
        ) from first
    return DownloadMetadata(
        version=values["version"],
        development_size=values["development_size"],
        production_size=values["production_size"],
    )


class MetadataExtractor:
    """Extract download metadata from the artifacts in the site library dir."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    async def extract(self) -> DownloadMetadata:
        return await extract_metadata(
            self.config.development_artifact_path,
            self.config.production_artifact_path,
        )


__all__ = [
    "DownloadMetadata",
    "MetadataExtractor",
    "development_size",
    "embedded_version",
    "extract_metadata",
    "extract_version",
    "format_size",
    "gzip_size",
    "production_size",
]
