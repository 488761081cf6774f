"""Refresh the version string and size badges of the download page.

The download page is maintained by hand apart from four fragments that
track the current library release:

- ``(version X.Y.Z)`` parentheticals, optionally with ``-SNAPSHOT``;
- ``/X.Y.Z/`` path segments of CDN links;
- ``<span id="development-size">...</span>``;
- ``<span id="production-size">...</span>``.

Every occurrence of each is replaced. The page is only written once
complete metadata is available; a failed extraction leaves it untouched.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from sitebuild.config import SiteConfig

from . import fs_utils
from .metadata import DownloadMetadata, MetadataExtractor
from .rewriting import RewriteRule, rewrite

logger = logging.getLogger(__name__)

VERSION_PARENTHETICAL = re.compile(r"\(version [0-9]+\.[0-9]+\.[0-9]+(-SNAPSHOT)?\)")
VERSION_PATH_SEGMENT = re.compile(r"/[0-9]+\.[0-9]+\.[0-9]+(-SNAPSHOT)?/")
DEVELOPMENT_SIZE_SPAN = re.compile(r'<span id="development-size">([\w\s]*)</span>')
PRODUCTION_SIZE_SPAN = re.compile(r'<span id="production-size">([\w\s]*)</span>')


def _fixed(text: str):
    return lambda _m: text


def download_rules(metadata: DownloadMetadata) -> list[RewriteRule]:
    """Rules injecting ``metadata`` into the download page."""
    return [
        RewriteRule(VERSION_PARENTHETICAL, _fixed(f"(version {metadata.version})")),
        RewriteRule(VERSION_PATH_SEGMENT, _fixed(f"/{metadata.version}/")),
        RewriteRule(
            DEVELOPMENT_SIZE_SPAN,
            _fixed(f'<span id="development-size">{metadata.development_size}</span>'),
        ),
        RewriteRule(
            PRODUCTION_SIZE_SPAN,
            _fixed(f'<span id="production-size">{metadata.production_size}</span>'),
        ),
    ]


def update_download_page(content: str, metadata: DownloadMetadata) -> str:
    """Return ``content`` with version and sizes replaced.

    Parameters
    ----------
    content : str
        Current download page text.
    metadata : DownloadMetadata
        Values for this release.

    Returns
    -------
    str
        The updated page text.

    Examples
    --------
    >>> meta = DownloadMetadata("3.4.0", "1000 kB", "100 kB")
    >>> update_download_page("math.js (version 3.3.0) at /3.3.0/math.js", meta)
    'math.js (version 3.4.0) at /3.4.0/math.js'
    """
    return rewrite(content, download_rules(metadata))


class DownloadPageUpdater:
    """Extract metadata from the site artifacts and rewrite the download page."""

    def __init__(self, config: SiteConfig, extractor: MetadataExtractor | None = None) -> None:
        self.config = config
        self.extractor = extractor or MetadataExtractor(config)

    async def run(self) -> Path:
        """Update the page in place.

        Raises
        ------
        MetadataIncompleteError
            If version or a size could not be determined; nothing is written.
        FileOperationError
            If the page cannot be read or written.
        """
        metadata = await self.extractor.extract()
        page = self.config.download_page
        content = await fs_utils.read_text(page)
        await fs_utils.write_text(page, update_download_page(content, metadata))
        logger.info(
            "Updated %s to version %s (%s / %s)",
            page.name,
            metadata.version,
            metadata.development_size,
            metadata.production_size,
        )
        return page


__all__ = ["DownloadPageUpdater", "download_rules", "update_download_page"]
