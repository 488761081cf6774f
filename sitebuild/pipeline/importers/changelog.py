"""Publish the upstream changelog at the site root."""

from __future__ import annotations

import logging
from pathlib import Path

from sitebuild.config import SiteConfig

from .. import fs_utils
from ..rewriting import prepend_header

logger = logging.getLogger(__name__)


class ChangelogImporter:
    """Copy ``HISTORY.md`` to ``<site>/history.md`` with the layout header.

    The destination name is always lower-case, whatever the casing of the
    upstream file.
    """

    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    async def run(self) -> Path:
        content = await fs_utils.read_text(self.config.changelog_src, errors="replace")
        destination = self.config.changelog_dest_path
        await fs_utils.write_text(
            destination, prepend_header(content, self.config.layout_header)
        )
        logger.info("Wrote changelog to %s", destination)
        return destination
