"""Copy the upstream distribution files into the site's library directory."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from sitebuild.config import SiteConfig

from .. import fs_utils

logger = logging.getLogger(__name__)


class ArtifactSynchronizer:
    """Mirror ``<dependency>/dist/*`` into ``<site>/js/lib``.

    Files keep their names and are overwritten unconditionally, so running
    twice against an unchanged upstream leaves byte-identical output.
    """

    def __init__(self, config: SiteConfig) -> None:
        self.config = config

    async def run(self) -> list[Path]:
        """Copy every matching artifact.

        Returns
        -------
        list[Path]
            Destination paths, in source discovery order.
        """
        sources = await fs_utils.glob_files(
            self.config.dependency_root, self.config.lib_src_glob
        )
        if not sources:
            logger.warning(
                f"No artifacts matched {self.config.lib_src_glob} in {self.config.dependency_root}"
            )
        dest_dir = self.config.lib_dest_dir
        copied = await asyncio.gather(
            *(fs_utils.copy_file(src, dest_dir / src.name) for src in sources)
        )
        logger.info("Copied %d artifacts to %s", len(copied), dest_dir)
        return list(copied)
