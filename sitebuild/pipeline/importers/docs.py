"""Import the upstream markdown documentation into the site.

Each document gets its intra-doc links pointed at the generated ``.html``
pages and the layout header prepended before it is written to the mirrored
location under the site's docs directory.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from sitebuild.config import CHANGELOG_FILENAME, SiteConfig

from .. import fs_utils
from ..rewriting import RewriteRule, literal, prepend_header, rewrite

logger = logging.getLogger(__name__)

# Relative links such as ``(./guide.md)`` or ``(reference/functions.md)``.
# Links containing ``:`` (any URL scheme) never match.
RELATIVE_MD_LINK = RewriteRule(re.compile(r"(\([\w./]*)\.md(\))"), r"\1.html\2")


def changelog_link_rule(changelog_filename: str) -> RewriteRule:
    """Rule turning ``HISTORY.md`` into ``history.html``.

    Examples
    --------
    >>> changelog_link_rule("HISTORY.md").apply("see HISTORY.md")
    'see history.html'
    """
    stem = Path(changelog_filename).stem
    return literal(changelog_filename, f"{stem.lower()}.html")


def docs_rules(changelog_filename: str = CHANGELOG_FILENAME) -> list[RewriteRule]:
    return [changelog_link_rule(changelog_filename), RELATIVE_MD_LINK]


DOCS_RULES: list[RewriteRule] = docs_rules()


def transform_doc(content: str, header: str, rules: list[RewriteRule] = DOCS_RULES) -> str:
    """Rewrite the links of one markdown document and add the layout header.

    Examples
    --------
    >>> transform_doc("[a](./guide.md)", "")
    '[a](./guide.html)'
    >>> transform_doc("[a](http://x.com/readme.md)", "")
    '[a](http://x.com/readme.md)'
    """
    return prepend_header(rewrite(content, rules), header)


class DocsImporter:
    """Copy and transform ``<dependency>/docs/**/*.md`` into ``<site>/docs``."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config
        self.rules = docs_rules(config.changelog_filename)

    async def import_doc(self, source: Path) -> Path:
        src_root = self.config.docs_src_root
        destination = self.config.docs_dest_dir / source.relative_to(src_root)
        content = await fs_utils.read_text(source, errors="replace")
        await fs_utils.write_text(
            destination, transform_doc(content, self.config.layout_header, self.rules)
        )
        return destination

    async def run(self) -> list[Path]:
        """Import every markdown document; returns the written paths."""
        sources = await fs_utils.glob_files(
            self.config.docs_src_root, self.config.docs_src_glob
        )
        written = [await self.import_doc(source) for source in sources]
        logger.info("Imported %d docs into %s", len(written), self.config.docs_dest_dir)
        return written
