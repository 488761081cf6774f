"""Publish the upstream examples as site pages.

The publisher runs three strictly sequential phases:

1. **clear** the destination examples directory,
2. **copy** every upstream example into it, pointing embedded
   ``<script src=".../dist/math.js">`` references at the site's own copy of
   the library,
3. **generate** one markdown page next to every example script and
   browser example, plus an ``index.md`` listing them.

Generation reads what the copy phase wrote, so each phase only starts once
the previous one has completed.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from sitebuild.config import (
    EXAMPLE_PAGE_SUFFIX,
    EXAMPLE_URL_SUFFIX,
    EXAMPLES_INDEX_FILENAME,
    SiteConfig,
)

from .. import fs_utils
from ..rewriting import RewriteRule, rewrite
from ..templating import render

logger = logging.getLogger(__name__)


def script_path_rule(artifact: str, site_path: str) -> RewriteRule:
    """Rule pointing ``src="<anything>dist/<artifact>"`` at ``site_path``.

    The match never leaves the attribute value.

    Examples
    --------
    >>> script_path_rule("math.js", "/js/lib/math.js").apply('<script src="../../dist/math.js">')
    '<script src="/js/lib/math.js">'
    """
    pattern = re.compile(r'src="[^"]*dist/' + re.escape(artifact) + '"')
    replacement = f'src="{site_path}"'
    return RewriteRule(pattern, lambda _m: replacement)


def example_rules(config: SiteConfig) -> list[RewriteRule]:
    lib_url = "/" + Path(config.lib_dest).as_posix().strip("/")
    return [
        script_path_rule(config.development_artifact, f"{lib_url}/{config.development_artifact}"),
        script_path_rule(config.production_artifact, f"{lib_url}/{config.production_artifact}"),
    ]


def derive_title(path: Path) -> str:
    """Human title of an example file.

    Examples
    --------
    >>> derive_title(Path("basic_usage.js"))
    'Basic usage'
    >>> derive_title(Path("parser.js"))
    'Parser'
    """
    stem = path.stem
    stem = re.sub(r"^\w", lambda m: m.group(0).upper(), stem)
    return stem.replace("_", " ")


@dataclass(frozen=True)
class IndexEntry:
    """One bullet of the examples index."""

    title: str
    url: str


@dataclass(frozen=True)
class ExampleFile:
    """A runnable example discovered in the published examples tree.

    Attributes
    ----------
    path : Path
        Location of the copied example.
    title : str
        Derived with :func:`derive_title`.
    content_type : str
        File extension without the dot, used to tag the code fence.
    code : str
        Verbatim source text.
    """

    path: Path
    title: str
    content_type: str
    code: str

    @classmethod
    def from_source(cls, path: Path, code: str) -> ExampleFile:
        return cls(
            path=path,
            title=derive_title(path),
            content_type=path.suffix[1:],
            code=code,
        )

    @property
    def page_path(self) -> Path:
        return self.path.with_name(self.path.name + EXAMPLE_PAGE_SUFFIX)

    def render_page(self, header: str) -> str:
        return render(
            "example_page",
            {
                "header": header,
                "title": self.title,
                "url": self.path.name,
                "type": self.content_type,
                "code": self.code,
            },
        )

    def index_entry(self, root: Path) -> IndexEntry:
        url = self.path.relative_to(root).as_posix() + EXAMPLE_URL_SUFFIX
        return IndexEntry(title=self.title, url=url)


def render_index(
    files: Sequence[IndexEntry], browser_files: Sequence[IndexEntry], header: str
) -> str:
    """Render the examples index over both ordered entry lists."""
    return render(
        "index",
        {"header": header, "files": list(files), "browserFiles": list(browser_files)},
    )


class ExamplePublisher:
    """Clear, copy and generate the site examples directory."""

    def __init__(self, config: SiteConfig) -> None:
        self.config = config
        self.rules = example_rules(config)

    @property
    def destination(self) -> Path:
        return self.config.examples_dest_dir

    async def clear(self) -> None:
        await fs_utils.remove_tree(self.destination, self.config.site_root)

    async def _copy_one(self, source: Path) -> Path:
        target = self.destination / source.relative_to(self.config.examples_src_root)
        data = await fs_utils.read_bytes(source)
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug(f"Copying binary example {source.name} unchanged")
            await fs_utils.write_bytes(target, data)
        else:
            await fs_utils.write_text(target, rewrite(text, self.rules))
        return target

    async def copy(self) -> list[Path]:
        """Copy every upstream example, rewriting library script paths."""
        sources = await fs_utils.glob_files(self.config.examples_src_root, "**/*")
        copied = await asyncio.gather(*(self._copy_one(src) for src in sources))
        logger.info("Copied %d example files to %s", len(copied), self.destination)
        return list(copied)

    async def _generate_page(self, path: Path) -> IndexEntry:
        example = ExampleFile.from_source(
            path, await fs_utils.read_text(path, errors="replace")
        )
        await fs_utils.write_text(example.page_path, example.render_page(self.config.layout_header))
        return example.index_entry(self.destination)

    async def generate_group(self, pattern: str) -> list[IndexEntry]:
        """Write a page for every example matching ``pattern``.

        Returns
        -------
        list[IndexEntry]
            Entries in discovery order; empty when nothing matches.
        """
        paths = await fs_utils.glob_files(self.destination, pattern)
        return list(await asyncio.gather(*(self._generate_page(p) for p in paths)))

    async def generate(self) -> Path:
        """Generate all example pages and the index; returns the index path."""
        groups = [await self.generate_group(pattern) for pattern in self.config.example_groups]
        files = groups[0] if groups else []
        browser_files = groups[1] if len(groups) > 1 else []
        index_path = self.destination / EXAMPLES_INDEX_FILENAME
        await fs_utils.write_text(
            index_path, render_index(files, browser_files, self.config.layout_header)
        )
        logger.info(
            "Generated %d example pages and %d browser example pages",
            len(files),
            len(browser_files),
        )
        return index_path

    async def run(self) -> Path:
        await self.clear()
        await self.copy()
        return await self.generate()


__all__ = [
    "ExampleFile",
    "ExamplePublisher",
    "IndexEntry",
    "derive_title",
    "example_rules",
    "render_index",
    "script_path_rule",
]
