"""Importers copying upstream artifacts, docs and changelog into the site.

Each importer owns a disjoint set of destinations:

ArtifactSynchronizer
    ``dist/*`` into the library asset directory.
DocsImporter
    ``docs/**/*.md`` into the site docs directory, links rewritten.
ChangelogImporter
    ``HISTORY.md`` into ``history.md`` at the site root.
"""

from __future__ import annotations

from .artifacts import ArtifactSynchronizer
from .changelog import ChangelogImporter
from .docs import DOCS_RULES, DocsImporter, transform_doc

__all__ = [
    "ArtifactSynchronizer",
    "ChangelogImporter",
    "DOCS_RULES",
    "DocsImporter",
    "transform_doc",
]
