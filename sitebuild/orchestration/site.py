"""The site build task graph.

Wires the pipeline components into a :class:`TaskGraph`::

    update ─┬─ lib ──┬─ version
            ├────────┘
            ├─ docs
            ├─ examples
            └─ history
    default = lib + docs + examples + history + version

``version`` reads the artifacts copied by ``lib``, so it requires both.
"""

from __future__ import annotations

from sitebuild.config import SiteConfig
from sitebuild.pipeline.download import DownloadPageUpdater
from sitebuild.pipeline.examples import ExamplePublisher
from sitebuild.pipeline.importers import (
    ArtifactSynchronizer,
    ChangelogImporter,
    DocsImporter,
)
from sitebuild.pipeline.updater import DependencyUpdater, create_updater

from .graph import TaskGraph

DEFAULT_TARGET = "default"


def build_site_graph(
    config: SiteConfig, updater: DependencyUpdater | None = None
) -> TaskGraph:
    """Register the site build tasks for ``config``.

    Parameters
    ----------
    config : SiteConfig
        Validated site configuration.
    updater : DependencyUpdater | None
        Dependency updater; chosen from ``config.update_strategy`` when
        ``None``.

    Returns
    -------
    TaskGraph
        Graph with the tasks ``update``, ``lib``, ``docs``, ``examples``,
        ``history``, ``version`` and ``default``.
    """
    updater = updater if updater is not None else create_updater(config)
    graph = TaskGraph()
    graph.add_task(
        "update",
        updater.update,
        description=f"Install the latest {config.dependency_name}",
    )
    graph.add_task(
        "lib",
        ArtifactSynchronizer(config).run,
        ["update"],
        description="Copy the library distribution files",
    )
    graph.add_task(
        "docs",
        DocsImporter(config).run,
        ["update"],
        description="Import the documentation",
    )
    graph.add_task(
        "examples",
        ExamplePublisher(config).run,
        ["update"],
        description="Publish the examples and their index",
    )
    graph.add_task(
        "history",
        ChangelogImporter(config).run,
        ["update"],
        description="Import the changelog",
    )
    graph.add_task(
        "version",
        DownloadPageUpdater(config).run,
        ["update", "lib"],
        description="Update version and sizes on the download page",
    )
    graph.add_task(
        DEFAULT_TARGET,
        None,
        ["lib", "docs", "examples", "history", "version"],
        description="Build everything",
    )
    return graph


__all__ = ["DEFAULT_TARGET", "build_site_graph"]
