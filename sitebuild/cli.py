"""Command line entry point of the site build.

Usage
-----
python -m sitebuild [TASK ...] [--site-root DIR] [--log-level LEVEL] [--list]

Runs the named tasks (``default`` when none are given) together with their
prerequisites, prints a status table and exits with:

- ``0`` when every task succeeded,
- ``1`` when a task failed (dependents are reported as blocked),
- ``2`` for unknown task names or an invalid configuration.

Logging goes to the console and, unless ``DISABLE_FILE_LOGS`` is set, to
``logs/sitebuild.log`` under the site root.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from sitebuild.config import LOG_FILENAME_BUILD, LOG_FORMAT, SiteConfig
from sitebuild.exceptions import ConfigurationError, UserInputError
from sitebuild.orchestration.site import DEFAULT_TARGET, build_site_graph
from sitebuild.orchestration.status import render_status_table, render_task_list

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TASK_FAILED = 1
EXIT_USAGE = 2


def configure_logging(
    log_level: str = "INFO", enable_file: bool = True, log_dir: Path | None = None
) -> None:
    """Configure root logging for a build run.

    Parameters
    ----------
    log_level : str
        Logging level name (e.g. ``"INFO"``, ``"DEBUG"``).
    enable_file : bool
        Also write to ``<log_dir>/sitebuild.log`` when ``True``.
    log_dir : Path | None
        Directory for the log file; defaults to ``./logs``.

    Notes
    -----
    Existing root handlers are removed first, so repeated calls do not
    duplicate output. A log file that cannot be opened is skipped.
    """
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if enable_file:
        log_dir = log_dir if log_dir is not None else Path("logs")
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.insert(
                0, logging.FileHandler(log_dir / LOG_FILENAME_BUILD, mode="a")
            )
        except OSError:
            pass
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns
    -------
    argparse.Namespace
        ``tasks``, ``site_root``, ``log_level`` and ``list``.
    """
    parser = argparse.ArgumentParser(
        prog="sitebuild", description="Build the mathjs documentation site."
    )
    parser.add_argument(
        "tasks",
        nargs="*",
        default=[DEFAULT_TARGET],
        help=f"Tasks to run (default: {DEFAULT_TARGET})",
    )
    parser.add_argument(
        "--site-root",
        type=str,
        default=None,
        help="Site working tree (default: SITEBUILD_SITE_ROOT or the current directory)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    parser.add_argument(
        "--list", action="store_true", help="List the available tasks and exit"
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None, console: Console | None = None) -> int:
    """Run the site build and return the process exit status."""
    args = parse_arguments(argv)
    console = console if console is not None else Console()
    try:
        config = SiteConfig.from_env(args.site_root)
    except ConfigurationError as exc:
        configure_logging(args.log_level, enable_file=False)
        logger.error("Invalid configuration: %s", exc)
        return EXIT_USAGE

    configure_logging(
        args.log_level,
        enable_file=not os.environ.get("DISABLE_FILE_LOGS"),
        log_dir=config.log_dir,
    )
    try:
        graph = build_site_graph(config)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_USAGE

    if args.list:
        console.print(render_task_list(graph))
        return EXIT_OK

    try:
        result = asyncio.run(graph.run(args.tasks))
    except (UserInputError, ConfigurationError) as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    console.print(render_status_table(result))
    message = result.failure_message()
    if message is not None:
        logger.error(message)
        return EXIT_TASK_FAILED
    logger.info("Build finished: %s", ", ".join(args.tasks))
    return EXIT_OK


__all__ = ["configure_logging", "main", "parse_arguments"]
