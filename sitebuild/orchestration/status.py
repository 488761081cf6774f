"""Rendering helpers for task status and the task listing.

Builds Rich tables summarising a :class:`~sitebuild.orchestration.graph.PipelineResult`
and the registered tasks of a graph.
"""

from __future__ import annotations

from rich.table import Table

from .graph import PipelineResult, TaskGraph, TaskStatus


def status_label(status: TaskStatus | str) -> str:
    """Return the display label for a task status.

    Parameters
    ----------
    status : TaskStatus | str
        Status member or its value (``'waiting'``, ``'running'``, ``'ok'``,
        ``'fail'`` or ``'blocked'``).

    Returns
    -------
    str
        Label with a leading emoji; unknown values are returned unchanged.

    Examples
    --------
    >>> status_label("ok")
    '✅ Done'
    """
    labels = {
        "waiting": "⏳ Waiting",
        "running": "▶️  Running",
        "ok": "✅ Done",
        "fail": "❌ Failed",
        "blocked": "⛔ Blocked",
    }
    key = status.value if isinstance(status, TaskStatus) else status
    return labels.get(key, key)


def render_status_table(result: PipelineResult, title: str = "Site build") -> Table:
    """Construct a table with one row per scheduled task.

    Parameters
    ----------
    result : PipelineResult
        Outcome of a run.
    title : str
        Table title.

    Returns
    -------
    rich.table.Table
        Columns: task, status, duration, error.
    """
    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("Task", style="bold")
    table.add_column("Status")
    table.add_column("Time", justify="right")
    table.add_column("Error")
    for outcome in result.outcomes.values():
        duration = outcome.duration
        table.add_row(
            outcome.name,
            status_label(outcome.status),
            f"{duration:.2f}s" if duration is not None else "",
            str(outcome.error) if outcome.error is not None else "",
        )
    return table


def render_task_list(graph: TaskGraph) -> Table:
    table = Table(title="Tasks", show_header=True, header_style="bold blue")
    table.add_column("Task", style="bold")
    table.add_column("Requires")
    table.add_column("Description")
    for task in graph.tasks.values():
        table.add_row(task.name, ", ".join(task.prerequisites), task.description)
    return table


__all__ = ["render_status_table", "render_task_list", "status_label"]
