"""Task scheduling for the site build."""

from __future__ import annotations

from .graph import PipelineResult, Task, TaskGraph, TaskOutcome, TaskStatus
from .site import DEFAULT_TARGET, build_site_graph

__all__ = [
    "DEFAULT_TARGET",
    "PipelineResult",
    "Task",
    "TaskGraph",
    "TaskOutcome",
    "TaskStatus",
    "build_site_graph",
]
