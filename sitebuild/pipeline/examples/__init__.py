"""Example publishing: copy upstream examples and generate their pages."""

from __future__ import annotations

from .publisher import (
    ExampleFile,
    ExamplePublisher,
    IndexEntry,
    derive_title,
    example_rules,
    render_index,
    script_path_rule,
)

__all__ = [
    "ExampleFile",
    "ExamplePublisher",
    "IndexEntry",
    "derive_title",
    "example_rules",
    "render_index",
    "script_path_rule",
]
