"""Templating utilities for generated site pages.

This module provides a small, stateless templating API: named template
strings, placeholder extraction, and context-driven rendering. It is used
by the example publisher to produce one markdown page per example and the
examples index.

Template syntax
---------------
- ``{{name}}`` is replaced by ``str(context["name"])``.
- ``{{#each items}}...{{/each}}`` renders its body once per element of
  ``context["items"]`` (a mapping or a dataclass instance), concatenated in
  list order. Blocks do not nest.

Rendering is single-pass: text inserted from the context is never scanned
for placeholders again, so example code containing ``{{`` is emitted
verbatim.

Boundaries
----------
- Does not read or write files.
- Deterministic given inputs; no global state.

Examples
--------
>>> from sitebuild.pipeline.templating import render_template
>>> render_template("# {{title}}\\n", {"title": "Basic usage"})
'# Basic usage\\n'
>>> render_template("{{#each xs}}- {{v}}\\n{{/each}}", {"xs": [{"v": 1}, {"v": 2}]})
'- 1\\n- 2\\n'
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from typing import Any

from sitebuild.exceptions import TemplateRenderError

_TOKEN = re.compile(
    r"\{\{#each\s+(?P<list>\w+)\s*\}\}(?P<body>.*?)\{\{/each\}\}"
    r"|\{\{\s*(?P<field>\w+)\s*\}\}",
    re.DOTALL,
)

EXAMPLE_PAGE_TEMPLATE: str = (
    "{{header}}"
    + "# {{title}}\n\n"
    + "Raw file: [{{url}}]({{url}})\n\n"
    + "```{{type}}\n"
    + "{{code}}"
    + "```\n"
)

INDEX_TEMPLATE: str = (
    "{{header}}"
    + "# Examples\n\n"
    + "{{#each files}}- [{{title}}]({{url}})\n{{/each}}"
    + "\n"
    + "# Browser examples\n\n"
    + "{{#each browserFiles}}- [{{title}}]({{url}})\n{{/each}}"
)

TEMPLATES: dict[str, str] = {
    "example_page": EXAMPLE_PAGE_TEMPLATE,
    "index": INDEX_TEMPLATE,
}


def extract_placeholders_from_template(content: str) -> list[str]:
    """Return a sorted list of unique top-level names used by the template.

    Both plain fields and ``each`` list names are reported; fields used only
    inside an ``each`` body belong to the elements and are not included.

    Examples
    --------
    >>> extract_placeholders_from_template(INDEX_TEMPLATE)
    ['browserFiles', 'files', 'header']
    """
    names = set()
    for match in _TOKEN.finditer(content):
        names.add(match.group("list") or match.group("field"))
    return sorted(names)


def _as_mapping(item: Any, list_name: str) -> Mapping[str, Any]:
    if isinstance(item, Mapping):
        return item
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    raise TemplateRenderError(
        f"Elements of '{list_name}' must be mappings or dataclasses",
        context={"list": list_name, "element_type": type(item).__name__},
    )


def render_template(template_content: str, context: Mapping[str, Any]) -> str:
    """Render ``template_content`` against ``context``.

    Parameters
    ----------
    template_content : str
        The template text containing ``{{placeholders}}`` and ``each`` blocks.
    context : Mapping[str, Any]
        Values for the placeholders.

    Returns
    -------
    str
        The rendered text.

    Raises
    ------
    TemplateRenderError
        If a referenced field is missing from ``context`` (or from an element
        of an ``each`` list), or an ``each`` target is not a list.
    """

    def replace_func(match: re.Match[str]) -> str:
        list_name = match.group("list")
        if list_name is None:
            name = match.group("field")
            if name not in context:
                raise TemplateRenderError(
                    f"Missing required template field '{name}'",
                    context={"field": name},
                )
            return str(context[name])
        if list_name not in context:
            raise TemplateRenderError(
                f"Missing required template list '{list_name}'",
                context={"field": list_name},
            )
        items = context[list_name]
        if isinstance(items, (str, bytes, Mapping)) or not hasattr(items, "__iter__"):
            raise TemplateRenderError(
                f"Template field '{list_name}' is not a list",
                context={"field": list_name},
            )
        body = match.group("body")
        return "".join(
            render_template(body, _as_mapping(item, list_name)) for item in items
        )

    return _TOKEN.sub(replace_func, template_content)


def render(template_name: str, context: Mapping[str, Any]) -> str:
    """Render one of the named :data:`TEMPLATES`.

    Every top-level name the template uses is checked before rendering, so
    the error lists all missing fields at once.

    Raises
    ------
    TemplateRenderError
        If the template name is unknown, top-level fields are missing
        (``context["missing"]``), or rendering fails.
    """
    try:
        template = TEMPLATES[template_name]
    except KeyError:
        raise TemplateRenderError(
            f"Unknown template '{template_name}'",
            context={"template": template_name, "available": sorted(TEMPLATES)},
        ) from None
    missing = [
        name
        for name in extract_placeholders_from_template(template)
        if name not in context
    ]
    if missing:
        raise TemplateRenderError(
            f"Template '{template_name}' is missing field(s): {', '.join(missing)}",
            context={"template": template_name, "missing": missing},
        )
    return render_template(template, context)


__all__ = [
    "EXAMPLE_PAGE_TEMPLATE",
    "INDEX_TEMPLATE",
    "TEMPLATES",
    "extract_placeholders_from_template",
    "render",
    "render_template",
]
