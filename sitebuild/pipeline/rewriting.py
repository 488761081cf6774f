"""Rule-based text rewriting.

Components describe how they change upstream text as an ordered list of
:class:`RewriteRule` values rather than inline string surgery. A rule is a
regular expression and its replacement; :func:`rewrite` applies the rules
one after another over the whole text, so a later rule sees the output of
the earlier ones. Matching within one rule is left-to-right and
non-overlapping (``re.sub`` semantics).

This module has no I/O and no state.

Examples
--------
>>> from sitebuild.pipeline.rewriting import RewriteRule, literal, rewrite
>>> rules = [literal("HISTORY.md", "history.html"),
...          RewriteRule(r"(\\([\\w./]*)\\.md(\\))", r"\\1.html\\2")]
>>> rewrite("[a](./guide.md) and HISTORY.md", rules)
'[a](./guide.html) and history.html'
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

Replacement = str | Callable[[re.Match[str]], str]


@dataclass(frozen=True)
class RewriteRule:
    """A single substitution.

    Attributes
    ----------
    pattern : str | re.Pattern[str]
        Regular expression to search for.
    replacement : str | Callable[[re.Match[str]], str]
        ``re.sub`` replacement template, or a function of the match.
    count : int
        Maximum number of replacements; ``0`` replaces every occurrence.
    """

    pattern: str | re.Pattern[str]
    replacement: Replacement
    count: int = 0

    def compiled(self) -> re.Pattern[str]:
        if isinstance(self.pattern, re.Pattern):
            return self.pattern
        return re.compile(self.pattern)

    def apply(self, content: str) -> str:
        return self.compiled().sub(self.replacement, content, count=self.count)


def literal(text: str, replacement: str, count: int = 0) -> RewriteRule:
    """Build a rule replacing the exact string ``text`` with ``replacement``.

    Neither argument is interpreted as a regular expression or as a
    replacement template.
    """
    return RewriteRule(re.compile(re.escape(text)), lambda _m: replacement, count)


def rewrite(content: str, rules: Iterable[RewriteRule]) -> str:
    """Apply ``rules`` to ``content`` in the order given.

    Parameters
    ----------
    content : str
        Text to transform.
    rules : Iterable[RewriteRule]
        Ordered rules; each one runs over the complete output of the
        previous one.

    Returns
    -------
    str
        The rewritten text.
    """
    for rule in rules:
        content = rule.apply(content)
    return content


def prepend_header(content: str, header: str) -> str:
    """Return ``header + content``.

    Content that already starts with ``header`` is returned unchanged, so a
    document never carries the header twice.

    Notes
    -----
    This deliberately differs from a plain concatenation: re-importing a
    document that already carries the header (a previous run's output, or
    an upstream file written with front matter) keeps exactly one header.

    Examples
    --------
    >>> prepend_header("# Title\\n", "---\\n---\\n")
    '---\\n---\\n# Title\\n'
    >>> prepend_header("---\\n---\\n# Title\\n", "---\\n---\\n")
    '---\\n---\\n# Title\\n'
    """
    if header and content.startswith(header):
        return content
    return header + content


__all__ = ["RewriteRule", "literal", "prepend_header", "rewrite"]
