"""argv template expansion.

Each ``{name}`` inside an argument is replaced by ``params[name]``, or by
the empty string when the name is not in the mapping. Expansion is one
left-to-right pass per argument: substituted text is never re-scanned, so
a parameter value containing ``{x}`` stays literally ``{x}``.

A ``{`` with no closing ``}`` later in the same argument is a TemplateError.
A ``}`` with no opening ``{`` is ordinary text.
"""

from __future__ import annotations

from typing import Mapping, Sequence


class TemplateError(ValueError):
    """Raised when an argument holds an unclosed ``{`` placeholder."""


def expand_argument(argument: str, params: Mapping[str, str]) -> str:
    out: list[str] = []
    pos = 0
    while True:
        start = argument.find("{", pos)
        if start < 0:
            out.append(argument[pos:])
            return "".join(out)
        end = argument.find("}", start + 1)
        if end < 0:
            raise TemplateError(f"unclosed placeholder in {argument!r}")
        out.append(argument[pos:start])
        out.append(params.get(argument[start + 1:end], ""))
        pos = end + 1


def expand_argv(script: Sequence[str], params: Mapping[str, str]) -> list[str]:
    """Expand every argument of ``script``; the result has the same length.

    Raises:
        TemplateError: on the first argument with an unclosed placeholder.
    """
    return [expand_argument(argument, params) for argument in script]
