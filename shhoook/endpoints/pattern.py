"""URI template compiler for shhoook endpoints.

A URI template is a ``/``-separated sequence of segments:

  ``literal``  — matches itself exactly (regex metacharacters are escaped)
  ``:name``    — captures exactly one non-empty path segment (no ``/``)
  ``*name``    — captures the rest of the path, zero or more characters
                 (newlines from a decoded ``%0A`` too),
                 ``/`` included. Only legal as the LAST segment.

Examples::

    /run/:id            matches /run/42            → {"id": "42"}
    /files/*rest        matches /files/a/b.txt     → {"rest": "a/b.txt"}
                        matches /files/            → {"rest": ""}
    /run/:id/*rest      matches /run/7/x/y         → {"id": "7", "rest": "x/y"}

Empty segments (``//`` or a trailing ``/``) are skipped. The bare template
``/`` matches only the root path.

Captures are compiled into positional groups; when two captures share a
name, the later segment's value wins in the extracted mapping.

Compilation happens once at load time — a malformed template raises
PatternError and fails endpoint loading, never a request.

IMPORT RULES:
  - `import re2` ONLY — `import re` is PROHIBITED in this file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import re2  # google-re2. NEVER: import re


class PatternError(ValueError):
    """Raised when a URI template cannot be compiled."""


_SINGLE_SEGMENT = "([^/]+)"
_TAIL = "((?s:.*))"


@dataclass(frozen=True)
class PathMatcher:
    """Compiled form of a URI template.

    INVARIANT: len(names) == number of capture groups in regex, in order.
    """

    template: str
    regex: Any
    names: tuple[str, ...]
    wildcard: bool

    def match(self, path: str) -> Optional[dict[str, str]]:
        """Match a concrete request path.

        Returns:
            Mapping of capture name → matched text, or None if the path
            does not match. Duplicate names: later capture wins.
        """
        m = self.regex.match(path)
        if m is None:
            return None
        variables: dict[str, str] = {}
        for index, name in enumerate(self.names, start=1):
            variables[name] = m.group(index) or ""
        return variables


def _capture_name(segment: str, template: str) -> str:
    name = segment[1:]
    if not name or not name.isascii() or not all(c.isalnum() or c == "_" for c in name):
        raise PatternError(
            f"invalid capture name {segment!r} in {template!r} "
            "(want letters, digits or underscore)"
        )
    return name


def compile_template(template: str) -> PathMatcher:
    """Compile a URI template into a PathMatcher.

    Raises:
        PatternError: wildcard not in last position, empty or invalid capture
                      name, or a template re2 refuses to compile.
    """
    segments = template.removeprefix("/").split("/")
    parts: list[str] = ["^"]
    names: list[str] = []
    wildcard = False

    for index, segment in enumerate(segments):
        if segment == "":
            continue
        parts.append("/")
        if segment.startswith(":"):
            names.append(_capture_name(segment, template))
            parts.append(_SINGLE_SEGMENT)
        elif segment.startswith("*"):
            if index != len(segments) - 1:
                raise PatternError(f"wildcard must be the last segment in {template!r}")
            names.append(_capture_name(segment, template))
            parts.append(_TAIL)
            wildcard = True
        else:
            parts.append(re2.escape(segment))

    if len(parts) == 1:
        # Bare "/" matches the root path only.
        parts.append("/")
    parts.append("$")

    try:
        regex = re2.compile("".join(parts))
    except re2.error as exc:
        raise PatternError(f"cannot compile {template!r}: {exc}") from exc

    return PathMatcher(
        template=template,
        regex=regex,
        names=tuple(names),
        wildcard=wildcard,
    )
