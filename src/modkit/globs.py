"""Path-glob matching with ``**`` support for exclusion and VCS classification.

Patterns are matched against relative posix paths. ``**`` as a whole
segment spans zero or more directories, ``*`` and ``?`` never cross a
``/``. A path also matches when any of its parent directories matches, so
``**/bin`` covers everything below a ``bin`` directory.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache
from pathlib import PurePosixPath


def matches_any(patterns: Iterable[str], path: str) -> bool:
    candidates = _candidates(path)
    return any(
        _compile(pattern).fullmatch(candidate)
        for pattern in patterns
        for candidate in candidates
    )


def _candidates(path: str) -> tuple[str, ...]:
    pure = PurePosixPath(path.strip("/"))
    if not pure.parts or str(pure) == ".":
        return ()
    parents = [str(parent) for parent in pure.parents if str(parent) != "."]
    return (str(pure), *parents)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    segments = pattern.strip("/").split("/")
    out: list[str] = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            out.append(".*" if last else "(?:[^/]+/)*")
            continue
        out.append(_translate_segment(segment))
        if not last:
            out.append("/")
    return re.compile("".join(out))


def _translate_segment(segment: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(segment):
        char = segment[i]
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = segment.find("]", i + 1)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = segment[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


__all__ = ["matches_any"]
