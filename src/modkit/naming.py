"""Module name normalization and subpath validation."""

from __future__ import annotations

import posixpath
import re

from .errors import ValidationError
from .models import ModuleDescriptor, ModuleSource

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
WORD_SEPARATORS = frozenset("_ -.")


def to_camel(value: str) -> str:
    """Convert an arbitrary module name to UpperCamelCase.

    Word separators (``_``, ``-``, ``.``, space) and digits start a new
    word, runs of capitals are folded (``myAPI`` -> ``MyApi``) and
    any other character is dropped. ``"hello world"``, ``"hello-world"`` and
    ``"Hello_World"`` all become ``"HelloWorld"``.
    """
    text = value.strip()
    out: list[str] = []
    cap_next = True
    prev_is_cap = False
    for index, char in enumerate(text):
        is_cap = "A" <= char <= "Z"
        is_low = "a" <= char <= "z"
        if cap_next:
            if is_low:
                char = char.upper()
        elif index == 0:
            if is_cap:
                char = char.lower()
        elif prev_is_cap and is_cap:
            char = char.lower()
        prev_is_cap = is_cap
        if is_cap or is_low:
            out.append(char)
            cap_next = False
        elif "0" <= char <= "9":
            out.append(char)
            cap_next = True
        else:
            cap_next = char in WORD_SEPARATORS
    return "".join(out)


def normalize_subpath(subpath: str) -> str:
    if posixpath.isabs(subpath):
        raise ValidationError(
            "Module source subpath must be relative to the context directory.",
            context={"subpath": subpath},
        )
    normalized = posixpath.normpath(subpath or ".")
    if normalized == ".." or normalized.startswith("../"):
        raise ValidationError(
            "Module source subpath escapes the context directory.",
            hint="Point the subpath at a directory inside the module context.",
            context={"subpath": subpath},
        )
    return normalized


def describe_module(source: ModuleSource) -> ModuleDescriptor:
    if not source.module_name or not source.module_name.strip():
        raise ValidationError("Module name must be non-empty.")
    identifier = to_camel(source.module_name)
    if not IDENTIFIER_PATTERN.fullmatch(identifier):
        raise ValidationError(
            "Module name does not normalize to a valid project identifier.",
            hint="Start the module name with a letter.",
            context={"module_name": source.module_name, "identifier": identifier},
        )
    return ModuleDescriptor(
        name=source.module_name,
        identifier=identifier,
        subpath=normalize_subpath(source.source_subpath),
    )


__all__ = ["describe_module", "normalize_subpath", "to_camel"]
