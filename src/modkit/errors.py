"""Error types raised while building a module environment.

Every error carries a stable ``ErrorCode``. Errors that escape a pipeline
stage are tagged with that stage's name by the driver, so callers can tell
a bad module name (no stage) from a toolchain failure during ``project``.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    VALIDATION = "E_VALIDATION"
    SUBSTRATE = "E_SUBSTRATE"
    TEMPLATE = "E_TEMPLATE"
    TOOLCHAIN = "E_TOOLCHAIN"
    CONFIG = "E_CONFIG"


class ModkitError(Exception):
    """Base class; subclasses pin ``code``."""

    code: ClassVar[ErrorCode]

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context = {key: str(value) for key, value in (context or {}).items()}
        self.stage = stage

    def __str__(self) -> str:
        head = self.message if self.stage is None else f"[{self.stage}] {self.message}"
        lines = [head]
        lines.extend(f"  {key}: {value}" for key, value in self.context.items() if value)
        if self.hint:
            lines.append(f"  hint: {self.hint}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code.value,
            "message": self.message,
            "stage": self.stage,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(ModkitError):
    """Module name, subpath or SDK source tree is unusable."""

    code = ErrorCode.VALIDATION


class SubstrateError(ModkitError):
    """Evaluating layers failed: copy, write, listing or artifact read."""

    code = ErrorCode.SUBSTRATE


class TemplateError(ModkitError):
    code = ErrorCode.TEMPLATE


class ToolchainError(ModkitError):
    """An external command was missing or exited non-zero."""

    code = ErrorCode.TOOLCHAIN


class ConfigError(ModkitError):
    code = ErrorCode.CONFIG


__all__ = [
    "ConfigError",
    "ErrorCode",
    "ModkitError",
    "SubstrateError",
    "TemplateError",
    "ToolchainError",
    "ValidationError",
]
