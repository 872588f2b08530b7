"""In-memory stage log for one ``DotnetSdk`` driver."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

LEVELS = ("debug", "info", "warning", "error")


@dataclass(slots=True)
class StructuredLogger:
    """Ordered event records; ``seq`` survives export so order is never lost."""

    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        stage: str | None,
        module: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        if level not in LEVELS:
            raise ValueError(f"unknown log level {level!r}")
        record: dict[str, Any] = {
            "seq": len(self.records),
            "level": level,
            "operation": operation,
            "stage": stage,
            "module": module,
            "message": message,
        }
        if extra:
            record["extra"] = dict(extra)
        self.records.append(record)

    def records_for_stage(self, stage: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record["stage"] == stage]

    def completed_stages(self, operation: str | None = None) -> list[str]:
        """Stages that finished, in the order they finished."""
        return [
            record["stage"]
            for record in self.records
            if record["message"] == "stage completed"
            and (operation is None or record["operation"] == operation)
        ]

    def failures(self) -> list[dict[str, Any]]:
        return [record for record in self.records if record["level"] == "error"]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding="utf-8") as handle:
            for record in self.records:
                handle.write(json.dumps(record, sort_keys=True, default=str))
                handle.write("\n")
        return output_path


__all__ = ["LEVELS", "StructuredLogger"]
