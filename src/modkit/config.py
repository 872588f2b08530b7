"""SDK conventions and their JSON override file."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .models import (
    DEFAULT_BASE_IMAGE,
    DEFAULT_COMPONENTS,
    DEFAULT_FRAMEWORK,
    DEFAULT_INTROSPECTION_PATH,
    DEFAULT_PROJECT_REFERENCES,
    MOD_SOURCE_DIR_PATH,
    IgnoreSpec,
    SdkComponent,
)

_KNOWN_KEYS = frozenset(
    {
        "base_image",
        "framework",
        "mount_root",
        "components",
        "ignore",
        "introspection_path",
        "project_references",
        "required_paths",
    }
)
_IGNORE_KEYS = frozenset({"copy_exclude", "vcs_generated", "vcs_ignored"})


@dataclass(frozen=True, slots=True)
class SdkConfig:
    base_image: str = DEFAULT_BASE_IMAGE
    framework: str = DEFAULT_FRAMEWORK
    mount_root: str = MOD_SOURCE_DIR_PATH
    components: tuple[SdkComponent, ...] = DEFAULT_COMPONENTS
    ignore: IgnoreSpec = field(default_factory=IgnoreSpec)
    introspection_path: str = DEFAULT_INTROSPECTION_PATH
    project_references: tuple[str, ...] = DEFAULT_PROJECT_REFERENCES
    required_paths: tuple[str, ...] = ()

    def exclude_for(self, component: SdkComponent) -> tuple[str, ...]:
        return tuple(dict.fromkeys((*self.ignore.copy_exclude, *component.exclude)))


def parse_config(raw: str) -> SdkConfig:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError("Invalid config JSON.", hint=str(exc)) from exc

    if not isinstance(payload, dict):
        raise ConfigError("Invalid config payload type.")
    unknown = sorted(set(payload) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(
            "Unknown config keys.",
            context={"keys": ", ".join(unknown)},
        )

    defaults = SdkConfig()
    mount_root = _optional_str(payload, "mount_root", defaults.mount_root)
    if not posixpath.isabs(mount_root):
        raise ConfigError(
            "Config `mount_root` must be an absolute path.",
            context={"mount_root": mount_root},
        )

    components = defaults.components
    if "components" in payload:
        components = _components(payload["components"])

    config = SdkConfig(
        base_image=_optional_str(payload, "base_image", defaults.base_image),
        framework=_optional_str(payload, "framework", defaults.framework),
        mount_root=mount_root,
        components=components,
        ignore=_ignore(payload.get("ignore", {}), defaults.ignore),
        introspection_path=_optional_str(
            payload, "introspection_path", defaults.introspection_path
        ),
        project_references=_optional_str_tuple(
            payload, "project_references", defaults.project_references
        ),
        required_paths=_optional_str_tuple(payload, "required_paths", defaults.required_paths),
    )
    _check_consistency(config)
    return config


def read_config(path: str | Path) -> SdkConfig:
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(
            "Config file does not exist.",
            context={"path": str(config_path)},
        ) from exc
    return parse_config(raw)


def _check_consistency(config: SdkConfig) -> None:
    installed = {component.path for component in config.components}
    missing = [ref for ref in config.project_references if ref not in installed]
    if missing:
        raise ConfigError(
            "Project references must name installed SDK components.",
            context={"references": ", ".join(missing)},
        )
    if not any(
        config.introspection_path.startswith(f"{component_path}/")
        for component_path in installed
    ):
        raise ConfigError(
            "Introspection path must live inside an installed SDK component.",
            context={"introspection_path": config.introspection_path},
        )


def _components(value: Any) -> tuple[SdkComponent, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigError("Invalid config `components` value.")
    components: list[SdkComponent] = []
    for item in value:
        if not isinstance(item, dict):
            raise ConfigError("Invalid config component entry.")
        name = item.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigError("Config component entries require a `name`.")
        destination = item.get("destination", "")
        if not isinstance(destination, str):
            raise ConfigError(
                "Invalid config component `destination` value.",
                context={"component": name},
            )
        components.append(
            SdkComponent(
                name=name,
                destination=destination,
                exclude=_optional_str_tuple(item, "exclude", ()),
            )
        )
    return tuple(components)


def _ignore(value: Any, defaults: IgnoreSpec) -> IgnoreSpec:
    if not isinstance(value, dict):
        raise ConfigError("Invalid config `ignore` value.")
    unknown = sorted(set(value) - _IGNORE_KEYS)
    if unknown:
        raise ConfigError("Unknown config `ignore` keys.", context={"keys": ", ".join(unknown)})
    return IgnoreSpec(
        copy_exclude=_optional_str_tuple(value, "copy_exclude", defaults.copy_exclude),
        vcs_generated=_optional_str_tuple(value, "vcs_generated", defaults.vcs_generated),
        vcs_ignored=_optional_str_tuple(value, "vcs_ignored", defaults.vcs_ignored),
    )


def _optional_str(payload: dict[str, Any], key: str, default: str) -> str:
    value = payload.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"Invalid config `{key}` value.")
    return value


def _optional_str_tuple(
    payload: dict[str, Any], key: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    if key not in payload:
        return default
    value = payload[key]
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise ConfigError(f"Invalid config `{key}` value.")
    return tuple(value)


__all__ = ["SdkConfig", "parse_config", "read_config"]
