"""Build-environment stages, each ``BuildEnvironment -> BuildEnvironment``.

Stages run in this order: base, solution, sdk, introspection, project. Each
one only appends to the environment it is given; later stages rely on the
files and group members recorded by earlier ones.
"""

from __future__ import annotations

from pathlib import Path

from .config import SdkConfig
from .errors import SubstrateError, ValidationError
from .models import BuildEnvironment, ModuleDescriptor
from .observability import StructuredLogger
from .substrate.base import Substrate
from .templating import render_entrypoints
from .toolchain.base import ProjectToolchain

STAGE_ORDER = ("base", "solution", "sdk", "introspection", "project")


def with_base(
    env: BuildEnvironment,
    *,
    context_dir: Path,
    subpath: str,
    config: SdkConfig,
) -> BuildEnvironment:
    if not context_dir.is_dir():
        raise ValidationError(
            "Module context directory does not exist.",
            context={"context_dir": str(context_dir)},
        )
    return (
        env.from_(config.base_image)
        .with_mounted_directory(config.mount_root, context_dir)
        .with_workdir(f"{config.mount_root}/{subpath}")
    )


def with_solution(
    env: BuildEnvironment,
    *,
    module: ModuleDescriptor,
    toolchain: ProjectToolchain,
) -> BuildEnvironment:
    # Always recreated: the group only lists members re-added below.
    return toolchain.create_group(env, module.identifier)


def with_sdk(
    env: BuildEnvironment,
    *,
    sdk_source_dir: Path,
    config: SdkConfig,
    toolchain: ProjectToolchain,
) -> BuildEnvironment:
    missing = [
        component.name
        for component in config.components
        if not (sdk_source_dir / component.name).is_dir()
    ]
    if missing:
        raise ValidationError(
            "SDK source tree is missing components.",
            hint="Point sdk_source_dir at a checkout of the dotnet SDK sources.",
            context={"sdk_source_dir": str(sdk_source_dir), "missing": ", ".join(missing)},
        )

    for component in config.components:
        env = env.with_directory(
            component.path,
            sdk_source_dir / component.name,
            exclude=config.exclude_for(component),
            replace=True,
        )
    for component in config.components:
        env = toolchain.add_member(env, component.path)
    return env


def with_introspection(
    env: BuildEnvironment,
    *,
    introspection: Path,
    config: SdkConfig,
) -> BuildEnvironment:
    try:
        contents = introspection.read_bytes()
    except OSError as exc:
        raise SubstrateError(
            "Introspection artifact is unreadable.",
            context={"path": str(introspection), "error": str(exc)},
        ) from exc
    return env.with_new_file(config.introspection_path, contents)


def with_project(
    env: BuildEnvironment,
    *,
    module: ModuleDescriptor,
    substrate: Substrate,
    toolchain: ProjectToolchain,
    config: SdkConfig,
    logger: StructuredLogger | None = None,
) -> BuildEnvironment:
    name = module.identifier
    scaffolded = name in substrate.entries(env, ".")

    if scaffolded and f"{name}.csproj" not in substrate.entries(env, name):
        raise ValidationError(
            "Existing project directory has no project file.",
            hint=f"Restore {name}/{name}.csproj, or remove {name}/ to scaffold it again.",
            context={"project": name},
        )
    if not scaffolded:
        env = toolchain.create_executable(env, name, framework=config.framework)
        for reference in config.project_references:
            env = toolchain.add_reference(env, name, reference)
    if logger is not None:
        logger.log(
            operation="materialize",
            stage="project",
            module=name,
            message="reused existing project" if scaffolded else "scaffolded project",
        )

    sources = render_entrypoints(module)

    env = toolchain.add_member(env, name)
    for path, text in sources.items():
        env = env.with_new_file(path, text)
    return env


__all__ = [
    "STAGE_ORDER",
    "with_base",
    "with_introspection",
    "with_project",
    "with_sdk",
    "with_solution",
]
