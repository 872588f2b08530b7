"""Runtime driver composing the build-environment stages."""

from __future__ import annotations

import posixpath
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .config import SdkConfig
from .errors import ModkitError
from .models import (
    BuildEnvironment,
    CommandResult,
    ExecutableEnvironment,
    GeneratedCode,
    ModuleDescriptor,
    ModuleSource,
)
from .naming import describe_module
from .observability import StructuredLogger
from .pipeline import with_base, with_introspection, with_project, with_sdk, with_solution
from .substrate.base import Substrate
from .substrate.local import LocalSubstrate
from .toolchain.base import ProjectToolchain
from .toolchain.dotnet import DotnetCli


@dataclass(slots=True)
class DotnetSdk:
    """Builds dotnet module environments from a module source and schema."""

    sdk_source_dir: Path = field(default_factory=lambda: Path("sdk"))
    config: SdkConfig = field(default_factory=SdkConfig)
    substrate: Substrate = field(default_factory=LocalSubstrate)
    toolchain: ProjectToolchain = field(default_factory=DotnetCli)
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    @property
    def required_paths(self) -> tuple[str, ...]:
        return self.config.required_paths

    def module_runtime(
        self,
        source: ModuleSource,
        introspection: Path,
    ) -> ExecutableEnvironment:
        module, env = self.build_environment(source, introspection, operation="module_runtime")
        project = posixpath.normpath(
            posixpath.join(self.config.mount_root, module.subpath, module.identifier)
        )
        env = env.with_entrypoint(("dotnet", "run", "--project", project))
        return ExecutableEnvironment(environment=env, module=module)

    def codegen(self, source: ModuleSource, introspection: Path) -> GeneratedCode:
        """Export the module tree; the caller owns it and releases it with ``cleanup()``."""
        module, env = self.build_environment(source, introspection, operation="codegen")
        root = self.substrate.directory(env, ".")
        self.logger.log(
            operation="codegen",
            stage=None,
            module=module.identifier,
            message="exported generated tree",
            extra={"root": str(root), "digest": env.digest()},
        )
        return GeneratedCode(
            root=root,
            vcs_generated_paths=self.config.ignore.vcs_generated,
            vcs_ignored_paths=self.config.ignore.vcs_ignored,
            digest=env.digest(),
        )

    def run(self, executable: ExecutableEnvironment) -> CommandResult:
        return self.substrate.run(executable)

    def build_environment(
        self,
        source: ModuleSource,
        introspection: Path,
        *,
        operation: str = "build",
    ) -> tuple[ModuleDescriptor, BuildEnvironment]:
        module = describe_module(source)
        stages: list[tuple[str, Callable[[BuildEnvironment], BuildEnvironment]]] = [
            (
                "base",
                lambda env: with_base(
                    env,
                    context_dir=source.context_dir,
                    subpath=module.subpath,
                    config=self.config,
                ),
            ),
            (
                "solution",
                lambda env: with_solution(env, module=module, toolchain=self.toolchain),
            ),
            (
                "sdk",
                lambda env: with_sdk(
                    env,
                    sdk_source_dir=self.sdk_source_dir,
                    config=self.config,
                    toolchain=self.toolchain,
                ),
            ),
            (
                "introspection",
                lambda env: with_introspection(
                    env,
                    introspection=introspection,
                    config=self.config,
                ),
            ),
            (
                "project",
                lambda env: with_project(
                    env,
                    module=module,
                    substrate=self.substrate,
                    toolchain=self.toolchain,
                    config=self.config,
                    logger=self.logger,
                ),
            ),
        ]

        env = BuildEnvironment()
        for stage, apply in stages:
            env = self._run_stage(operation, stage, module, apply, env)
        return module, env

    def _run_stage(
        self,
        operation: str,
        stage: str,
        module: ModuleDescriptor,
        apply: Callable[[BuildEnvironment], BuildEnvironment],
        env: BuildEnvironment,
    ) -> BuildEnvironment:
        self.logger.log(
            operation=operation,
            stage=stage,
            module=module.identifier,
            message="stage started",
        )
        try:
            result = apply(env)
        except Exception as exc:
            if isinstance(exc, ModkitError) and exc.stage is None:
                exc.stage = stage
            self.logger.log(
                operation=operation,
                stage=stage,
                module=module.identifier,
                message="stage failed",
                level="error",
                extra={"error": type(exc).__name__, "detail": str(exc)},
            )
            raise
        self.logger.log(
            operation=operation,
            stage=stage,
            module=module.identifier,
            message="stage completed",
            extra={"digest": result.digest(), "layers": len(result.layers)},
        )
        return result
