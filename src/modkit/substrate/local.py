"""Host-side evaluation of build environments.

Layers are replayed into a private scratch tree and commands run with the
host's own toolchain. The pinned base image is not used, so builds are only
as reproducible as the host; prefer ``DockerSubstrate`` when that matters.
"""

from __future__ import annotations

import shutil
import subprocess
import warnings
from dataclasses import dataclass
from pathlib import Path

from modkit.errors import ToolchainError
from modkit.models import BuildEnvironment, CommandResult, ExecLayer, ExecutableEnvironment
from modkit.substrate.base import (
    export_directory,
    host_argv,
    host_path,
    list_entries,
    materialized,
)


class UnpinnedToolchainWarning(UserWarning):
    """Warning raised when a command runs on the host instead of the base image."""


@dataclass(slots=True)
class LocalSubstrate:
    name: str = "local"
    scratch_dir: Path | None = None

    def entries(self, env: BuildEnvironment, path: str = ".") -> tuple[str, ...]:
        with materialized(env, scratch_dir=self.scratch_dir, run_exec=self._run_exec) as root:
            return list_entries(root, env, path)

    def directory(self, env: BuildEnvironment, path: str = ".") -> Path:
        with materialized(env, scratch_dir=self.scratch_dir, run_exec=self._run_exec) as root:
            return export_directory(root, env, path, scratch_dir=self.scratch_dir)

    def run(self, executable: ExecutableEnvironment) -> CommandResult:
        env = executable.environment
        with materialized(env, scratch_dir=self.scratch_dir, run_exec=self._run_exec) as root:
            argv = host_argv(env, root, executable.argv)
            cwd = host_path(root, env.workdir)
            cwd.mkdir(parents=True, exist_ok=True)
            result = self._invoke(env, argv, cwd)
        return CommandResult(
            argv=argv,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def _run_exec(self, env: BuildEnvironment, layer: ExecLayer, root: Path) -> None:
        argv = host_argv(env, root, layer.argv)
        result = self._invoke(env, argv, host_path(root, layer.workdir))
        if result.returncode != 0:
            raise ToolchainError(
                f"`{layer.argv[0]}` exited with a non-zero status.",
                hint="Check the command output for details.",
                context={
                    "substrate": self.name,
                    "command": " ".join(layer.argv),
                    "workdir": layer.workdir,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                },
            )

    def _invoke(
        self,
        env: BuildEnvironment,
        argv: tuple[str, ...],
        cwd: Path,
    ) -> subprocess.CompletedProcess[str]:
        if not argv:
            raise ToolchainError(
                "Cannot run an empty command.",
                context={"substrate": self.name},
            )
        if shutil.which(argv[0]) is None:
            raise ToolchainError(
                f"Local substrate requires `{argv[0]}` in PATH.",
                hint="Install the toolchain on the host or use the Docker substrate.",
                context={"substrate": self.name, "command": " ".join(argv)},
            )
        if env.base_image is not None:
            warnings.warn(
                f"Running `{argv[0]}` on the host instead of {env.base_image}.",
                UnpinnedToolchainWarning,
                stacklevel=2,
            )
        return subprocess.run(
            list(argv),
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
