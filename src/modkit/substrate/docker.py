"""Container-isolated evaluation via ``docker run``.

Files are still replayed on the host, but every command executes inside the
environment's base image with each mount bind-mounted at its container path.
Only changes below a mount survive a command.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from modkit.errors import SubstrateError, ToolchainError
from modkit.models import BuildEnvironment, CommandResult, ExecLayer, ExecutableEnvironment
from modkit.substrate.base import export_directory, host_path, list_entries, materialized


@dataclass(slots=True)
class DockerSubstrate:
    name: str = "docker"
    docker: str = "docker"
    scratch_dir: Path | None = None
    docker_args: list[str] = field(default_factory=list)

    def entries(self, env: BuildEnvironment, path: str = ".") -> tuple[str, ...]:
        with materialized(env, scratch_dir=self.scratch_dir, run_exec=self._run_exec) as root:
            return list_entries(root, env, path)

    def directory(self, env: BuildEnvironment, path: str = ".") -> Path:
        with materialized(env, scratch_dir=self.scratch_dir, run_exec=self._run_exec) as root:
            return export_directory(root, env, path, scratch_dir=self.scratch_dir)

    def run(self, executable: ExecutableEnvironment) -> CommandResult:
        env = executable.environment
        with materialized(env, scratch_dir=self.scratch_dir, run_exec=self._run_exec) as root:
            cmd = self.command(env, root, executable.argv, env.workdir)
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        return CommandResult(
            argv=tuple(cmd),
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def command(
        self,
        env: BuildEnvironment,
        root: Path,
        argv: tuple[str, ...],
        workdir: str,
    ) -> list[str]:
        """Build the ``docker run`` invocation for *argv* inside the base image."""
        self._ensure_docker_available()
        if env.base_image is None:
            raise SubstrateError(
                "Docker substrate requires a base image.",
                hint="Bootstrap the environment with a pinned image first.",
                context={"substrate": self.name},
            )
        cmd = [self.docker, "run", "--rm"]
        if hasattr(os, "getuid"):
            cmd.extend(["--user", f"{os.getuid()}:{os.getgid()}", "--env", "HOME=/tmp"])
        for target in dict.fromkeys(mount.target for mount in env.mounts):
            cmd.extend(["--volume", f"{host_path(root, target)}:{target}"])
        cmd.extend(["--workdir", workdir, *self.docker_args, env.base_image, *argv])
        return cmd

    def _run_exec(self, env: BuildEnvironment, layer: ExecLayer, root: Path) -> None:
        cmd = self.command(env, root, layer.argv, layer.workdir)
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            raise ToolchainError(
                f"`{layer.argv[0]}` exited with a non-zero status.",
                hint="Check the command output for details.",
                context={
                    "substrate": self.name,
                    "image": env.base_image or "",
                    "command": " ".join(layer.argv),
                    "workdir": layer.workdir,
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:2000] if result.stderr else "",
                },
            )

    def _ensure_docker_available(self) -> None:
        if shutil.which(self.docker) is None:
            raise SubstrateError(
                "Docker substrate requires `docker` in PATH.",
                hint="Install Docker and ensure the daemon is reachable.",
                context={"substrate": self.name, "operation": "prepare"},
            )
