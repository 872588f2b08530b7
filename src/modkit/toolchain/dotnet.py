"""Toolchain backed by the dotnet CLI inside the build environment."""

from __future__ import annotations

from dataclasses import dataclass

from modkit.models import BuildEnvironment


@dataclass(slots=True)
class DotnetCli:
    name: str = "dotnet"
    tool: str = "dotnet"

    def create_group(self, env: BuildEnvironment, name: str) -> BuildEnvironment:
        return env.with_exec((self.tool, "new", "sln", "--name", name, "--force")).with_group(name)

    def add_member(self, env: BuildEnvironment, project: str) -> BuildEnvironment:
        # `dotnet sln add` leaves an existing entry alone and exits 0.
        return env.with_exec((self.tool, "sln", "add", project)).with_member(project)

    def create_executable(
        self,
        env: BuildEnvironment,
        name: str,
        *,
        framework: str,
    ) -> BuildEnvironment:
        command = (
            self.tool,
            "new",
            "console",
            "--framework",
            framework,
            "--output",
            name,
            "-n",
            name,
        )
        return env.with_exec(command).with_scaffold(name, framework)

    def add_reference(
        self,
        env: BuildEnvironment,
        project: str,
        reference: str,
    ) -> BuildEnvironment:
        command = (self.tool, "add", project, "reference", reference)
        return env.with_exec(command).with_reference(project, reference)
