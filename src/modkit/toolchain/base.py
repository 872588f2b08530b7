"""Protocol for project-group toolchains."""

from __future__ import annotations

from typing import Protocol

from modkit.models import BuildEnvironment


class ProjectToolchain(Protocol):
    name: str

    def create_group(self, env: BuildEnvironment, name: str) -> BuildEnvironment:
        """Create the project-group descriptor, replacing any existing one."""

    def add_member(self, env: BuildEnvironment, project: str) -> BuildEnvironment:
        """Register *project* in the group; re-adding a member is a no-op."""

    def create_executable(
        self,
        env: BuildEnvironment,
        name: str,
        *,
        framework: str,
    ) -> BuildEnvironment:
        """Scaffold an executable project in directory *name*."""

    def add_reference(
        self,
        env: BuildEnvironment,
        project: str,
        reference: str,
    ) -> BuildEnvironment:
        """Declare a build dependency from *project* on *reference*."""
