"""Toolchain that writes solution and project manifests directly.

Manifests are rendered from the state tracked on the environment (group
members, scaffolded projects, reference edges), so the same environment
always yields byte-identical files. No dotnet install is needed to build the
environment; only running it does.
"""

from __future__ import annotations

import posixpath
import textwrap
import uuid
from dataclasses import dataclass

from modkit.errors import ToolchainError
from modkit.models import BuildEnvironment

CSHARP_PROJECT_TYPE = "{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}"
PROJECT_GUID_NAMESPACE = uuid.UUID("6ba7b811-9dad-11d1-80b4-00c04fd430c8")

SOLUTION_HEADER = textwrap.dedent("""\

    Microsoft Visual Studio Solution File, Format Version 12.00
    # Visual Studio Version 17
    VisualStudioVersion = 17.0.31903.59
    MinimumVisualStudioVersion = 10.0.40219.1
""")

CONSOLE_PROJECT_TEMPLATE = """\
<Project Sdk="Microsoft.NET.Sdk">

  <PropertyGroup>
    <OutputType>Exe</OutputType>
    <TargetFramework>{framework}</TargetFramework>
    <ImplicitUsings>enable</ImplicitUsings>
    <Nullable>enable</Nullable>
  </PropertyGroup>
{references}
</Project>
"""


@dataclass(slots=True)
class ManifestWriter:
    name: str = "manifest"

    def create_group(self, env: BuildEnvironment, name: str) -> BuildEnvironment:
        env = env.with_group(name)
        return env.with_new_file(f"{name}.sln", render_solution(()))

    def add_member(self, env: BuildEnvironment, project: str) -> BuildEnvironment:
        if env.group is None:
            raise ToolchainError(
                "Cannot add a member before the project group exists.",
                hint="Create the project group first.",
                context={"toolchain": self.name, "project": project},
            )
        env = env.with_member(project)
        return env.with_new_file(f"{env.group}.sln", render_solution(env.projects))

    def create_executable(
        self,
        env: BuildEnvironment,
        name: str,
        *,
        framework: str,
    ) -> BuildEnvironment:
        env = env.with_scaffold(name, framework)
        return env.with_new_file(project_file(name), render_console_project(framework, ()))

    def add_reference(
        self,
        env: BuildEnvironment,
        project: str,
        reference: str,
    ) -> BuildEnvironment:
        scaffold = env.scaffold_for(project)
        if scaffold is None:
            raise ToolchainError(
                "Manifest writer can only wire references into projects it scaffolded.",
                hint="Use the dotnet CLI toolchain to edit existing projects.",
                context={"toolchain": self.name, "project": project, "reference": reference},
            )
        env = env.with_reference(project, reference)
        includes = tuple(
            _windows_path(posixpath.relpath(project_file(ref), project))
            for ref in env.references_for(project)
        )
        return env.with_new_file(
            project_file(project),
            render_console_project(scaffold.framework, includes),
        )


def project_file(directory: str) -> str:
    return f"{directory}/{posixpath.basename(directory)}.csproj"


def project_guid(directory: str) -> str:
    return "{" + str(uuid.uuid5(PROJECT_GUID_NAMESPACE, directory)).upper() + "}"


def render_solution(projects: tuple[str, ...]) -> str:
    lines = [SOLUTION_HEADER.rstrip("\n")]
    for directory in projects:
        lines.append(
            f'Project("{CSHARP_PROJECT_TYPE}") = "{posixpath.basename(directory)}", '
            f'"{_windows_path(project_file(directory))}", "{project_guid(directory)}"'
        )
        lines.append("EndProject")
    lines.append("Global")
    lines.append("\tGlobalSection(SolutionConfigurationPlatforms) = preSolution")
    lines.append("\t\tDebug|Any CPU = Debug|Any CPU")
    lines.append("\t\tRelease|Any CPU = Release|Any CPU")
    lines.append("\tEndGlobalSection")
    if projects:
        lines.append("\tGlobalSection(ProjectConfigurationPlatforms) = postSolution")
        for directory in projects:
            guid = project_guid(directory)
            for config in ("Debug", "Release"):
                lines.append(f"\t\t{guid}.{config}|Any CPU.ActiveCfg = {config}|Any CPU")
                lines.append(f"\t\t{guid}.{config}|Any CPU.Build.0 = {config}|Any CPU")
        lines.append("\tEndGlobalSection")
    lines.append("EndGlobal")
    return "\n".join(lines) + "\n"


def render_console_project(framework: str, includes: tuple[str, ...]) -> str:
    references = ""
    if includes:
        items = "\n".join(f'    <ProjectReference Include="{path}" />' for path in includes)
        references = f"\n  <ItemGroup>\n{items}\n  </ItemGroup>\n"
    return CONSOLE_PROJECT_TEMPLATE.format(framework=framework, references=references)


def _windows_path(path: str) -> str:
    return path.replace("/", "\\")
