import pytest

from modkit.errors import ToolchainError
from modkit.models import BuildEnvironment, ExecLayer, FileLayer
from modkit.toolchain import DotnetCli, ManifestWriter, ProjectToolchain
from modkit.toolchain.manifest import project_file, project_guid, render_solution


def _env() -> BuildEnvironment:
    return BuildEnvironment().with_workdir("/src")


def test_dotnet_cli_records_toolchain_invocations() -> None:
    toolchain = DotnetCli()
    env = toolchain.create_group(_env(), "HelloWorld")
    env = toolchain.add_member(env, "Dagger.SDK")
    env = toolchain.create_executable(env, "HelloWorld", framework="net8.0")
    env = toolchain.add_reference(env, "HelloWorld", "Dagger.SDK")

    assert [layer.argv for layer in env.layers if isinstance(layer, ExecLayer)] == [
        ("dotnet", "new", "sln", "--name", "HelloWorld", "--force"),
        ("dotnet", "sln", "add", "Dagger.SDK"),
        (
            "dotnet",
            "new",
            "console",
            "--framework",
            "net8.0",
            "--output",
            "HelloWorld",
            "-n",
            "HelloWorld",
        ),
        ("dotnet", "add", "HelloWorld", "reference", "Dagger.SDK"),
    ]
    assert {layer.workdir for layer in env.layers if isinstance(layer, ExecLayer)} == {"/src"}
    assert env.group == "HelloWorld"
    assert env.projects == ("Dagger.SDK",)
    assert env.references_for("HelloWorld") == ("Dagger.SDK",)


def test_dotnet_cli_honours_custom_tool_path() -> None:
    env = DotnetCli(tool="/usr/share/dotnet/dotnet").create_group(_env(), "Mod")

    assert env.layers[-1].argv[0] == "/usr/share/dotnet/dotnet"


@pytest.mark.parametrize("toolchain", [DotnetCli(), ManifestWriter()])
def test_toolchains_satisfy_protocol(toolchain: ProjectToolchain) -> None:
    env = toolchain.create_group(_env(), "Mod")
    env = toolchain.add_member(env, "Mod")
    env = toolchain.add_member(env, "Mod")

    assert env.projects == ("Mod",)


def test_manifest_writer_rewrites_solution_on_every_member() -> None:
    toolchain = ManifestWriter()
    env = toolchain.create_group(_env(), "HelloWorld")
    env = toolchain.add_member(env, "Dagger.SDK")
    env = toolchain.add_member(env, "Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator")
    env = toolchain.add_member(env, "Dagger.SDK")

    solution = _last_file(env, "/src/HelloWorld.sln")
    assert solution == render_solution(
        ("Dagger.SDK", "Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator")
    )
    assert solution.count('"Dagger.SDK.csproj"') == 0
    assert solution.count("Dagger.SDK\\Dagger.SDK.csproj") == 1
    assert (
        "Dagger.SDK.SourceGenerator\\Dagger.SDK.SourceGenerator\\"
        "Dagger.SDK.SourceGenerator.csproj"
    ) in solution


def test_manifest_writer_solution_is_deterministic() -> None:
    assert render_solution(("A", "B")) == render_solution(("A", "B"))
    assert project_guid("A") == project_guid("A")
    assert project_guid("A") != project_guid("B")
    assert project_file("nested/Lib") == "nested/Lib/Lib.csproj"


def test_manifest_writer_requires_group_before_members() -> None:
    with pytest.raises(ToolchainError) as excinfo:
        ManifestWriter().add_member(_env(), "Dagger.SDK")

    assert excinfo.value.context["project"] == "Dagger.SDK"


def test_manifest_writer_wires_references_into_scaffolded_project() -> None:
    toolchain = ManifestWriter()
    env = toolchain.create_executable(_env(), "HelloWorld", framework="net8.0")
    env = toolchain.add_reference(env, "HelloWorld", "Dagger.SDK")
    env = toolchain.add_reference(env, "HelloWorld", "Dagger.SDK.Mod.SourceGenerator")

    project = _last_file(env, "/src/HelloWorld/HelloWorld.csproj")
    assert "<OutputType>Exe</OutputType>" in project
    assert "<TargetFramework>net8.0</TargetFramework>" in project
    assert '<ProjectReference Include="..\\Dagger.SDK\\Dagger.SDK.csproj" />' in project
    assert (
        '<ProjectReference Include="..\\Dagger.SDK.Mod.SourceGenerator\\'
        'Dagger.SDK.Mod.SourceGenerator.csproj" />'
    ) in project


def test_manifest_writer_refuses_to_edit_foreign_projects() -> None:
    with pytest.raises(ToolchainError) as excinfo:
        ManifestWriter().add_reference(_env(), "HelloWorld", "Dagger.SDK")

    assert "scaffolded" in str(excinfo.value)


def _last_file(env: BuildEnvironment, path: str) -> str:
    matches = [layer for layer in env.layers if isinstance(layer, FileLayer) and layer.path == path]
    assert matches, f"no layer writes {path}"
    return matches[-1].contents.decode("utf-8")
