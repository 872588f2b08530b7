"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from modkit import DotnetSdk, LocalSubstrate, ManifestWriter

SDK_FILES = {
    "Dagger.SDK/Dagger.SDK.csproj": "<Project Sdk=\"Microsoft.NET.Sdk\" />\n",
    "Dagger.SDK/Query.cs": "namespace Dagger.SDK;\n",
    "Dagger.SDK/introspection.json": "{\"stale\": true}\n",
    "Dagger.SDK/bin/Debug/Dagger.SDK.dll": "binary\n",
    "Dagger.SDK/obj/project.assets.json": "{}\n",
    "Dagger.SDK.Mod.SourceGenerator/Dagger.SDK.Mod.SourceGenerator.csproj": "<Project />\n",
    "Dagger.SDK.Mod.SourceGenerator/SourceGenerator.cs": "namespace Dagger.SDK.Mod.SourceGenerator;\n",
    "Dagger.SDK.Mod.SourceGenerator/obj/cache.txt": "cache\n",
    "Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator.csproj": (
        "<Project />\n"
    ),
    "Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator/CodeGenerator.cs": "// codegen\n",
    "Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator/bin/Release/out.dll": "binary\n",
    "Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator.Tests/Tests.cs": "// not installed\n",
}


@pytest.fixture
def sdk_source(tmp_path: Path) -> Path:
    """Dotnet SDK checkout with stale build output that must never be installed."""
    root = tmp_path / "sdk"
    for relative, content in SDK_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def context_dir(tmp_path: Path) -> Path:
    root = tmp_path / "context"
    root.mkdir()
    (root / "dagger.json").write_text('{"name": "hello world", "sdk": "dotnet"}\n', encoding="utf-8")
    return root


@pytest.fixture
def introspection(tmp_path: Path) -> Path:
    path = tmp_path / "schema" / "introspection.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"__schema": {"types": []}}\n', encoding="utf-8")
    return path


@pytest.fixture
def sdk(tmp_path: Path, sdk_source: Path) -> DotnetSdk:
    """Driver that needs no dotnet install: manifests are written in-process."""
    return DotnetSdk(
        sdk_source_dir=sdk_source,
        substrate=LocalSubstrate(scratch_dir=tmp_path / "scratch"),
        toolchain=ManifestWriter(),
    )
