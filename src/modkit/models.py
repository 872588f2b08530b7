"""Core typed dataclasses for build-environment state and pipeline results."""

from __future__ import annotations

import hashlib
import posixpath
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Self

import cbor2

from .globs import matches_any

DEFAULT_BASE_IMAGE = "mcr.microsoft.com/dotnet/sdk:8.0-alpine3.20"
DEFAULT_FRAMEWORK = "net8.0"
MOD_SOURCE_DIR_PATH = "/src"
DEFAULT_INTROSPECTION_PATH = "Dagger.SDK/introspection.json"

DEFAULT_COPY_EXCLUDE = (
    "**/introspection.json",
    "**/bin",
    "**/obj",
)
DEFAULT_VCS_GENERATED = ("Dagger.SDK*/**",)
DEFAULT_VCS_IGNORED = (
    "Dagger.SDK*/**",
    "**/obj",
    "**/bin",
    "**/.idea",
)
DEFAULT_PROJECT_REFERENCES = (
    "Dagger.SDK",
    "Dagger.SDK.Mod.SourceGenerator",
)

ENVIRONMENT_SCHEMA_VERSION = 1


@dataclass(frozen=True, slots=True)
class MountLayer:
    target: str
    source: Path


@dataclass(frozen=True, slots=True)
class DirectoryLayer:
    path: str
    source: Path
    exclude: tuple[str, ...] = ()
    replace: bool = False


@dataclass(frozen=True, slots=True)
class FileLayer:
    path: str
    contents: bytes


@dataclass(frozen=True, slots=True)
class ExecLayer:
    argv: tuple[str, ...]
    workdir: str


Layer = MountLayer | DirectoryLayer | FileLayer | ExecLayer


@dataclass(frozen=True, slots=True)
class ProjectReference:
    project: str
    reference: str


@dataclass(frozen=True, slots=True)
class ProjectScaffold:
    name: str
    framework: str


@dataclass(frozen=True, slots=True)
class BuildEnvironment:
    """Immutable container plan threaded through every pipeline stage.

    Paths recorded in layers are absolute container paths, resolved against
    the working directory at the moment the layer was added. Nothing is
    evaluated here; substrates replay ``layers`` in order.
    """

    base_image: str | None = None
    workdir: str = "/"
    layers: tuple[Layer, ...] = ()
    group: str | None = None
    projects: tuple[str, ...] = ()
    scaffolds: tuple[ProjectScaffold, ...] = ()
    references: tuple[ProjectReference, ...] = ()
    entrypoint: tuple[str, ...] = ()

    @property
    def mounts(self) -> tuple[MountLayer, ...]:
        return tuple(layer for layer in self.layers if isinstance(layer, MountLayer))

    def resolve(self, path: str) -> str:
        return posixpath.normpath(posixpath.join(self.workdir, path))

    def from_(self, image: str) -> Self:
        return replace(self, base_image=image)

    def with_workdir(self, path: str) -> Self:
        return replace(self, workdir=self.resolve(path))

    def with_mounted_directory(self, target: str, source: Path) -> Self:
        return self._append(MountLayer(target=self.resolve(target), source=source))

    def with_directory(
        self,
        path: str,
        source: Path,
        *,
        exclude: tuple[str, ...] = (),
        replace: bool = False,
    ) -> Self:
        layer = DirectoryLayer(
            path=self.resolve(path),
            source=source,
            exclude=tuple(exclude),
            replace=replace,
        )
        return self._append(layer)

    def with_new_file(self, path: str, contents: str | bytes) -> Self:
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        return self._append(FileLayer(path=self.resolve(path), contents=contents))

    def with_exec(self, argv: tuple[str, ...] | list[str]) -> Self:
        return self._append(ExecLayer(argv=tuple(argv), workdir=self.workdir))

    def with_group(self, name: str) -> Self:
        return replace(self, group=name, projects=())

    def with_member(self, project: str) -> Self:
        if project in self.projects:
            return self
        return replace(self, projects=(*self.projects, project))

    def with_scaffold(self, name: str, framework: str) -> Self:
        return replace(self, scaffolds=(*self.scaffolds, ProjectScaffold(name, framework)))

    def with_reference(self, project: str, reference: str) -> Self:
        edge = ProjectReference(project=project, reference=reference)
        if edge in self.references:
            return self
        return replace(self, references=(*self.references, edge))

    def with_entrypoint(self, argv: tuple[str, ...] | list[str]) -> Self:
        return replace(self, entrypoint=tuple(argv))

    def scaffold_for(self, name: str) -> ProjectScaffold | None:
        for scaffold in self.scaffolds:
            if scaffold.name == name:
                return scaffold
        return None

    def references_for(self, project: str) -> tuple[str, ...]:
        return tuple(edge.reference for edge in self.references if edge.project == project)

    def digest(self) -> str:
        """Deterministic identity of the layer plan.

        File contents are folded in by hash; mounted and copied source trees
        are identified by path only.
        """
        encoded = cbor2.dumps(self._payload(), canonical=True)
        return hashlib.sha256(encoded).hexdigest()

    def _append(self, layer: Layer) -> Self:
        return replace(self, layers=(*self.layers, layer))

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": ENVIRONMENT_SCHEMA_VERSION,
            "base_image": self.base_image,
            "workdir": self.workdir,
            "layers": [_layer_payload(layer) for layer in self.layers],
            "group": self.group,
            "projects": list(self.projects),
            "references": [[edge.project, edge.reference] for edge in self.references],
            "entrypoint": list(self.entrypoint),
        }


def _layer_payload(layer: Layer) -> dict[str, object]:
    if isinstance(layer, MountLayer):
        return {"kind": "mount", "target": layer.target, "source": str(layer.source)}
    if isinstance(layer, DirectoryLayer):
        return {
            "kind": "directory",
            "path": layer.path,
            "source": str(layer.source),
            "exclude": list(layer.exclude),
            "replace": layer.replace,
        }
    if isinstance(layer, FileLayer):
        return {
            "kind": "file",
            "path": layer.path,
            "sha256": hashlib.sha256(layer.contents).hexdigest(),
        }
    return {"kind": "exec", "argv": list(layer.argv), "workdir": layer.workdir}


@dataclass(frozen=True, slots=True)
class ModuleSource:
    """User module as handed over by the engine."""

    context_dir: Path
    module_name: str
    source_subpath: str = "."


@dataclass(frozen=True, slots=True)
class ModuleDescriptor:
    name: str
    identifier: str
    subpath: str


@dataclass(frozen=True, slots=True)
class SdkComponent:
    """Fragment of the SDK source tree installed into the module workdir."""

    name: str
    destination: str = ""
    exclude: tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return self.destination or self.name


DEFAULT_COMPONENTS = (
    SdkComponent(name="Dagger.SDK"),
    SdkComponent(name="Dagger.SDK.Mod.SourceGenerator"),
    SdkComponent(name="Dagger.SDK.SourceGenerator/Dagger.SDK.SourceGenerator"),
)


@dataclass(frozen=True, slots=True)
class IgnoreSpec:
    copy_exclude: tuple[str, ...] = DEFAULT_COPY_EXCLUDE
    vcs_generated: tuple[str, ...] = DEFAULT_VCS_GENERATED
    vcs_ignored: tuple[str, ...] = DEFAULT_VCS_IGNORED


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True, slots=True)
class ExecutableEnvironment:
    environment: BuildEnvironment
    module: ModuleDescriptor

    @property
    def argv(self) -> tuple[str, ...]:
        return self.environment.entrypoint

    @property
    def project_path(self) -> str:
        return self.environment.entrypoint[-1]


@dataclass(frozen=True, slots=True)
class GeneratedCode:
    """Exported working tree plus its version-control path classification."""

    root: Path
    vcs_generated_paths: tuple[str, ...] = ()
    vcs_ignored_paths: tuple[str, ...] = ()
    digest: str | None = field(default=None, compare=False)

    def files(self) -> tuple[str, ...]:
        return tuple(
            path.relative_to(self.root).as_posix()
            for path in sorted(self.root.rglob("*"))
            if path.is_file()
        )

    def is_generated(self, path: str) -> bool:
        return matches_any(self.vcs_generated_paths, path)

    def is_ignored(self, path: str) -> bool:
        return matches_any(self.vcs_ignored_paths, path)

    def export(self, destination: str | Path) -> tuple[Path, ...]:
        """Copy the tree over *destination*, overwriting files of the same path."""
        dest_root = Path(destination)
        written: list[Path] = []
        for relative in self.files():
            target = dest_root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.root / relative, target)
            written.append(target)
        return tuple(written)

    def cleanup(self) -> None:
        """Delete the exported tree. Safe to call more than once."""
        shutil.rmtree(self.root, ignore_errors=True)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()


__all__ = [
    "DEFAULT_BASE_IMAGE",
    "DEFAULT_COMPONENTS",
    "DEFAULT_COPY_EXCLUDE",
    "DEFAULT_FRAMEWORK",
    "DEFAULT_INTROSPECTION_PATH",
    "DEFAULT_PROJECT_REFERENCES",
    "DEFAULT_VCS_GENERATED",
    "DEFAULT_VCS_IGNORED",
    "BuildEnvironment",
    "CommandResult",
    "DirectoryLayer",
    "ExecLayer",
    "ExecutableEnvironment",
    "FileLayer",
    "GeneratedCode",
    "IgnoreSpec",
    "Layer",
    "MOD_SOURCE_DIR_PATH",
    "ModuleDescriptor",
    "ModuleSource",
    "MountLayer",
    "ProjectReference",
    "ProjectScaffold",
    "SdkComponent",
]
