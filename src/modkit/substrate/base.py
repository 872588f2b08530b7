"""Protocol for execution substrates and the shared layer evaluator."""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import Protocol

from modkit.errors import SubstrateError
from modkit.globs import matches_any
from modkit.models import (
    BuildEnvironment,
    CommandResult,
    DirectoryLayer,
    ExecLayer,
    ExecutableEnvironment,
    FileLayer,
    MountLayer,
)

ExecRunner = Callable[[BuildEnvironment, ExecLayer, Path], None]


class Substrate(Protocol):
    name: str

    def entries(self, env: BuildEnvironment, path: str = ".") -> tuple[str, ...]:
        """Evaluate *env* and list the entry names of directory *path*."""

    def directory(self, env: BuildEnvironment, path: str = ".") -> Path:
        """Evaluate *env* and export directory *path* to a fresh host directory."""

    def run(self, executable: ExecutableEnvironment) -> CommandResult:
        """Evaluate the environment and execute its entrypoint."""


# ---------------------------------------------------------------------------
# Shared utilities for substrates that replay layers into a host tree
# ---------------------------------------------------------------------------


def host_path(root: Path, container_path: str) -> Path:
    """Map an absolute container path onto the evaluated tree at *root*."""
    parts = PurePosixPath(container_path).parts
    return root.joinpath(*parts[1:])


def host_argv(env: BuildEnvironment, root: Path, argv: tuple[str, ...]) -> tuple[str, ...]:
    """Rewrite arguments that name paths under a mount onto the host tree."""
    targets = [mount.target for mount in env.mounts]
    rewritten: list[str] = []
    for arg in argv:
        if any(arg == target or arg.startswith(f"{target}/") for target in targets):
            rewritten.append(str(host_path(root, arg)))
        else:
            rewritten.append(arg)
    return tuple(rewritten)


@contextmanager
def materialized(
    env: BuildEnvironment,
    *,
    scratch_dir: Path | None,
    run_exec: ExecRunner,
) -> Iterator[Path]:
    """Replay *env* into a private scratch tree that lives for the block."""
    if scratch_dir is not None:
        scratch_dir.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(prefix="modkit-", dir=scratch_dir) as tmp:
        root = Path(tmp) / "rootfs"
        root.mkdir()
        evaluate_layers(env, root, run_exec=run_exec)
        yield root


def evaluate_layers(env: BuildEnvironment, root: Path, *, run_exec: ExecRunner) -> None:
    for layer in env.layers:
        if isinstance(layer, MountLayer):
            target = host_path(root, layer.target)
            if target.exists():
                shutil.rmtree(target)
            copy_tree(layer.source, target)
        elif isinstance(layer, DirectoryLayer):
            target = host_path(root, layer.path)
            if layer.replace and target.exists():
                shutil.rmtree(target)
            copy_tree(layer.source, target, exclude=layer.exclude)
        elif isinstance(layer, FileLayer):
            _write_file(host_path(root, layer.path), layer.contents)
        else:
            host_path(root, layer.workdir).mkdir(parents=True, exist_ok=True)
            run_exec(env, layer, root)


def copy_tree(source: Path, dest: Path, *, exclude: tuple[str, ...] = ()) -> None:
    """Merge *source* into *dest*, skipping paths matched by *exclude*.

    Symlinks are followed and their targets copied as real files and
    directories; the scratch tree must not point back into the host.
    """
    if not source.is_dir():
        raise SubstrateError(
            "Source directory does not exist.",
            context={"operation": "copy", "source": str(source)},
        )

    def ignore(directory: str, names: list[str]) -> set[str]:
        relative_base = Path(directory).relative_to(source)
        return {name for name in names if matches_any(exclude, (relative_base / name).as_posix())}

    try:
        shutil.copytree(source, dest, ignore=ignore if exclude else None, dirs_exist_ok=True)
    except OSError as exc:
        raise SubstrateError(
            "Copying directory into the environment failed.",
            hint="Dangling or looping symlinks in the source tree cannot be copied.",
            context={"operation": "copy", "source": str(source), "error": str(exc)},
        ) from exc


def list_entries(root: Path, env: BuildEnvironment, path: str) -> tuple[str, ...]:
    directory = host_path(root, env.resolve(path))
    if not directory.is_dir():
        raise SubstrateError(
            "Directory does not exist in the environment.",
            context={"operation": "entries", "path": env.resolve(path)},
        )
    return tuple(sorted(entry.name for entry in directory.iterdir()))


def export_directory(
    root: Path,
    env: BuildEnvironment,
    path: str,
    *,
    scratch_dir: Path | None,
) -> Path:
    source = host_path(root, env.resolve(path))
    output = Path(tempfile.mkdtemp(prefix="modkit-export-", dir=scratch_dir))
    try:
        copy_tree(source, output)
    except SubstrateError:
        shutil.rmtree(output, ignore_errors=True)
        raise
    return output


def _write_file(path: Path, contents: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(contents)
    except OSError as exc:
        raise SubstrateError(
            "Writing file into the environment failed.",
            context={"operation": "write", "path": str(path), "error": str(exc)},
        ) from exc
