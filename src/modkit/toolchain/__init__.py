"""Project-group toolchain interfaces and implementations."""

from .base import ProjectToolchain
from .dotnet import DotnetCli
from .manifest import ManifestWriter

__all__ = [
    "DotnetCli",
    "ManifestWriter",
    "ProjectToolchain",
]
