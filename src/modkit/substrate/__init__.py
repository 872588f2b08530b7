"""Execution substrate interfaces and implementations."""

from .base import Substrate, copy_tree, host_path
from .docker import DockerSubstrate
from .local import LocalSubstrate, UnpinnedToolchainWarning

__all__ = [
    "DockerSubstrate",
    "LocalSubstrate",
    "Substrate",
    "UnpinnedToolchainWarning",
    "copy_tree",
    "host_path",
]
