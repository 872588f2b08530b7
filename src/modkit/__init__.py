"""Public package entrypoint for the dotnet module build-environment SDK."""

from .config import SdkConfig, parse_config, read_config
from .errors import (
    ConfigError,
    ErrorCode,
    ModkitError,
    SubstrateError,
    TemplateError,
    ToolchainError,
    ValidationError,
)
from .models import (
    BuildEnvironment,
    CommandResult,
    ExecutableEnvironment,
    GeneratedCode,
    IgnoreSpec,
    ModuleDescriptor,
    ModuleSource,
    ProjectReference,
    SdkComponent,
)
from .naming import describe_module, to_camel
from .observability import StructuredLogger
from .sdk import DotnetSdk
from .substrate import DockerSubstrate, LocalSubstrate
from .toolchain import DotnetCli, ManifestWriter

__all__ = [
    "BuildEnvironment",
    "CommandResult",
    "ConfigError",
    "DockerSubstrate",
    "DotnetCli",
    "DotnetSdk",
    "ErrorCode",
    "ExecutableEnvironment",
    "GeneratedCode",
    "IgnoreSpec",
    "LocalSubstrate",
    "ManifestWriter",
    "ModkitError",
    "ModuleDescriptor",
    "ModuleSource",
    "ProjectReference",
    "SdkComponent",
    "SdkConfig",
    "StructuredLogger",
    "SubstrateError",
    "TemplateError",
    "ToolchainError",
    "ValidationError",
    "describe_module",
    "parse_config",
    "read_config",
    "to_camel",
]
