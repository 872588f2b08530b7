"""Build and run a module inside the pinned dotnet SDK image."""

import sys
from pathlib import Path

from modkit import DockerSubstrate, DotnetCli, DotnetSdk, ModuleSource, read_config


def run_module(context_dir: str, module_name: str) -> int:
    sdk = DotnetSdk(
        sdk_source_dir=Path("sdk"),
        config=read_config("modkit.json"),
        substrate=DockerSubstrate(docker_args=["--network", "host"]),
        toolchain=DotnetCli(),
    )
    source = ModuleSource(context_dir=Path(context_dir), module_name=module_name)

    runtime = sdk.module_runtime(source, Path("introspection.json"))
    result = sdk.run(runtime)
    sys.stdout.write(result.stdout)
    sys.stderr.write(result.stderr)
    sdk.logger.to_json_lines(Path("build") / "modkit.jsonl")
    return result.returncode


if __name__ == "__main__":
    raise SystemExit(run_module(sys.argv[1], sys.argv[2]))
