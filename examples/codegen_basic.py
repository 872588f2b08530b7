"""Generate a module's dotnet project tree without a local dotnet install."""

from pathlib import Path

from modkit import DotnetSdk, ManifestWriter, ModuleSource


def generate_hello_world() -> None:
    sdk = DotnetSdk(sdk_source_dir=Path("sdk"), toolchain=ManifestWriter())
    source = ModuleSource(context_dir=Path("."), module_name="hello world")

    with sdk.codegen(source, Path("introspection.json")) as generated:
        generated.export(".")
        for path in generated.files():
            if generated.is_ignored(path):
                continue
            print(path)


if __name__ == "__main__":
    generate_hello_world()
