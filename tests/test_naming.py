import pytest

from modkit.errors import ValidationError
from modkit.models import ModuleSource
from modkit.naming import describe_module, normalize_subpath, to_camel


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("hello world", "HelloWorld"),
        ("hello-world", "HelloWorld"),
        ("Hello_World", "HelloWorld"),
        ("my.module", "MyModule"),
        ("myModule", "MyModule"),
        ("myAPI", "MyApi"),
        ("v2 api", "V2Api"),
        ("module2go", "Module2Go"),
        ("  padded name  ", "PaddedName"),
        ("weird!chars", "Weirdchars"),
    ],
)
def test_to_camel_matches_engine_normalization(raw: str, expected: str) -> None:
    assert to_camel(raw) == expected


def test_equivalent_names_share_one_descriptor(tmp_path) -> None:
    first = describe_module(ModuleSource(context_dir=tmp_path, module_name="my-module"))
    second = describe_module(ModuleSource(context_dir=tmp_path, module_name="My_Module"))

    assert first.identifier == second.identifier == "MyModule"
    assert first.name != second.name


def test_describe_module_rejects_empty_name(tmp_path) -> None:
    with pytest.raises(ValidationError) as excinfo:
        describe_module(ModuleSource(context_dir=tmp_path, module_name="   "))

    assert excinfo.value.code == "E_VALIDATION"


def test_describe_module_rejects_names_without_leading_letter(tmp_path) -> None:
    with pytest.raises(ValidationError) as excinfo:
        describe_module(ModuleSource(context_dir=tmp_path, module_name="42 things"))

    assert excinfo.value.context["identifier"] == "42Things"
    assert excinfo.value.hint is not None


@pytest.mark.parametrize(
    ("subpath", "expected"),
    [("", "."), (".", "."), ("mods/hello/", "mods/hello"), ("a/../b", "b")],
)
def test_normalize_subpath(subpath: str, expected: str) -> None:
    assert normalize_subpath(subpath) == expected


@pytest.mark.parametrize("subpath", ["..", "../outside", "a/../../b", "/abs"])
def test_normalize_subpath_rejects_paths_outside_context(subpath: str) -> None:
    with pytest.raises(ValidationError):
        normalize_subpath(subpath)
