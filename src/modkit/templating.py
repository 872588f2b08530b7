"""Entrypoint source templates rendered for every module invocation."""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from importlib import resources

from jinja2 import Environment, StrictUndefined, TemplateError as JinjaTemplateError

from .errors import TemplateError
from .models import ModuleDescriptor

TEMPLATE_PACKAGE = "modkit"
TEMPLATE_DIR = "templates"


class TemplateId(StrEnum):
    PROGRAM = "Program.cs"
    MAIN_MODULE = "MainModule.cs"


def entrypoint_path(template_id: TemplateId, identifier: str) -> str:
    """Project-relative destination of a rendered template."""
    if template_id is TemplateId.PROGRAM:
        return f"{identifier}/Program.cs"
    return f"{identifier}/{identifier}.cs"


def load_template(template_id: TemplateId) -> str:
    resource = resources.files(TEMPLATE_PACKAGE) / TEMPLATE_DIR / f"{template_id.value}.j2"
    try:
        return resource.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TemplateError(
            "Entrypoint template is missing from the package.",
            hint="Reinstall modkit; template files ship as package data.",
            context={"template": template_id.value},
        ) from exc


def render_template(template_id: TemplateId, module: ModuleDescriptor) -> str:
    source = load_template(template_id)
    try:
        template = _environment().from_string(source)
        return template.render(module=module.identifier)
    except JinjaTemplateError as exc:
        raise TemplateError(
            "Entrypoint template failed to render.",
            hint="Template files are packaging artifacts; fix the template, not the module.",
            context={"template": template_id.value, "error": str(exc)},
        ) from exc


def render_entrypoints(module: ModuleDescriptor) -> dict[str, str]:
    """Render every template, keyed by its path relative to the workdir."""
    return {
        entrypoint_path(template_id, module.identifier): render_template(template_id, module)
        for template_id in TemplateId
    }


@lru_cache(maxsize=1)
def _environment() -> Environment:
    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=False,
        lstrip_blocks=False,
    )
    # Templates see only the render arguments; `range`, `namespace` etc. are undefined.
    env.globals.clear()
    return env


__all__ = [
    "TemplateId",
    "entrypoint_path",
    "load_template",
    "render_entrypoints",
    "render_template",
]
