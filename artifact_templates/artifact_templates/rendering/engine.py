"""Template rendering engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from jinja2 import BaseLoader, Environment, FileSystemLoader, StrictUndefined

from ..core.models import (
    FileDirective,
    ProjectDefault,
    Relocate,
    RenderedFile,
    StaticDirectiveSet,
    Suppress,
)

logger = logging.getLogger(__name__)


class _SuppressProjection(Exception):
    """Stops rendering a file whose projection was ignored."""


class FileControl:
    """Exposed to a templated file as `template`, lets it control its projection."""

    def __init__(self) -> None:
        self._relocation_target: str | None = None

    def ignore(self) -> str:
        """Ignore the projection of the file being rendered."""
        raise _SuppressProjection()

    def relocate(self, target: str) -> str:
        """Project the file at `target` instead of its path in the 'projected' directory.

        The target is relative to the template's destination root.
        """
        self._relocation_target = target
        return ""

    def directive(self) -> FileDirective:
        if self._relocation_target:
            return Relocate(self._relocation_target)
        return ProjectDefault()


class StaticHandler:
    """Exposed to the static template as `static`, manipulates the static structure."""

    def __init__(self) -> None:
        self._dirs_to_create: list[str] = []
        self._ignored: list[str] = []
        self._relocations: dict[str, str] = {}

    def create_dir(self, dir_path: str) -> str:
        """Create an empty directory in the destination."""
        self._dirs_to_create.append(dir_path)
        return ""

    def ignore(self, file_path: str) -> str:
        """Do not copy a static file or directory."""
        self._ignored.append(file_path)
        return ""

    def relocate(self, source: str, target: str) -> str:
        """Copy a static file or directory to `target` instead of its own path."""
        self._relocations[source] = target
        return ""

    def directives(self) -> StaticDirectiveSet:
        return StaticDirectiveSet(
            dirs_to_create=list(self._dirs_to_create),
            ignored=list(self._ignored),
            relocations=dict(self._relocations),
        )


def create_environment(search_path: Path | None = None) -> Environment:
    """Create the Jinja2 environment used for every render.

    Args:
        search_path: Directory templates are loaded from, None for string templates

    Returns:
        Configured Jinja2 environment
    """
    loader = FileSystemLoader(str(search_path)) if search_path else BaseLoader()
    return Environment(
        loader=loader,
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        extensions=["jinja2.ext.do", "jinja2.ext.loopcontrols"],
    )


def render_string(env: Environment, source: str, data_model: Mapping[str, Any]) -> str:
    return env.from_string(source).render(**data_model)


def render_file(
    env: Environment, template_name: str, data_model: Mapping[str, Any]
) -> RenderedFile:
    """Render a templated file and return its text along with its directive.

    Args:
        env: Environment whose loader resolves `template_name`
        template_name: POSIX path of the file relative to the loader root
        data_model: Template context, `template` is added per file

    Returns:
        Rendered text and the projection directive chosen by the file
    """
    control = FileControl()
    template = env.get_template(template_name)
    try:
        text = template.render(**data_model, template=control)
    except _SuppressProjection:
        logger.debug(f"Ignoring projection of {template_name}")
        return RenderedFile(text="", directive=Suppress())

    return RenderedFile(text=text, directive=control.directive())


def render_static_directives(
    env: Environment, template_name: str, data_model: Mapping[str, Any]
) -> StaticDirectiveSet:
    """Render the static template and collect the directives it declared."""
    handler = StaticHandler()
    env.get_template(template_name).render(**data_model, static=handler)
    return handler.directives()
