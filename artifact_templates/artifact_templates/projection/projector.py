"""Projection of one unpacked template into the scratch projection tree."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any

from jinja2 import Environment

from ..core.consts import (
    DYNAMIC_DIR_FULL,
    PROJECTED_DIR,
    STATIC_DIR_FULL,
    STATIC_TEMPLATE,
    STATIC_TEMPLATE_FULL,
    TEMPLATE_SUFFIX,
)
from ..core.errors import TemplateRenderError
from ..core.models import (
    ArtifactCoordinate,
    Relocate,
    StaticDirectiveSet,
    Suppress,
    TemplateRequest,
)
from ..rendering.engine import create_environment, render_file, render_static_directives
from ..rendering.io import atomic_write_text, copy_entry, copy_file, ensure_dir
from ..rendering.support import TemplateSupport

logger = logging.getLogger(__name__)


def _normalize(path: str) -> str:
    return PurePosixPath(path.replace("\\", "/").strip("/")).as_posix()


def _is_under(relative: str, prefixes: set[str]) -> bool:
    return any(relative == p or relative.startswith(f"{p}/") for p in prefixes)


def _natural_destination(relative: str) -> str:
    """Map a path relative to the dynamic directory to its default destination."""
    prefix = f"{PROJECTED_DIR}/"
    return relative[len(prefix) :] if relative.startswith(prefix) else relative


class TemplateProjector:
    """Merges a template's static and dynamic content into a destination directory."""

    def __init__(self, config_path: Path | None = None, file_mode: int = 0o644) -> None:
        self.config_path = config_path
        self.file_mode = file_mode

    def project(
        self,
        request: TemplateRequest,
        template_dir: Path,
        scratch_root: Path,
        destination: Path,
        coordinate: ArtifactCoordinate,
    ) -> None:
        """Project the template content into `destination`.

        Args:
            request: The expanded request of the template
            template_dir: Unpacked template directory
            scratch_root: Root of the scratch projection tree
            destination: Directory within `scratch_root` receiving the content
            coordinate: Resolved template, used in diagnostics

        Raises:
            TemplateRenderError: When a templated file or the static template fails
        """
        if not destination.resolve().is_relative_to(scratch_root.resolve()):
            raise TemplateRenderError(
                f"Directory name of {request.kind()} points outside of the projection directory"
            )
        ensure_dir(destination)
        dynamic_dir = template_dir / DYNAMIC_DIR_FULL
        env = create_environment(dynamic_dir if dynamic_dir.is_dir() else None)
        data_model: dict[str, Any] = {
            "request": request,
            "support": TemplateSupport(request, self.config_path),
        }

        directives = self._static_directives(env, dynamic_dir, data_model, coordinate)
        self._project_static(
            template_dir / STATIC_DIR_FULL, scratch_root, destination, directives, coordinate
        )
        if dynamic_dir.is_dir():
            self._project_dynamic(env, dynamic_dir, scratch_root, destination, data_model, coordinate)

    def _static_directives(
        self,
        env: Environment,
        dynamic_dir: Path,
        data_model: dict[str, Any],
        coordinate: ArtifactCoordinate,
    ) -> StaticDirectiveSet:
        if not (dynamic_dir / STATIC_TEMPLATE).is_file():
            return StaticDirectiveSet()

        try:
            return render_static_directives(env, STATIC_TEMPLATE, data_model)
        except Exception as exc:
            raise TemplateRenderError(
                f"Failed to render {STATIC_TEMPLATE_FULL} of template {coordinate}: {exc}"
            ) from exc

    def _project_static(
        self,
        static_dir: Path,
        scratch_root: Path,
        destination: Path,
        directives: StaticDirectiveSet,
        coordinate: ArtifactCoordinate,
    ) -> None:
        for dir_path in directives.dirs_to_create:
            ensure_dir(self._target(scratch_root, destination, dir_path, coordinate))

        if not static_dir.is_dir():
            if directives.relocations:
                raise TemplateRenderError(
                    f"Template {coordinate} relocates static content but has no {STATIC_DIR_FULL} directory"
                )
            return

        relocations = {_normalize(s): t for s, t in directives.relocations.items()}
        excluded = {_normalize(p) for p in directives.ignored} | set(relocations)

        for path in sorted(static_dir.rglob("*")):
            relative = path.relative_to(static_dir).as_posix()
            if _is_under(relative, excluded):
                continue
            if path.is_file():
                copy_file(path, destination / relative)
            elif path.is_dir() and not any(path.iterdir()):
                ensure_dir(destination / relative)

        for source, target in relocations.items():
            source_path = static_dir / source
            if not source_path.exists():
                raise TemplateRenderError(
                    f"Cannot relocate {STATIC_DIR_FULL}/{source} of template {coordinate}, it does not exist"
                )
            copy_entry(source_path, self._target(scratch_root, destination, target, coordinate))
            logger.debug(f"Relocated static {source} → {target}")

    def _project_dynamic(
        self,
        env: Environment,
        dynamic_dir: Path,
        scratch_root: Path,
        destination: Path,
        data_model: dict[str, Any],
        coordinate: ArtifactCoordinate,
    ) -> None:
        for path in sorted(p for p in dynamic_dir.rglob("*") if p.is_file()):
            relative = path.relative_to(dynamic_dir).as_posix()
            if relative == STATIC_TEMPLATE:
                continue

            natural = _natural_destination(relative)
            if not relative.endswith(TEMPLATE_SUFFIX):
                copy_file(path, destination / natural)
                continue

            try:
                rendered = render_file(env, relative, data_model)
            except Exception as exc:
                raise TemplateRenderError(
                    f"Failed to render {DYNAMIC_DIR_FULL}/{relative} of template {coordinate}: {exc}"
                ) from exc

            if isinstance(rendered.directive, Suppress):
                continue
            if isinstance(rendered.directive, Relocate):
                target = self._target(scratch_root, destination, rendered.directive.path, coordinate)
            else:
                target = destination / natural[: -len(TEMPLATE_SUFFIX)]

            atomic_write_text(target, rendered.text, mode=self.file_mode)
            logger.debug(f"Rendered {relative} → {target}")

    def _target(
        self,
        scratch_root: Path,
        destination: Path,
        relative: str,
        coordinate: ArtifactCoordinate,
    ) -> Path:
        """Resolve a directive path, keeping it inside the scratch projection tree."""
        target = (destination / _normalize(relative)).resolve()
        if not target.is_relative_to(scratch_root.resolve()):
            raise TemplateRenderError(
                f"Template {coordinate} projects {relative!r} outside of the projection directory"
            )
        return target
