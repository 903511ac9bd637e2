"""Discovery of template dependencies through the `dependencies.py` script."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

from ..core.consts import DEPENDENCIES_SCRIPT
from ..core.errors import ScriptEvaluationError
from ..core.models import (
    ArtifactCoordinate,
    ProjectionContext,
    TemplateRequest,
    request_from_mapping,
    request_kinds,
)
from ..rendering.support import TemplateSupport

logger = logging.getLogger(__name__)


class ScriptEngine(Protocol):
    def evaluate(self, source: str, data_model: Mapping[str, Any], *, name: str) -> Any:
        """Evaluate a script against a data model and return its result."""
        ...


class PythonScriptEngine:
    """Runs a Python script with the data model as its globals.

    The script's result is the value it binds to `result_name`.
    """

    def __init__(self, result_name: str = "dependencies") -> None:
        self.result_name = result_name

    def evaluate(self, source: str, data_model: Mapping[str, Any], *, name: str) -> Any:
        code = compile(source, name, "exec")
        namespace: dict[str, Any] = {"__name__": "__template_script__", "__file__": name}
        namespace.update(data_model)
        exec(code, namespace)
        return namespace.get(self.result_name, [])


def _as_request(item: Any, position: int) -> TemplateRequest:
    if isinstance(item, TemplateRequest):
        return item
    if isinstance(item, Mapping):
        return request_from_mapping(item)
    raise TypeError(
        f"Dependency #{position} must be a TemplateRequest or a mapping, got {type(item).__name__}"
    )


class DependencyDiscoverer:
    def __init__(self, engine: ScriptEngine, config_path: Path | None = None) -> None:
        self.engine = engine
        self.config_path = config_path

    def discover(
        self,
        template_dir: Path,
        request: TemplateRequest,
        context: ProjectionContext,
        coordinate: ArtifactCoordinate,
    ) -> list[TemplateRequest]:
        """Evaluate the template's dependency script, if any.

        Args:
            template_dir: Unpacked template directory
            request: The expanded request of the template
            context: Run scoped projection context
            coordinate: Resolved template, used in diagnostics

        Returns:
            Ordered requests to project before the template itself

        Raises:
            ScriptEvaluationError: When evaluating the script fails
        """
        script_path = template_dir / DEPENDENCIES_SCRIPT
        if not script_path.is_file():
            return []

        data_model = {
            "request": request,
            "context": context,
            "support": TemplateSupport(request, self.config_path),
            "requests": request_kinds(),
        }

        try:
            source = script_path.read_text(encoding="utf-8")
            result = self.engine.evaluate(
                source, data_model, name=f"{coordinate}/{DEPENDENCIES_SCRIPT}"
            )
            if result is None:
                return []
            if isinstance(result, (str, bytes, Mapping)) or not isinstance(result, Sequence):
                raise TypeError(
                    f"Expected a sequence of requests, got {type(result).__name__}"
                )
            dependencies = [_as_request(item, i) for i, item in enumerate(result)]
        except Exception as exc:
            raise ScriptEvaluationError(
                f"Failed to evaluate the {DEPENDENCIES_SCRIPT} script of template {coordinate}: {exc}"
            ) from exc

        logger.debug(
            f"Template {coordinate} declares {len(dependencies)} dependenc(ies)"
        )
        return dependencies
