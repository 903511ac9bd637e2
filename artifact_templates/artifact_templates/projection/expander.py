"""Expansion of templated request property values."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.errors import PropertyExpansionError
from ..core.models import TemplateRequest
from ..rendering.engine import create_environment, render_string
from ..rendering.support import TemplateSupport

logger = logging.getLogger(__name__)


class RequestPropertyExpander:
    """Renders every string property of a request through Jinja2, in place."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path
        self.env = create_environment()

    def expand(self, request: TemplateRequest) -> TemplateRequest:
        """Expand the request's string properties.

        Values are only assigned once every property rendered, a failure
        leaves the request untouched.

        Raises:
            PropertyExpansionError: When any property fails to render
        """
        data_model = {
            "request": request,
            "support": TemplateSupport(request, self.config_path),
        }

        expanded: dict[str, str] = {}
        for name, value in request.string_properties().items():
            try:
                expanded[name] = render_string(self.env, value, data_model)
            except Exception as exc:
                raise PropertyExpansionError(
                    f"Jinja2 failed while processing {request.kind()}.{name}'s value '{value}': {exc}"
                ) from exc

        for name, value in expanded.items():
            setattr(request, name, value)

        logger.debug(f"Expanded {len(expanded)} property value(s) of {request.kind()}")
        return request
