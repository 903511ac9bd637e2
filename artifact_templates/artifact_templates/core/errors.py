"""Exceptions raised while processing artifact templates."""

from __future__ import annotations


class TemplateProcessingError(Exception):
    """Base class for every fatal artifact template processing failure."""


class TemplateResolutionError(TemplateProcessingError):
    """Raised when a template identifier matches no available artifact."""


class PartMissingError(TemplateProcessingError):
    """Raised when a resolved artifact lacks the packaged template content."""


class ScriptEvaluationError(TemplateProcessingError):
    """Raised when a template's dependency script cannot be evaluated."""


class TemplateRenderError(TemplateProcessingError):
    """Raised when a templated file or directive script fails to render."""


class PropertyExpansionError(TemplateRenderError):
    """Raised when a request property value fails to render."""


class DependencyCycleError(TemplateProcessingError):
    """Raised when template dependencies recurse into themselves."""


class ProjectionError(TemplateProcessingError):
    """Raised when projecting the requested artifact template fails."""


class InstallationError(TemplateProcessingError):
    """Raised when copying the finished projection into the installation directory fails."""
