"""Artifact templates - recursive projection of versioned template archives.

Resolves a template artifact, projects its declared template dependencies and
its own static and Jinja2 content into a scratch directory, then installs the
result without overwriting existing files unless asked to.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .cli.app import main
from .core.errors import TemplateProcessingError
from .core.models import ArtifactTemplateRequest, ProjectionResult, TemplateRequest
from .processor import ArtifactTemplateProcessor

__all__ = [
    "ArtifactTemplateProcessor",
    "ArtifactTemplateRequest",
    "ProjectionResult",
    "TemplateProcessingError",
    "TemplateRequest",
    "main",
]
