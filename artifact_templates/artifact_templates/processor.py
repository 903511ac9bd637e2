"""Recursive projection of artifact template requests."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .core.consts import SCRATCH_DIR_PREFIX
from .core.errors import DependencyCycleError, ProjectionError
from .core.models import (
    ProjectionContext,
    ProjectionResult,
    ResolvedArchive,
    TemplateRequest,
)
from .core.settings import Settings
from .projection.expander import RequestPropertyExpander
from .projection.installer import Installer
from .projection.projector import TemplateProjector
from .rendering.io import create_temp_dir, delete_dir
from .resolution.resolver import ArtifactResolver, LocalRepositoryResolver, TemplateResolver
from .resolution.scripting import DependencyDiscoverer, PythonScriptEngine, ScriptEngine

logger = logging.getLogger(__name__)

_RequestKey = tuple[str, str, str]


class ArtifactTemplateProcessor:
    """Resolves the requested artifact template and projects it, dependencies first.

    Every run projects into a fresh scratch directory which is only copied into
    the installation directory once the whole template tree was projected.
    """

    def __init__(
        self,
        resolver: TemplateResolver,
        expander: RequestPropertyExpander,
        discoverer: DependencyDiscoverer,
        projector: TemplateProjector,
        installer: Installer,
        temp_root: Path | None = None,
        max_depth: int = 64,
        delete_attempts: int = 3,
        verbose: bool = False,
    ) -> None:
        self.resolver = resolver
        self.expander = expander
        self.discoverer = discoverer
        self.projector = projector
        self.installer = installer
        self.temp_root = temp_root
        self.max_depth = max_depth
        self.delete_attempts = delete_attempts
        self.verbose = verbose

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        artifact_resolver: ArtifactResolver | None = None,
        script_engine: ScriptEngine | None = None,
    ) -> ArtifactTemplateProcessor:
        artifact_resolver = artifact_resolver or LocalRepositoryResolver(settings.repository_path)
        return cls(
            resolver=TemplateResolver(artifact_resolver, settings.temp_root),
            expander=RequestPropertyExpander(settings.config_path),
            discoverer=DependencyDiscoverer(
                script_engine or PythonScriptEngine(), settings.config_path
            ),
            projector=TemplateProjector(settings.config_path, settings.file_mode),
            installer=Installer(settings.delete_attempts),
            temp_root=settings.temp_root,
            max_depth=settings.max_depth,
            delete_attempts=settings.delete_attempts,
            verbose=settings.verbose,
        )

    def process(self, request: TemplateRequest) -> ProjectionResult:
        """Project the request's template tree and install it.

        Returns:
            The installation result, `already_exists` when files would be overwritten

        Raises:
            ProjectionError: When resolving, evaluating or rendering any template fails
        """
        installation_path = Path(request.installation_path)
        scratch_root = create_temp_dir(SCRATCH_DIR_PREFIX, self.temp_root)
        context = ProjectionContext(
            run_id=str(uuid.uuid4()),
            installation_path=installation_path,
            scratch_root=scratch_root,
            verbose=self.verbose or logger.isEnabledFor(logging.DEBUG),
        )

        logger.debug(
            f"Projecting artifact template to the installation directory: {installation_path}"
        )

        try:
            self._project(request, scratch_root, context, ())
        except Exception as exc:
            delete_dir(scratch_root, self.delete_attempts)
            raise ProjectionError(
                f"Failed to project the requested artifact template: {exc}"
            ) from exc

        return self.installer.install(scratch_root, installation_path, request.overwrite)

    def _project(
        self,
        request: TemplateRequest,
        scratch_root: Path,
        context: ProjectionContext,
        chain: tuple[_RequestKey, ...],
    ) -> None:
        if len(chain) >= self.max_depth:
            raise DependencyCycleError(
                f"Template dependencies of {request.kind()} exceed the maximum depth of {self.max_depth}"
            )

        logger.debug(f"Projecting '{request.kind()}' property values")
        self.expander.expand(request)

        identifier = request.template_identifier()
        key = (request.kind(), identifier, repr(sorted(request.model_dump().items())))
        if key in chain:
            raise DependencyCycleError(
                f"Template {identifier} of {request.kind()} depends on itself"
            )

        logger.debug(f"Resolving artifact template: {identifier}")
        archive = self.resolver.resolve(identifier, request.kind())
        logger.debug(f"Found: {archive.coordinate}")

        with self._unpacked(archive) as template_dir:
            dependencies = self.discoverer.discover(
                template_dir, request, context, archive.coordinate
            )

            if request.delegating_only:
                if dependencies:
                    logger.warning(
                        f"Ignoring dependencies of {request.kind()} with template {identifier} "
                        "because it is marked as delegating only."
                    )
                return

            for dependency in dependencies:
                self._project(dependency, scratch_root, context, chain + (key,))

            logger.info(f"Projecting artifact template: {archive.coordinate}")
            destination = scratch_root / (request.directory_name or "")
            self.projector.project(
                request, template_dir, scratch_root, destination, archive.coordinate
            )

    @contextmanager
    def _unpacked(self, archive: ResolvedArchive) -> Iterator[Path]:
        logger.debug(f"Unzipping artifact template: {archive.coordinate}")
        template_dir = self.resolver.unpack(archive)
        try:
            yield template_dir
        finally:
            delete_dir(template_dir, self.delete_attempts)
