"""Resolution of template identifiers to unpacked template directories."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Protocol

from ..core.consts import ARCHIVE_ZIP_PART, UNPACK_DIR_PREFIX
from ..core.errors import PartMissingError, TemplateResolutionError
from ..core.models import ArtifactCoordinate, ResolvedArchive
from ..core.versions import DependencyIdentifier, Version
from ..rendering.io import unzip_to_temp_dir

logger = logging.getLogger(__name__)


class ArtifactResolver(Protocol):
    def resolve(self, identifier: DependencyIdentifier) -> ArtifactCoordinate:
        """Resolve an identifier to the best matching concrete artifact.

        Raises:
            TemplateResolutionError: When no artifact matches
        """
        ...

    def resolve_part(self, coordinate: ArtifactCoordinate, part: str) -> Path:
        """Return the local file holding a part (`classifier:type`) of an artifact.

        Raises:
            PartMissingError: When the artifact has no such part
        """
        ...


class LocalRepositoryResolver:
    """Resolves artifacts from a Maven-like directory layout.

    `<root>/<group/as/dirs>/<artifactId>/<version>/<artifactId>-<version>-<classifier>.<type>`
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _artifact_dir(self, group_id: str, artifact_id: str) -> Path:
        return self.root.joinpath(*group_id.split("."), artifact_id)

    def versions(self, group_id: str, artifact_id: str) -> list[Version]:
        artifact_dir = self._artifact_dir(group_id, artifact_id)
        if not artifact_dir.is_dir():
            return []

        versions = []
        for entry in artifact_dir.iterdir():
            if not entry.is_dir():
                continue
            try:
                versions.append(Version.parse(entry.name))
            except ValueError:
                logger.debug(f"Skipping non-version directory {entry}")
        return sorted(versions)

    def resolve(self, identifier: DependencyIdentifier) -> ArtifactCoordinate:
        candidates = [
            v
            for v in self.versions(identifier.group_id, identifier.artifact_id)
            if identifier.version_range.contains(v)
        ]
        if not candidates:
            raise TemplateResolutionError(
                f"No version of {identifier.group_id}:{identifier.artifact_id} "
                f"matches {identifier.version_range} in repository {self.root}"
            )
        return ArtifactCoordinate(
            identifier.group_id, identifier.artifact_id, candidates[-1]
        )

    def resolve_part(self, coordinate: ArtifactCoordinate, part: str) -> Path:
        classifier, _, part_type = part.partition(":")
        version = str(coordinate.version)
        name = f"{coordinate.artifact_id}-{version}"
        if classifier:
            name = f"{name}-{classifier}"
        path = (
            self._artifact_dir(coordinate.group_id, coordinate.artifact_id)
            / version
            / f"{name}.{part_type or 'jar'}"
        )
        if not path.is_file():
            raise PartMissingError(
                f"Part '{part}' not found for artifact: {coordinate}"
            )
        return path


class TemplateResolver:
    """Turns template identifiers into resolved and unpacked template archives."""

    def __init__(self, resolver: ArtifactResolver, temp_root: Path | None = None) -> None:
        self.resolver = resolver
        self.temp_root = temp_root

    def resolve(self, identifier: str, requester: str) -> ResolvedArchive:
        """Resolve a template identifier to its `archive:zip` part.

        Args:
            identifier: `groupId:artifactId#versionRange` string
            requester: Kind of the request the template belongs to

        Raises:
            TemplateResolutionError: When the identifier is invalid or unresolvable
            PartMissingError: When the resolved artifact has no zip archive
        """
        try:
            parsed = DependencyIdentifier.parse(identifier)
        except ValueError as exc:
            raise TemplateResolutionError(
                f"Unable to resolve template {identifier} of {requester}. Reason: {exc}"
            ) from exc

        try:
            coordinate = self.resolver.resolve(parsed)
        except TemplateResolutionError as exc:
            raise TemplateResolutionError(
                f"Unable to resolve template {identifier} of {requester}. Reason: {exc}"
            ) from exc

        archive_path = self.resolver.resolve_part(coordinate, ARCHIVE_ZIP_PART)
        return ResolvedArchive(coordinate=coordinate, archive_path=archive_path)

    def unpack(self, archive: ResolvedArchive) -> Path:
        """Unzip a resolved template into a fresh temporary directory."""
        try:
            return unzip_to_temp_dir(archive.archive_path, UNPACK_DIR_PREFIX, self.temp_root)
        except (zipfile.BadZipFile, OSError) as exc:
            raise TemplateResolutionError(
                f"Failed to unzip template {archive.coordinate} from {archive.archive_path}"
            ) from exc
