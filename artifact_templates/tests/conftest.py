"""Pytest fixtures for the artifact template tests."""

from __future__ import annotations

import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from artifact_templates.core.models import ArtifactCoordinate
from artifact_templates.core.settings import Settings
from artifact_templates.core.versions import Version
from artifact_templates.processor import ArtifactTemplateProcessor

PublishTemplate = Callable[[str, dict[str, str | bytes]], Path]


def coordinate(identifier: str) -> ArtifactCoordinate:
    """Build a coordinate from `group:artifact#version`."""
    group_artifact, version = identifier.split("#")
    group_id, artifact_id = group_artifact.split(":")
    return ArtifactCoordinate(group_id, artifact_id, Version.parse(version))


def read_tree(root: Path) -> dict[str, str]:
    """Map every file below `root` to its text content."""
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def repository(tmp_path: Path) -> Path:
    """Empty local artifact repository."""
    root = tmp_path / "repository"
    root.mkdir()
    return root


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    """Parent of every scratch and unpack directory."""
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def installation(tmp_path: Path) -> Path:
    """Installation directory of the projection."""
    return tmp_path / "installation"


# =============================================================================
# Template Fixtures
# =============================================================================


@pytest.fixture
def publish_template(repository: Path) -> PublishTemplate:
    """Publish a template archive built from a `{zip entry: content}` mapping.

    Entries ending with "/" become directory entries.
    """

    def _publish(identifier: str, files: dict[str, str | bytes]) -> Path:
        group_artifact, version = identifier.split("#")
        group_id, artifact_id = group_artifact.split(":")
        version_dir = repository.joinpath(*group_id.split("."), artifact_id, version)
        version_dir.mkdir(parents=True, exist_ok=True)

        archive = version_dir / f"{artifact_id}-{version}-archive.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            for name, content in files.items():
                zf.writestr(name, content)
        return archive

    return _publish


@pytest.fixture
def settings(repository: Path, temp_root: Path) -> Settings:
    return Settings(repository_path=repository, temp_root=temp_root, delete_attempts=1)


@pytest.fixture
def processor(settings: Settings) -> ArtifactTemplateProcessor:
    return ArtifactTemplateProcessor.from_settings(settings)
