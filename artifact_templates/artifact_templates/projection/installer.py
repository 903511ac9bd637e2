"""Installation of a finished projection into its installation directory."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.errors import InstallationError
from ..core.models import ProjectionResult
from ..rendering.io import (
    collect_mismatched_relative_paths,
    collect_overwritten_relative_paths,
    copy_dir,
    delete_dir,
    ensure_dir,
    format_tree,
    list_relative_entries,
)

logger = logging.getLogger(__name__)


class Installer:
    """Guards against overwriting existing files, then merge-copies the projection."""

    def __init__(self, delete_attempts: int = 3) -> None:
        self.delete_attempts = delete_attempts

    def install(
        self, scratch_root: Path, installation_path: Path, overwrite: bool
    ) -> ProjectionResult:
        """Install the scratch projection tree.

        The scratch tree is deleted in every case. When `overwrite` is false and
        any projected file already exists, the installation directory is left
        untouched and the conflicting paths are reported. A path that is a file
        on one side and a directory on the other is a conflict even when
        `overwrite` is set.

        Args:
            scratch_root: Finished scratch projection tree
            installation_path: Target installation directory
            overwrite: Whether existing files may be replaced

        Returns:
            Projection result describing the installation or the conflict

        Raises:
            InstallationError: When copying into the installation directory fails
        """
        try:
            return self._install(scratch_root, installation_path, overwrite)
        finally:
            delete_dir(scratch_root, self.delete_attempts)

    def _install(
        self, scratch_root: Path, installation_path: Path, overwrite: bool
    ) -> ProjectionResult:
        try:
            ensure_dir(installation_path)
        except OSError as exc:
            raise InstallationError(
                f"Failed to create the installation directory {installation_path}: {exc}"
            ) from exc

        logger.info(f"Installing:\n{format_tree(scratch_root)}")

        if overwrite:
            conflicts = collect_mismatched_relative_paths(scratch_root, installation_path)
            hint = "Files and directories cannot replace each other, even with 'overwrite' set."
        else:
            conflicts = collect_overwritten_relative_paths(scratch_root, installation_path)
            hint = "To enable overwriting, set the request 'overwrite' flag to true."

        if conflicts:
            message = (
                "Failed to install the template projection as the following files "
                f"would be overwritten: {conflicts}. {hint}"
            )
            logger.error(message)
            return ProjectionResult(
                status="already_exists",
                installation_path=installation_path,
                conflicting_paths=conflicts,
                message=message,
            )

        installed = list_relative_entries(scratch_root)
        try:
            copy_dir(scratch_root, installation_path)
        except OSError as exc:
            raise InstallationError(
                f"Failed to install the template projection into {installation_path}: {exc}"
            ) from exc

        logger.info(f"Installed {len(installed)} path(s) into {installation_path}")
        return ProjectionResult(
            status="installed",
            installation_path=installation_path,
            installed_paths=installed,
            message=f"Projected artifact template into {installation_path}",
        )
