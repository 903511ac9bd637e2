"""File system operations for template projection."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
import zipfile
from pathlib import Path

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

logger = logging.getLogger(__name__)


def ensure_parent(path: Path) -> None:
    """Ensure parent directories exist for the given path.

    Args:
        path: Path whose parent directories should be created
    """
    path.parent.mkdir(parents=True, exist_ok=True)


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write text to a file atomically using a temporary file.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        os.chmod(path, mode)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)


def create_temp_dir(prefix: str, root: Path | None = None) -> Path:
    """Create a uniquely named temporary directory.

    Args:
        prefix: Directory name prefix, a random UUID is appended
        root: Parent directory, the system temp directory when omitted

    Returns:
        Path of the created directory
    """
    if root is not None:
        ensure_dir(root)
    return Path(
        tempfile.mkdtemp(prefix=f"{prefix}{uuid.uuid4()}-", dir=str(root) if root else None)
    )


def copy_file(source: Path, target: Path) -> None:
    ensure_parent(target)
    shutil.copy2(source, target)


def copy_dir(source: Path, target: Path) -> None:
    """Merge-copy a directory tree, overwriting files present in both trees."""
    shutil.copytree(source, target, dirs_exist_ok=True)


def copy_entry(source: Path, target: Path) -> None:
    """Copy a file or a directory tree to `target`."""
    if source.is_dir():
        copy_dir(source, target)
    else:
        copy_file(source, target)


def delete_dir(path: Path, attempts: int = 3) -> bool:
    """Delete a directory tree, retrying transient failures.

    Failures are logged, never raised.

    Args:
        path: Directory to delete
        attempts: Number of deletion attempts

    Returns:
        True when the directory no longer exists
    """
    if not path.exists():
        return True

    retrying = Retrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_fixed(0.2),
        retry=retry_if_exception_type(OSError),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=False,
    )
    try:
        for attempt in retrying:
            with attempt:
                shutil.rmtree(path)
    except RetryError as exc:
        logger.warning(
            f"Failed to delete directory {path}: {exc.last_attempt.exception()}"
        )
        return False

    logger.debug(f"Deleted directory {path}")
    return True


def unzip_to_temp_dir(
    archive: Path, prefix: str, root: Path | None = None
) -> Path:
    """Extract a zip archive into a fresh temporary directory.

    Raises:
        zipfile.BadZipFile: When the archive is not a valid zip file
    """
    target = create_temp_dir(prefix, root)
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(target)
    except (zipfile.BadZipFile, OSError):
        delete_dir(target)
        raise

    logger.debug(f"Unzipped {archive} → {target}")
    return target


def list_relative_files(root: Path) -> list[str]:
    """List all files below `root` as sorted relative POSIX paths."""
    if not root.exists():
        return []
    return sorted(
        path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()
    )


def list_relative_entries(root: Path) -> list[str]:
    """List files and empty directories below `root` as sorted relative paths."""
    entries = []
    for path in root.rglob("*"):
        if path.is_file() or (path.is_dir() and not any(path.iterdir())):
            entries.append(path.relative_to(root).as_posix())
    return sorted(entries)


def collect_mismatched_relative_paths(source: Path, target: Path) -> list[str]:
    """Return relative paths that are a file on one side and a directory on the other.

    Entries below a mismatched directory are not reported again.
    """
    mismatched: list[str] = []
    for path in sorted(source.rglob("*")):
        relative = path.relative_to(source).as_posix()
        existing = target / relative
        if path.is_dir() and existing.exists() and not existing.is_dir():
            mismatched.append(relative)
        elif path.is_file() and existing.is_dir():
            mismatched.append(relative)
    return mismatched


def collect_overwritten_relative_paths(source: Path, target: Path) -> list[str]:
    """Return relative paths of `source` entries that installing would overwrite.

    These are files already present in `target` plus every file/directory
    type mismatch, see `collect_mismatched_relative_paths`.
    """
    existing_files = [
        relative
        for relative in list_relative_files(source)
        if (target / relative).exists()
    ]
    return sorted(set(existing_files) | set(collect_mismatched_relative_paths(source, target)))


def format_tree(root: Path) -> str:
    """Render a directory tree as indented text."""
    lines: list[str] = []

    def _walk(directory: Path, depth: int) -> None:
        for entry in sorted(directory.iterdir(), key=lambda p: (p.is_file(), p.name)):
            suffix = "/" if entry.is_dir() else ""
            lines.append(f"{'    ' * depth}{entry.name}{suffix}")
            if entry.is_dir():
                _walk(entry, depth + 1)

    if root.exists():
        _walk(root, 1)
    return "\n".join(lines)
