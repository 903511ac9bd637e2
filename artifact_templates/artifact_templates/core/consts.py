"""Reserved names inside an artifact template package."""

from __future__ import annotations

TEMPLATE_SUFFIX = ".j2"

DEPENDENCIES_SCRIPT = "dependencies.py"

CONTENT_DIR = "content"

STATIC_DIR = "static"
STATIC_DIR_FULL = f"{CONTENT_DIR}/{STATIC_DIR}"
DYNAMIC_DIR = "dynamic"
DYNAMIC_DIR_FULL = f"{CONTENT_DIR}/{DYNAMIC_DIR}"
PROJECTED_DIR = "projected"
PROJECTED_DIR_FULL = f"{DYNAMIC_DIR_FULL}/{PROJECTED_DIR}"
STATIC_TEMPLATE = f"static{TEMPLATE_SUFFIX}"
STATIC_TEMPLATE_FULL = f"{DYNAMIC_DIR_FULL}/{STATIC_TEMPLATE}"

ARCHIVE_ZIP_PART = "archive:zip"

SCRATCH_DIR_PREFIX = "template-projection-"
UNPACK_DIR_PREFIX = "template-"
