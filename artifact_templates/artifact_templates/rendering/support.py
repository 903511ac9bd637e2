"""Utility functions exposed to templates and dependency scripts as `support`."""

from __future__ import annotations

import logging
import re
import uuid
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import BaseModel

from ..core.models import Dependency, Property, TemplateRequest
from ..core.versions import Version

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_VERSION = "1.0"
POM_BUILD_SYSTEMS = frozenset({"dr", "bt-ant", "maven"})

_POM_VARIABLE = re.compile(r"\$\{([^}]+)\}")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


class PomSupport:
    """Reads and amends the parent `pom.xml` of an installation directory."""

    def __init__(self, installation_path: str | Path) -> None:
        self.parent_pom = Path(installation_path) / "parent" / "pom.xml"

    def _read(self) -> tuple[str | None, dict[str, str]]:
        try:
            root = ET.parse(self.parent_pom).getroot()
        except (OSError, ET.ParseError) as exc:
            raise ValueError(
                f"Failed to parse pom.xml from provided path {self.parent_pom}"
            ) from exc

        version = _child(root, "version")
        properties = _child(root, "properties")
        props = {}
        if properties is not None:
            props = {_local_name(p.tag): (p.text or "").strip() for p in properties}
        return (version.text or "").strip() if version is not None else None, props

    def default_artifact_version(self, default_version: str) -> str:
        """Return `major.minor` of the parent pom version, or the given default."""
        try:
            raw_version, properties = self._read()
            if not raw_version:
                return default_version
            merged = _POM_VARIABLE.sub(
                lambda m: properties.get(m.group(1), m.group(0)), raw_version
            )
            version = Version.parse(merged)
        except ValueError:
            return default_version
        return f"{version.major}.{version.minor}"

    def ensure_dependency_versions(self, *dependencies: str) -> None:
        if not dependencies:
            return
        if len(dependencies) % 2 == 1:
            raise ValueError(
                "Expected even number of elements - pairs of <groupId, version> - "
                f"but got: {list(dependencies)}"
            )

        _, properties = self._read()
        missing: dict[str, str] = {}
        for group_id, version in zip(dependencies[::2], dependencies[1::2]):
            var = f"V.{group_id}"
            if var not in properties:
                missing[var] = version

        if missing:
            self._add_properties(missing)

    def _add_properties(self, missing: dict[str, str]) -> None:
        text = self.parent_pom.read_text(encoding="utf-8")

        closing = text.find("</properties>")
        if closing == -1:
            logger.warning(
                "Will not add group variables to parent pom %s, it has no <properties> element. "
                "Add the following properties manually:%s",
                self.parent_pom,
                _vars_to_add(missing),
            )
            return

        opening = text.rfind("<properties>", 0, closing)
        body = text[opening + len("<properties>") : closing]
        padding_match = re.match(r"(\r?\n[ \t]*)<", body)
        if padding_match is None:
            logger.warning(
                "Will not add group variables to parent pom %s, <properties> element is empty. "
                "Add the following properties manually:%s",
                self.parent_pom,
                _vars_to_add(missing),
            )
            return

        padding = padding_match.group(1)
        content_end = len(body.rstrip())
        insertion = "".join(
            f"{padding}<{name}>{value}</{name}>" for name, value in missing.items()
        )
        new_body = body[:content_end] + insertion + body[content_end:]
        self.parent_pom.write_text(
            text[: opening + len("<properties>")] + new_body + text[closing:],
            encoding="utf-8",
        )
        logger.info(f"Added {', '.join(missing)} to {self.parent_pom}")


def _vars_to_add(missing: dict[str, str]) -> str:
    return "".join(f"\n    <{name}>{value}</{name}>" for name, value in missing.items())


class TemplateSupport:
    """Provides templates and dependency scripts with utility functions.

    `ensure_dependency_versions` edits `<installation>/parent/pom.xml` in place
    while the projection is still running, before conflicts are checked. Those
    edits remain even when the run ends as `already_exists` or fails.
    """

    def __init__(
        self,
        request: TemplateRequest | None = None,
        config_path: Path | None = None,
    ) -> None:
        self._pom = PomSupport(request.installation_path) if request else None
        self._config_path = config_path
        self._config: dict[str, Any] | None = None

    def config(self, name: str) -> Any:
        """Return the named section of the YAML configuration file."""
        if self._config is None:
            if self._config_path is None or not self._config_path.exists():
                self._config = {}
            else:
                with self._config_path.open(encoding="utf-8") as handle:
                    self._config = yaml.safe_load(handle) or {}

        if name not in self._config:
            raise ValueError(f"Configuration {name!r} not found")
        return self._config[name]

    def map_from_to(
        self,
        source: BaseModel,
        target: BaseModel,
        excluded_properties: Iterable[str] = (),
    ) -> None:
        """Copy same-named property values from `source` to `target`."""
        excluded = set(excluded_properties)
        source_names = set(type(source).model_fields) | set(source.model_extra or {})
        for name in type(target).model_fields:
            if name in excluded or name not in source_names:
                continue
            setattr(target, name, getattr(source, name))

    def create_version_from_string(self, version: str) -> Version:
        return Version.parse(version)

    def generate_random_uuid(self) -> str:
        return str(uuid.uuid4())

    def to_pascal_case(self, value: str, delimiter: str) -> str:
        """Example: to_pascal_case("foo-bar", "-") -> "FooBar"."""
        if value is None or delimiter is None:
            raise ValueError("value and delimiter must not be None")
        return "".join(part.capitalize() for part in value.split(delimiter))

    def get_file_name(self, path: str) -> str:
        """Return the name of the existing file targeted by `path`."""
        try:
            return Path(path).resolve(strict=True).name
        except OSError as exc:
            raise ValueError(
                f"Failed getting file name from {path!r}. "
                "Check if the specified path is correct and the file exists."
            ) from exc

    def get_file_name_without_extension(self, filename: str) -> str:
        stem, dot, _ = filename.rpartition(".")
        return stem if dot and stem else filename

    def get_file_name_extension(self, filename: str) -> str:
        stem, dot, extension = filename.rpartition(".")
        return extension if dot and stem else ""

    def smart_package_name(self, base_package: str, name: str) -> str:
        last_part = base_package.rpartition(".")[2]
        if name == last_part:
            name = ""
        elif name.startswith(f"{last_part}_"):
            name = name[len(last_part) + 1 :]
        return f"{base_package}.{name}" if name else base_package

    def get_default_artifact_version(self, build_system: str | None) -> str:
        if build_system in POM_BUILD_SYSTEMS and self._pom is not None:
            return self._pom.default_artifact_version(DEFAULT_ARTIFACT_VERSION)
        return DEFAULT_ARTIFACT_VERSION

    def ensure_dependency_versions(self, *dependencies: str) -> None:
        """Add missing `V.<groupId>` properties to the parent pom, immediately."""
        if self._pom is None:
            raise ValueError("Dependency versions can only be ensured for a request")
        self._pom.ensure_dependency_versions(*dependencies)

    def distinct_dependencies(self, dependencies: Iterable[Dependency]) -> list[Dependency]:
        """De-duplicate by `group_id:artifact_id`, later entries win, first position kept."""
        distinct: dict[str, Dependency] = {}
        for dependency in dependencies:
            distinct[f"{dependency.group_id}:{dependency.artifact_id}"] = dependency
        return list(distinct.values())

    def distinct_properties(self, properties: Iterable[Property]) -> list[Property]:
        distinct: dict[str, Property] = {}
        for prop in properties:
            distinct[prop.name] = prop
        return list(distinct.values())
