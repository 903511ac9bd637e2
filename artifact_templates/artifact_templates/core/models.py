"""Domain models for artifact template requests and projection results."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import TemplateResolutionError
from .versions import Version

_REQUEST_KINDS: dict[str, type[TemplateRequest]] = {}


class Dependency(BaseModel):
    """A dependency declaration carried by a request."""

    group_id: str = Field(..., description="Group id of the dependency")
    artifact_id: str = Field(..., description="Artifact id of the dependency")
    version: str | None = Field(default=None, description="Version or range")
    scope: str | None = Field(default=None, description="Dependency scope")
    classifier: str | None = Field(default=None, description="Artifact classifier")
    type: str | None = Field(default=None, description="Artifact packaging type")


class Property(BaseModel):
    """A named property carried by a request."""

    name: str = Field(..., description="Property name")
    value: str | None = Field(default=None, description="Property value")


class TemplateRequest(BaseModel):
    """The base of all artifact template requests.

    Subclasses are request kinds: they declare further properties, may set
    `default_template` and may be `delegating_only`. Every subclass is
    registered under its class name, see `request_kinds()`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    default_template: ClassVar[str | None] = None
    # A delegating only template projects nothing itself; its dependency
    # script is expected to evaluate other requests and return no dependencies.
    delegating_only: ClassVar[bool] = False

    installation_path: str = Field(
        default=".",
        alias="ip",
        description="Installation path of the artifact template projection",
    )
    directory_name: str | None = Field(
        default=None,
        alias="dn",
        description="Directory the projection is nested in, relative to the projection root",
    )
    overwrite: bool = Field(
        default=False,
        alias="o",
        description="Overwrite existing files instead of reporting them",
    )
    template: str | None = Field(
        default=None,
        description="Template identifier overriding the request kind's default",
    )

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        _REQUEST_KINDS[cls.__name__] = cls

    @classmethod
    def kind(cls) -> str:
        return cls.__name__

    def template_identifier(self) -> str:
        identifier = self.template or self.default_template
        if not identifier:
            raise TemplateResolutionError(
                f"No template specified for {self.kind()} and the request kind has no default template"
            )
        return identifier

    def string_properties(self) -> dict[str, str]:
        """Return the declared and extra properties currently holding a string."""
        values = {
            name: getattr(self, name)
            for name in type(self).model_fields
            if isinstance(getattr(self, name), str)
        }
        for name, value in (self.model_extra or {}).items():
            if isinstance(value, str):
                values[name] = value
        return values


class ArtifactTemplateRequest(TemplateRequest):
    """A generic request projecting an explicitly named template."""


def request_kinds() -> dict[str, type[TemplateRequest]]:
    return dict(_REQUEST_KINDS)


def request_from_mapping(data: Mapping[str, Any]) -> TemplateRequest:
    """Build a request from a mapping whose `type` key names a request kind."""
    payload = dict(data)
    kind_name = payload.pop("type", None) or ArtifactTemplateRequest.kind()
    kind = _REQUEST_KINDS.get(kind_name)
    if kind is None:
        raise ValueError(f"Unknown request kind: {kind_name!r}")
    return kind.model_validate(payload)


@dataclass(frozen=True)
class ArtifactCoordinate:
    """A concrete, resolved artifact."""

    group_id: str
    artifact_id: str
    version: Version

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}#{self.version}"


@dataclass(frozen=True)
class ResolvedArchive:
    """A resolved template artifact and the location of its zip part."""

    coordinate: ArtifactCoordinate
    archive_path: Path


@dataclass(frozen=True)
class ProjectionContext:
    """Run scoped values shared by every template of one projection."""

    run_id: str
    installation_path: Path
    scratch_root: Path
    verbose: bool = False


@dataclass(frozen=True)
class ProjectDefault:
    """Project the file at its default destination."""


@dataclass(frozen=True)
class Relocate:
    """Project the file at `path`, relative to the template's destination root."""

    path: str


@dataclass(frozen=True)
class Suppress:
    """Do not project the file."""


FileDirective = Union[ProjectDefault, Relocate, Suppress]


@dataclass(frozen=True)
class RenderedFile:
    text: str
    directive: FileDirective


class StaticDirectiveSet(BaseModel):
    """Directives applied to a template's static content."""

    dirs_to_create: list[str] = Field(default_factory=list)
    ignored: list[str] = Field(default_factory=list)
    relocations: dict[str, str] = Field(default_factory=dict)


class ProjectionResult(BaseModel):
    """Outcome of projecting a request into its installation directory."""

    status: Literal["installed", "already_exists"]
    installation_path: Path
    installed_paths: list[str] = Field(default_factory=list)
    conflicting_paths: list[str] = Field(default_factory=list)
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == "installed"
