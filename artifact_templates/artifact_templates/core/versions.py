"""Artifact versions, version ranges and template identifiers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

_VERSION_PATTERN = re.compile(
    r"^(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<revision>\d+))?(?:[-.](?P<qualifier>[A-Za-z0-9][A-Za-z0-9.\-]*))?$"
)
_IDENTIFIER_PATTERN = re.compile(
    r"^(?P<group>[^:#\s]+):(?P<artifact>[^:#\s]+)(?:#(?P<range>\S+))?$"
)


@total_ordering
@dataclass(frozen=True)
class Version:
    """A `major.minor[.revision][-qualifier]` version.

    A qualified version sorts before the same unqualified one, so
    `1.0.3-pc < 1.0.3`.
    """

    major: int
    minor: int = 0
    revision: int = 0
    qualifier: str | None = None
    text: str = field(default="", compare=False)

    @classmethod
    def parse(cls, value: str) -> Version:
        match = _VERSION_PATTERN.match(value.strip())
        if not match:
            raise ValueError(f"Invalid version: {value!r}")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor") or 0),
            revision=int(match.group("revision") or 0),
            qualifier=match.group("qualifier"),
            text=value.strip(),
        )

    def _sort_key(self) -> tuple[int, int, int, int, str]:
        return (
            self.major,
            self.minor,
            self.revision,
            0 if self.qualifier else 1,
            self.qualifier or "",
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        if self.text:
            return self.text
        base = f"{self.major}.{self.minor}.{self.revision}"
        return f"{base}-{self.qualifier}" if self.qualifier else base


@dataclass(frozen=True)
class VersionRange:
    """An interval of versions; `None` bounds are open-ended."""

    lower: Version | None = None
    upper: Version | None = None
    lower_inclusive: bool = True
    upper_inclusive: bool = False
    text: str = ""

    @classmethod
    def parse(cls, value: str | None) -> VersionRange:
        """Parse a range expression.

        Accepts Maven interval notation (`[1.0,2.0)`, `(1.0,]`, `[1.2]`),
        a bare `major.minor` version which is widened to the next minor
        version, or a full version which matches exactly.
        """
        if value is None or not value.strip():
            return cls()

        raw = value.strip()
        if raw[0] in "[(":
            return cls._parse_interval(raw)

        version = Version.parse(raw)
        if re.fullmatch(r"\d+\.\d+", raw):
            upper = Version(version.major, version.minor + 1)
            return cls(version, upper, True, False, raw)
        return cls(version, version, True, True, raw)

    @classmethod
    def _parse_interval(cls, raw: str) -> VersionRange:
        if raw[-1] not in "])":
            raise ValueError(f"Invalid version range: {raw!r}")

        lower_inclusive = raw[0] == "["
        upper_inclusive = raw[-1] == "]"
        body = raw[1:-1]

        if "," not in body:
            if not (lower_inclusive and upper_inclusive):
                raise ValueError(f"Invalid version range: {raw!r}")
            version = Version.parse(body)
            return cls(version, version, True, True, raw)

        lower_text, upper_text = (part.strip() for part in body.split(",", 1))
        lower = Version.parse(lower_text) if lower_text else None
        upper = Version.parse(upper_text) if upper_text else None
        return cls(lower, upper, lower_inclusive, upper_inclusive, raw)

    def contains(self, version: Version) -> bool:
        if self.lower is not None:
            if version < self.lower or (
                version == self.lower and not self.lower_inclusive
            ):
                return False
        if self.upper is not None:
            if version > self.upper or (
                version == self.upper and not self.upper_inclusive
            ):
                return False
        return True

    def __str__(self) -> str:
        return self.text or "*"


@dataclass(frozen=True)
class DependencyIdentifier:
    """A parsed `groupId:artifactId#versionRange` template identifier."""

    group_id: str
    artifact_id: str
    version_range: VersionRange = field(default_factory=VersionRange)

    @classmethod
    def parse(cls, value: str) -> DependencyIdentifier:
        match = _IDENTIFIER_PATTERN.match(value.strip())
        if not match:
            raise ValueError(
                f"Invalid template identifier {value!r}, expected groupId:artifactId#versionRange"
            )
        return cls(
            group_id=match.group("group"),
            artifact_id=match.group("artifact"),
            version_range=VersionRange.parse(match.group("range")),
        )

    def __str__(self) -> str:
        if self.version_range.text:
            return f"{self.group_id}:{self.artifact_id}#{self.version_range.text}"
        return f"{self.group_id}:{self.artifact_id}"
