"""Version parsing and bump arithmetic.

Versions are free text. Only policies need numeric semantics, so
:class:`Version` understands the ``N[.N[.N]][-QUALIFIER]`` grammar and
everything else is handled as an opaque string with a single property:
whether it carries the development (snapshot) marker.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import StrEnum

from release_mapper.exceptions import VersionFormatError

SNAPSHOT = "SNAPSHOT"
SNAPSHOT_SUFFIX = f"-{SNAPSHOT}"

_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+)(?:\.(\d+))?)?(?:-(.+))?$")


class BumpType(StrEnum):
    """Magnitude of a version increment."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"

    @property
    def weight(self) -> int:
        return _BUMP_WEIGHTS[self]


_BUMP_WEIGHTS = {
    BumpType.NONE: 0,
    BumpType.PATCH: 1,
    BumpType.MINOR: 2,
    BumpType.MAJOR: 3,
}


def max_bump(*bumps: BumpType) -> BumpType:
    """Return the strongest bump, NONE for no arguments."""
    return max(bumps, key=lambda b: b.weight, default=BumpType.NONE)


def is_snapshot(version: str) -> bool:
    """Check whether a version string carries the development marker."""
    return version.upper().endswith(SNAPSHOT)


def strip_snapshot(version: str) -> str:
    """Remove the development marker, if present."""
    if not is_snapshot(version):
        return version
    base = version[: -len(SNAPSHOT)]
    return base[:-1] if base.endswith("-") else base


def to_snapshot(version: str) -> str:
    """Append the development marker unless it is already there."""
    if is_snapshot(version):
        return version
    return f"{version}{SNAPSHOT_SUFFIX}"


@dataclass(frozen=True)
class Version:
    """A dotted numeric version with an optional qualifier.

    ``precision`` records how many numeric components were written so that
    ``1.2`` stays two components wide after a bump.
    """

    major: int
    minor: int = 0
    patch: int = 0
    qualifier: str | None = None
    precision: int = 3

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse ``N[.N[.N]][-QUALIFIER]``.

        Raises:
            VersionFormatError: If the text does not follow the grammar
        """
        match = _VERSION_RE.match(text.strip())
        if not match:
            raise VersionFormatError(
                f"Invalid version '{text}': expected MAJOR[.MINOR[.PATCH]][-QUALIFIER]",
                version=text,
            )
        major, minor, patch, qualifier = match.groups()
        precision = 1 + (minor is not None) + (patch is not None)
        return cls(
            major=int(major),
            minor=int(minor or 0),
            patch=int(patch or 0),
            qualifier=qualifier,
            precision=precision,
        )

    @property
    def is_snapshot(self) -> bool:
        return self.qualifier is not None and is_snapshot(self.qualifier)

    def bump(self, bump: BumpType) -> Version:
        """Increment one component, resetting the lower ones and dropping the qualifier."""
        if bump == BumpType.MAJOR:
            return Version(self.major + 1, 0, 0, precision=self.precision)
        if bump == BumpType.MINOR:
            return Version(self.major, self.minor + 1, 0, precision=max(self.precision, 2))
        if bump == BumpType.PATCH:
            return Version(self.major, self.minor, self.patch + 1, precision=3)
        return self

    def to_release(self) -> Version:
        """Drop the development marker from the qualifier."""
        if not self.is_snapshot:
            return self
        qualifier = strip_snapshot(self.qualifier or "") or None
        return replace(self, qualifier=qualifier)

    def to_snapshot(self) -> Version:
        if self.is_snapshot:
            return self
        qualifier = f"{self.qualifier}{SNAPSHOT_SUFFIX}" if self.qualifier else SNAPSHOT
        return replace(self, qualifier=qualifier)

    def __str__(self) -> str:
        parts = [self.major, self.minor, self.patch][: self.precision]
        text = ".".join(str(p) for p in parts)
        if self.qualifier:
            text = f"{text}-{self.qualifier}"
        return text


def parse_version(text: str) -> Version:
    """Parse a version string (convenience wrapper around :meth:`Version.parse`)."""
    return Version.parse(text)
