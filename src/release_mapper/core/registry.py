"""Resolved versions per phase and module."""

from __future__ import annotations

from typing import TYPE_CHECKING

from release_mapper.core.models import Phase
from release_mapper.exceptions import RegistryError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from pathlib import Path


class VersionRegistry:
    """Mapping of (phase, module key) to the assigned version.

    Each slot is written at most once. A missing entry means the phase was
    not run for that module and reads return None.
    """

    def __init__(self) -> None:
        self._versions: dict[Phase, dict[str, str]] = {phase: {} for phase in Phase}

    def record(self, phase: Phase, module_key: str, version: str) -> None:
        """Store a version.

        Raises:
            RegistryError: If the slot already holds a version
        """
        slot = self._versions[phase]
        if module_key in slot:
            raise RegistryError(
                f"{phase} version of {module_key} is already set to {slot[module_key]}"
            )
        slot[module_key] = version

    def record_all(self, phase: Phase, versions: Mapping[str, str]) -> None:
        clashes = sorted(set(versions) & set(self._versions[phase]))
        if clashes:
            raise RegistryError(f"{phase} versions already set for: {', '.join(clashes)}")
        for module_key, version in versions.items():
            self.record(phase, module_key, version)

    def get_version(self, phase: Phase, module_key: str) -> str | None:
        return self._versions[phase].get(module_key)

    def get_release_version(self, module_key: str) -> str | None:
        """Release slot: the release version, or the branch version for branch runs."""
        return self.get_version(Phase.RELEASE, module_key) or self.get_version(
            Phase.BRANCH_RELEASE, module_key
        )

    def get_development_version(self, module_key: str) -> str | None:
        """Development slot: the next development or working copy version."""
        return self.get_version(Phase.DEVELOPMENT, module_key) or self.get_version(
            Phase.BRANCH_DEVELOPMENT, module_key
        )

    def phase_versions(self, phase: Phase) -> dict[str, str]:
        return dict(self._versions[phase])

    def copy(self) -> VersionRegistry:
        clone = VersionRegistry()
        for phase, versions in self._versions.items():
            clone._versions[phase] = dict(versions)
        return clone

    def __iter__(self) -> Iterator[tuple[Phase, str, str]]:
        for phase, versions in self._versions.items():
            for key, version in versions.items():
                yield phase, key, version

    def __len__(self) -> int:
        return sum(len(v) for v in self._versions.values())

    def to_properties(self) -> str:
        """Render ``project.rel.<key>=<version>`` / ``project.dev.<key>=<version>`` lines."""
        lines = [
            f"{_property_prefix(phase)}.{key}={version}" for phase, key, version in self
        ]
        return "\n".join(lines) + "\n" if lines else ""

    def write_properties(self, path: Path) -> Path:
        path.write_text(self.to_properties())
        return path


def _property_prefix(phase: Phase) -> str:
    return "project.rel" if phase.is_release_slot else "project.dev"
