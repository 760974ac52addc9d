"""Reactor modules and resolution phases."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class Module:
    """A module of the reactor, identified by ``group:artifact``.

    Modules are created by project discovery and never change during a run.
    """

    group: str
    artifact: str
    version: str
    name: str | None = None

    @property
    def key(self) -> str:
        return f"{self.group}:{self.artifact}"

    @property
    def display_name(self) -> str:
        return self.name or self.artifact


_QUESTIONS = {
    "release": "What is the release version for",
    "development": "What is the new development version for",
    "branch-release": "What is the branch version for",
    "branch-development": "What is the new working copy version for",
}


class Phase(StrEnum):
    """Stage of the release workflow being mapped."""

    RELEASE = "release"
    DEVELOPMENT = "development"
    BRANCH_RELEASE = "branch-release"
    BRANCH_DEVELOPMENT = "branch-development"

    @property
    def is_release_slot(self) -> bool:
        """Whether the phase fills the release slot (tag or branch version)."""
        return self in (Phase.RELEASE, Phase.BRANCH_RELEASE)

    @property
    def expects_snapshot(self) -> bool:
        # A bumped branch continues development, so it carries the marker too.
        return self != Phase.RELEASE

    def question(self, module: Module) -> str:
        return f'{_QUESTIONS[self.value]} "{module.display_name}"? ({module.key})'
