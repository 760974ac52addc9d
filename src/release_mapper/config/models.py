"""Pydantic models for ``[tool.release-mapper]``."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from release_mapper.core.history import DEFAULT_PAGE_SIZE
from release_mapper.core.models import Phase


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Empty strings count as "not configured".
OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]


class RulesConfig(BaseModel):
    """Commit classification rules for the ``ccsemver`` policy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version_tag: OptionalText = None
    major_rules: list[str] = Field(default_factory=list)
    minor_rules: list[str] = Field(default_factory=list)


class PolicyConfig(BaseModel):
    """Version policy selection and its free-form configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = "default"
    config: OptionalText = None
    rules: RulesConfig = Field(default_factory=RulesConfig)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    max_commits: int | None = Field(default=None, ge=1)


class VersionsConfig(BaseModel):
    """Explicit per-module versions and run-wide default versions."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    release: dict[str, str] = Field(default_factory=dict)
    development: dict[str, str] = Field(default_factory=dict)
    branch: dict[str, str] = Field(default_factory=dict)
    default_release: OptionalText = None
    default_development: OptionalText = None
    default_branch: OptionalText = None

    def explicit_version(self, phase: Phase, module_key: str) -> str | None:
        """Configured version for one module, or None."""
        if phase == Phase.RELEASE:
            candidates = [self.release]
        elif phase == Phase.BRANCH_RELEASE:
            candidates = [self.branch, self.release]
        else:
            candidates = [self.development]
        for versions in candidates:
            version = _blank_to_none(versions.get(module_key))
            if version is not None:
                return str(version)
        return None

    def default_version(self, phase: Phase) -> str | None:
        """Run-wide default version for a phase, or None."""
        if phase == Phase.RELEASE:
            return self.default_release
        if phase == Phase.BRANCH_RELEASE:
            return self.default_branch or self.default_release
        return self.default_development


class MapperConfig(BaseModel):
    """Root configuration model.

    Example pyproject.toml::

        [tool.release-mapper]
        interactive = false
        auto_version_submodules = true
        modules = ["packages/core", "packages/cli"]

        [tool.release-mapper.policy]
        id = "ccsemver"

        [tool.release-mapper.versions]
        default_release = "2.0"
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    interactive: bool = True
    auto_version_submodules: bool = False
    branch_creation: bool = False
    update_branch_versions: bool = False
    update_working_copy_versions: bool = True
    update_versions_to_snapshot: bool = False

    group: str | None = None
    modules: list[str] = Field(default_factory=list)
    properties_path: Path = Path("release.properties")

    versions: VersionsConfig = Field(default_factory=VersionsConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)

    @property
    def phases(self) -> tuple[Phase, Phase]:
        """Phases of a full run, in execution order."""
        if self.branch_creation:
            return (Phase.BRANCH_RELEASE, Phase.BRANCH_DEVELOPMENT)
        return (Phase.RELEASE, Phase.DEVELOPMENT)
