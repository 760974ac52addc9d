"""Exception hierarchy for release-mapper.

Every error raised by the package derives from :class:`ReleaseMapperError`.
The resolution engine wraps failures in :class:`ReleaseExecutionError`
and keeps the original error as ``__cause__``.
"""

from __future__ import annotations


class ReleaseMapperError(Exception):
    """Base class for all release-mapper errors."""


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


class ConfigError(ReleaseMapperError):
    """Configuration could not be loaded."""


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml was found."""


class ConfigValidationError(ConfigError):
    """Configuration values are invalid."""


class PolicyConfigError(ConfigValidationError):
    """Version policy configuration (rules, tag pattern) is invalid."""


# -----------------------------------------------------------------------------
# Project discovery
# -----------------------------------------------------------------------------


class ProjectError(ReleaseMapperError):
    """A project or module descriptor could not be read."""


class VersionNotFoundError(ProjectError):
    """A project descriptor does not declare a version."""


# -----------------------------------------------------------------------------
# Versions and policies
# -----------------------------------------------------------------------------


class VersionFormatError(ReleaseMapperError):
    """A version string cannot be parsed or has the wrong snapshot format."""

    def __init__(self, message: str, version: str | None = None) -> None:
        super().__init__(message)
        self.version = version


class PolicyError(ReleaseMapperError):
    """A version policy could not be used."""


class PolicyNotFoundError(PolicyError):
    """No version policy is registered under the requested identifier."""

    def __init__(self, policy_id: str, available: list[str]) -> None:
        super().__init__(f"Policy '{policy_id}' is unknown, available: {available}")
        self.policy_id = policy_id
        self.available = available


# -----------------------------------------------------------------------------
# Source control and history mining
# -----------------------------------------------------------------------------


class ScmError(ReleaseMapperError):
    """The source-control collaborator failed."""


class GitError(ScmError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr


class MiningError(ReleaseMapperError):
    """Commit history could not be mined."""


class AmbiguousTagError(MiningError):
    """A single commit carries more than one release tag."""

    def __init__(self, tags: list[str]) -> None:
        super().__init__(f"Most recent commit with tags has multiple version tags: {tags}")
        self.tags = tags


# -----------------------------------------------------------------------------
# Resolution
# -----------------------------------------------------------------------------


class PromptError(ReleaseMapperError):
    """The interactive prompt failed or was aborted."""


class RegistryError(ReleaseMapperError):
    """A version registry slot was written twice."""


class ReleaseExecutionError(ReleaseMapperError):
    """Version resolution failed; ``__cause__`` holds the underlying error."""
