"""Version suggestion policies.

A policy proposes the next release version and the next development
version for a module. Policies are looked up by identifier:

- ``default``: release strips the development marker, development bumps
  MINOR and re-appends the marker.
- ``ccsemver``: release is computed from the commit history since the last
  release tag (Conventional Commits); development as ``default``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from release_mapper.core.history import DEFAULT_PAGE_SIZE, CommitHistory, mine_history
from release_mapper.core.rules import VersionRules
from release_mapper.core.version import BumpType, Version
from release_mapper.exceptions import PolicyNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from release_mapper.config.models import RulesConfig
    from release_mapper.core.history import ChangeLogSource

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyRequest:
    """Input to a policy: the base version plus optional SCM access and rules."""

    version: str
    scm: ChangeLogSource | None = None
    config: str | None = None
    rules: RulesConfig | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    max_commits: int | None = None


class VersionPolicy(ABC):
    """Strategy that suggests release and development versions."""

    policy_id: ClassVar[str]
    description: ClassVar[str] = ""
    requires_scm: ClassVar[bool] = False

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _logger

    @abstractmethod
    def suggest_release(self, request: PolicyRequest) -> str:
        """Suggest the version to release.

        Raises:
            VersionFormatError: If the request version cannot be parsed
        """

    @abstractmethod
    def suggest_development(self, request: PolicyRequest) -> str:
        """Suggest the next development version.

        Raises:
            VersionFormatError: If the request version cannot be parsed
        """


_POLICIES: dict[str, type[VersionPolicy]] = {}


def register_policy(
    policy_id: str,
) -> Callable[[type[VersionPolicy]], type[VersionPolicy]]:
    """Class decorator registering a policy under ``policy_id``."""

    def decorator(cls: type[VersionPolicy]) -> type[VersionPolicy]:
        cls.policy_id = policy_id
        _POLICIES[policy_id] = cls
        return cls

    return decorator


def available_policies() -> list[str]:
    return sorted(_POLICIES)


def policy_requires_scm(policy_id: str) -> bool:
    """Whether the policy reads the commit history; False for unknown identifiers."""
    cls = _POLICIES.get(policy_id)
    return cls is not None and cls.requires_scm


def get_policy(policy_id: str, *, logger: logging.Logger | None = None) -> VersionPolicy:
    """Instantiate the policy registered under ``policy_id``.

    Raises:
        PolicyNotFoundError: If no policy has that identifier
    """
    try:
        cls = _POLICIES[policy_id]
    except KeyError:
        raise PolicyNotFoundError(policy_id, available_policies()) from None
    return cls(logger=logger)


# -----------------------------------------------------------------------------
# Pure suggestion functions
# -----------------------------------------------------------------------------


def release_bump(history: CommitHistory) -> BumpType:
    """Bump level implied by a commit history.

    Any MAJOR commit wins, then any MINOR commit. Without either, a found
    release tag still forces a PATCH; without a tag nothing changes.
    """
    bump = history.max_commit_bump
    if bump in (BumpType.MAJOR, BumpType.MINOR):
        return bump
    if history.tag_version is not None:
        return BumpType.PATCH
    return BumpType.NONE


def suggest_release_version(current_version: str, history: CommitHistory) -> str:
    """Release version anchored on the last tag, or on the current version.

    Raises:
        VersionFormatError: If the anchor version cannot be parsed
    """
    anchor = history.tag_version or current_version
    return str(Version.parse(anchor).bump(release_bump(history)).to_release())


def suggest_development_version(current_version: str) -> str:
    """Next development version: MINOR bump plus the development marker.

    Raises:
        VersionFormatError: If the version cannot be parsed
    """
    return str(Version.parse(current_version).bump(BumpType.MINOR).to_snapshot())


# -----------------------------------------------------------------------------
# Policies
# -----------------------------------------------------------------------------


@register_policy("default")
class DefaultVersionPolicy(VersionPolicy):
    description = "Release the current version without the development marker."

    def suggest_release(self, request: PolicyRequest) -> str:
        return str(Version.parse(request.version).to_release())

    def suggest_development(self, request: PolicyRequest) -> str:
        return suggest_development_version(request.version)


@register_policy("ccsemver")
class ConventionalCommitsPolicy(DefaultVersionPolicy):
    description = (
        "Semantic versioning driven by Conventional Commits messages since the last release tag."
    )
    requires_scm = True

    def suggest_release(self, request: PolicyRequest) -> str:
        rules = VersionRules.from_config(request.config, request.rules)
        if request.scm is None:
            self.logger.debug("No SCM attached, using an empty commit history")
            history = CommitHistory()
        else:
            history = mine_history(
                request.scm,
                rules,
                page_size=request.page_size,
                max_commits=request.max_commits,
                logger=self.logger,
            )
        return self.suggest_from_history(request.version, history, rules)

    def suggest_from_history(
        self,
        current_version: str,
        history: CommitHistory,
        rules: VersionRules | None = None,
    ) -> str:
        """Suggest the release version for an already mined history."""
        bump = release_bump(history)
        release_version = suggest_release_version(current_version, history)

        self.logger.debug("Version rules           : %r", rules)
        self.logger.debug("Project version         : %s", current_version)
        self.logger.debug("Commit history          :\n%s", history)
        self.logger.debug("Next version            : %s", release_version)

        if history.tag_version is not None:
            self.logger.info(
                "From SCM tag with version %s doing a %s version increase to version %s",
                history.tag_version,
                bump.value.upper(),
                release_version,
            )
        elif bump == BumpType.NONE:
            self.logger.info(
                "From project version %s (no valid SCM tags, no minor/major commit messages) "
                "going to version %s",
                current_version,
                release_version,
            )
        else:
            self.logger.info(
                "From project version %s (no valid SCM tags) doing a %s version increase "
                "based on commit messages to version %s",
                current_version,
                bump.value.upper(),
                release_version,
            )
        return release_version
