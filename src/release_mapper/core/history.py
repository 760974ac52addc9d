"""Commit history mining.

The history of interest is every commit since the most recent release
tag. The SCM collaborator is asked for its change log in growing pages
(10, 20, 30, ...) until a commit carrying a release tag shows up or the
history runs out. Each round rebuilds the change list from scratch
because page boundaries shift between rounds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from release_mapper.core.version import BumpType, max_bump
from release_mapper.exceptions import AmbiguousTagError, MiningError, ScmError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from release_mapper.core.rules import VersionRules

_logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class ChangeSet:
    """One commit as reported by the SCM collaborator, newest first."""

    message: str
    tags: tuple[str, ...] = ()
    revision: str | None = None


class ChangeLogSource(Protocol):
    """SCM collaborator: returns at most ``limit`` change sets, newest first.

    Implementations raise :class:`~release_mapper.exceptions.ScmError` on failure.
    """

    def change_log(self, limit: int) -> Sequence[ChangeSet]: ...


@dataclass(frozen=True)
class ClassifiedCommit:
    message: str
    bump: BumpType


def _first_line(message: str) -> str:
    return message.splitlines()[0] if message else ""


@dataclass
class CommitHistory:
    """Classified commits since the last release tag plus that tag's version."""

    commits: list[ClassifiedCommit] = field(default_factory=list)
    tag_version: str | None = None

    @property
    def changes(self) -> list[str]:
        return [c.message for c in self.commits]

    @property
    def max_commit_bump(self) -> BumpType:
        """Strongest bump among the classified commits, ignoring the tag."""
        return max_bump(*(c.bump for c in self.commits))

    def __str__(self) -> str:
        lines = [f"  [{c.bump}] {_first_line(c.message)}" for c in self.commits]
        lines.append(f"  tag: {self.tag_version or 'NOT FOUND'}")
        return "\n".join(lines)


def mine_history(
    source: ChangeLogSource,
    rules: VersionRules,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_commits: int | None = None,
    logger: logging.Logger | None = None,
) -> CommitHistory:
    """Walk the change log back to the most recent release tag.

    Args:
        source: SCM change-log collaborator
        rules: Rules used to recognise release tags and classify commits
        page_size: Initial page size and growth per round
        max_commits: Stop once this many commits were requested
        logger: Logger for progress messages

    Returns:
        Commit history; ``tag_version`` is None when no tag was found

    Raises:
        AmbiguousTagError: If the tagged commit has several release tags
        MiningError: If the SCM collaborator fails
    """
    log = logger or _logger
    if page_size < 1:
        raise MiningError(f"Page size must be positive, got {page_size}")

    classified: dict[str, BumpType] = {}
    limit = 0
    previous_size = -1

    while True:
        limit += page_size
        if max_commits is not None:
            limit = min(limit, max_commits)

        try:
            change_sets = list(source.change_log(limit))
        except ScmError as e:
            raise MiningError(f"Unable to obtain the information from the SCM history: {e}") from e

        log.debug("Requested %d change sets, received %d", limit, len(change_sets))

        history = CommitHistory()
        for change_set in change_sets:
            versions = [v for v in (rules.extract_tag(t) for t in change_set.tags) if v is not None]
            if versions:
                if len(versions) > 1:
                    raise AmbiguousTagError(versions)
                history.tag_version = versions[0]
                break

            if change_set.message not in classified:
                classified[change_set.message] = rules.classify(change_set.message)
            history.commits.append(
                ClassifiedCommit(change_set.message, classified[change_set.message])
            )

        if history.tag_version is not None:
            log.debug(
                "Found release tag %s after %d commits", history.tag_version, len(history.commits)
            )
            return history

        exhausted = len(change_sets) < limit or len(change_sets) <= previous_size
        capped = max_commits is not None and limit >= max_commits
        if exhausted or capped:
            log.debug("No release tag found in %d commits", len(history.commits))
            return history
        previous_size = len(change_sets)
