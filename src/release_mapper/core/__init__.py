"""Core business logic for release-mapper.

This module contains the fundamental building blocks:
- Version parsing and bump arithmetic
- Commit classification rules and history mining
- Version suggestion policies
- Per-phase version resolution and the version registry
"""

from __future__ import annotations

from release_mapper.core.history import ChangeSet, CommitHistory, mine_history
from release_mapper.core.models import Module, Phase
from release_mapper.core.policy import (
    ConventionalCommitsPolicy,
    DefaultVersionPolicy,
    PolicyRequest,
    VersionPolicy,
    available_policies,
    get_policy,
)
from release_mapper.core.registry import VersionRegistry
from release_mapper.core.resolver import VersionResolver
from release_mapper.core.rules import VersionRules
from release_mapper.core.version import BumpType, Version, is_snapshot, parse_version

__all__ = [
    # Version
    "BumpType",
    # History
    "ChangeSet",
    "CommitHistory",
    # Policies
    "ConventionalCommitsPolicy",
    "DefaultVersionPolicy",
    # Models
    "Module",
    "Phase",
    "PolicyRequest",
    "Version",
    "VersionPolicy",
    "VersionRegistry",
    # Resolution
    "VersionResolver",
    "VersionRules",
    "available_policies",
    "get_policy",
    "is_snapshot",
    "mine_history",
    "parse_version",
]
