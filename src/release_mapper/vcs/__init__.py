"""Source control integration."""

from __future__ import annotations

from release_mapper.vcs.git import GitRepository

__all__ = ["GitRepository"]
