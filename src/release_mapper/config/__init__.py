"""Configuration management for release-mapper."""

from __future__ import annotations

from release_mapper.config.loader import load_config
from release_mapper.config.models import (
    MapperConfig,
    PolicyConfig,
    RulesConfig,
    VersionsConfig,
)

__all__ = [
    "MapperConfig",
    "PolicyConfig",
    "RulesConfig",
    "VersionsConfig",
    "load_config",
]
