"""release-mapper: map release and development versions across a multi-module project."""

from __future__ import annotations

__version__ = "0.1.0"
