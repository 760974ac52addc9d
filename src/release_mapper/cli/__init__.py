"""Command line interface for release-mapper."""
