"""Commit classification and release tag extraction rules.

A :class:`VersionRules` instance classifies a commit message as a MAJOR,
MINOR or unclassified change and extracts release versions from tag
labels. The builtin rules follow Conventional Commits::

    feat!: ... / feat!(core): ... / feat(core)!: ...  ->  MAJOR
    BREAKING CHANGE: ... (any line)                      ->  MAJOR
    feat: ... / feat(core): ...                          ->  MINOR
    anything else                                        ->  NONE

Extra major/minor rules from configuration are added to the builtins;
a configured tag pattern replaces the default one.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

from release_mapper.core.version import BumpType
from release_mapper.exceptions import PolicyConfigError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from release_mapper.config.models import RulesConfig

MESSAGE_FLAGS = re.MULTILINE | re.DOTALL

# The whole tag label is a dotted numeric version of 1-3 components.
DEFAULT_TAG_PATTERN = r"^([0-9]+(?:\.[0-9]+(?:\.[0-9]+)?)?)$"

DEFAULT_MAJOR_RULES = (
    r"^[a-zA-Z]+!(?:\([a-zA-Z0-9_-]+\))?: .*$",
    r"^[a-zA-Z]+(?:\([a-zA-Z0-9_-]+\))?!: .*$",
    r"^BREAKING CHANGE:.*$",
)
DEFAULT_MINOR_RULES = (r"^feat(?:\([a-zA-Z0-9_-]+\))?: .*$",)


def _compile(pattern: str, flags: int) -> re.Pattern[str]:
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise PolicyConfigError(f"Invalid regular expression {pattern!r}: {e}") from e


class VersionRules:
    """Regular-expression rules used by the conventional-commit policy."""

    def __init__(
        self,
        tag_pattern: str | None = None,
        major_rules: Iterable[str] = (),
        minor_rules: Iterable[str] = (),
    ) -> None:
        self.tag_pattern = _compile(tag_pattern or DEFAULT_TAG_PATTERN, re.MULTILINE)
        self.major_patterns = [
            _compile(rule, MESSAGE_FLAGS) for rule in (*DEFAULT_MAJOR_RULES, *major_rules)
        ]
        self.minor_patterns = [
            _compile(rule, MESSAGE_FLAGS) for rule in (*DEFAULT_MINOR_RULES, *minor_rules)
        ]

    @classmethod
    def from_config(
        cls,
        blob: str | None = None,
        rules: RulesConfig | None = None,
    ) -> VersionRules:
        """Build rules from the free-form policy blob and/or TOML rules.

        Args:
            blob: XML ``<cCSemverConfig>`` document, may be empty
            rules: Rules from ``[tool.release-mapper.policy.rules]``

        Raises:
            PolicyConfigError: If the blob is not valid XML or a rule is not a valid regex
        """
        tag_pattern = rules.version_tag if rules else None
        major_rules = list(rules.major_rules) if rules else []
        minor_rules = list(rules.minor_rules) if rules else []

        if blob and blob.strip():
            blob_tag, blob_major, blob_minor = parse_rules_xml(blob)
            tag_pattern = blob_tag or tag_pattern
            major_rules.extend(blob_major)
            minor_rules.extend(blob_minor)

        return cls(tag_pattern, major_rules, minor_rules)

    def is_major_update(self, message: str) -> bool:
        return any(p.search(message) for p in self.major_patterns)

    def is_minor_update(self, message: str) -> bool:
        return any(p.search(message) for p in self.minor_patterns)

    def classify(self, message: str) -> BumpType:
        """Classify one commit message as MAJOR, MINOR or NONE."""
        if self.is_major_update(message):
            return BumpType.MAJOR
        if self.is_minor_update(message):
            return BumpType.MINOR
        return BumpType.NONE

    def extract_tag(self, label: str) -> str | None:
        """Return the release version encoded in a tag label, or None."""
        match = self.tag_pattern.search(label)
        if not match:
            return None
        return match.group(1) if self.tag_pattern.groups else match.group(0)

    def __repr__(self) -> str:
        return (
            f"VersionRules(tag={self.tag_pattern.pattern!r}, "
            f"major={[p.pattern for p in self.major_patterns]!r}, "
            f"minor={[p.pattern for p in self.minor_patterns]!r})"
        )


def parse_rules_xml(blob: str) -> tuple[str | None, list[str], list[str]]:
    """Read ``versionTag``, ``majorRule`` and ``minorRule`` elements from an XML blob.

    Returns:
        Tuple of (tag pattern or None, major rules, minor rules)

    Raises:
        PolicyConfigError: If the blob is not well-formed XML
    """
    try:
        root = ET.fromstring(blob.strip())
    except ET.ParseError as e:
        raise PolicyConfigError(f"Unable to load the policy configuration: {e}") from e

    tag_element = root.find("versionTag")
    tag_pattern = None
    if tag_element is not None and tag_element.text and tag_element.text.strip():
        tag_pattern = tag_element.text.strip()

    major = [e.text.strip() for e in root.iterfind("majorRules/majorRule") if e.text]
    minor = [e.text.strip() for e in root.iterfind("minorRules/minorRule") if e.text]
    return tag_pattern, major, minor
