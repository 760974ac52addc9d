"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from release_mapper.core.history import ChangeSet
from release_mapper.exceptions import PromptError, ScmError


class FakeChangeLog:
    """In-memory change-log source, newest commit first."""

    def __init__(self, change_sets: Sequence[ChangeSet], error: ScmError | None = None) -> None:
        self.change_sets = list(change_sets)
        self.error = error
        self.requested: list[int] = []

    def change_log(self, limit: int) -> list[ChangeSet]:
        self.requested.append(limit)
        if self.error is not None:
            raise self.error
        return self.change_sets[:limit]


class ScriptedPrompter:
    """Prompter returning scripted answers and recording every question."""

    def __init__(self, *answers: str, error: PromptError | None = None) -> None:
        self.answers = list(answers)
        self.error = error
        self.questions: list[tuple[str, str]] = []

    def ask(self, question: str, default: str) -> str:
        self.questions.append((question, default))
        if self.error is not None:
            raise self.error
        # Out of answers: accept the default
        return self.answers.pop(0) if self.answers else ""


@pytest.fixture
def make_change_log() -> Callable[..., FakeChangeLog]:
    """Build a fake change log from ``(message, tags)`` pairs or plain messages."""

    def factory(*entries: str | tuple[str, Sequence[str]], error: ScmError | None = None):
        change_sets = []
        for i, entry in enumerate(entries):
            message, tags = (entry, ()) if isinstance(entry, str) else entry
            change_sets.append(ChangeSet(message=message, tags=tuple(tags), revision=f"rev{i}"))
        return FakeChangeLog(change_sets, error=error)

    return factory


@pytest.fixture
def make_prompter() -> Callable[..., ScriptedPrompter]:
    return ScriptedPrompter


PYPROJECT_TEMPLATE = """\
[project]
name = "{name}"
version = "{version}"
dependencies = [
    "rich>=13.0",
]

{extra}
"""


def write_pyproject(directory: Path, name: str, version: str, extra: str = "") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "pyproject.toml"
    path.write_text(PYPROJECT_TEMPLATE.format(name=name, version=version, extra=extra))
    return path


@pytest.fixture
def temp_project(tmp_path: Path) -> Path:
    """Multi-module project: root ``acme`` 1.2-SNAPSHOT with ``core`` and ``cli`` sub-projects."""
    write_pyproject(
        tmp_path,
        "acme",
        "1.2-SNAPSHOT",
        extra='[tool.release-mapper]\nmodules = ["packages/core", "packages/cli"]\n',
    )
    write_pyproject(tmp_path / "packages" / "core", "acme-core", "1.2-SNAPSHOT")
    write_pyproject(tmp_path / "packages" / "cli", "acme-cli", "0.4.1-SNAPSHOT")
    return tmp_path


@pytest.fixture
def pyproject_writer() -> Callable[..., Path]:
    return write_pyproject
