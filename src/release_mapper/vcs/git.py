"""Git-backed change-log source.

git is called as a subprocess. The log is requested with ASCII unit and
record separators so that multi-line commit bodies survive parsing.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from release_mapper.core.history import ChangeSet
from release_mapper.exceptions import GitError

_logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%H%x1f%D%x1f%B%x1e"
_TAG_PREFIX = "tag: "


def parse_decorations(decorations: str) -> tuple[str, ...]:
    """Extract tag names from a ``%D`` decoration list.

    >>> parse_decorations("HEAD -> main, tag: v1.0, tag: 1.0, origin/main")
    ('v1.0', '1.0')
    """
    refs = (ref.strip() for ref in decorations.split(","))
    return tuple(ref[len(_TAG_PREFIX) :] for ref in refs if ref.startswith(_TAG_PREFIX))


def parse_log(output: str) -> list[ChangeSet]:
    """Parse ``git log`` output produced with the record format used here."""
    change_sets = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        revision, decorations, message = record.split(_FIELD_SEP, 2)
        change_sets.append(
            ChangeSet(
                message=message.strip(),
                tags=parse_decorations(decorations),
                revision=revision,
            )
        )
    return change_sets


class GitRepository:
    """A git working tree, used as the SCM collaborator for history mining.

    Args:
        path: Any directory inside the working tree
        logger: Logger for executed commands

    Raises:
        GitError: If ``path`` is not inside a git working tree
    """

    def __init__(self, path: Path | str, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _logger
        self.path = Path(path).resolve()
        self.path = Path(self._run("rev-parse", "--show-toplevel").strip())

    def _run(self, *args: str) -> str:
        command = ["git", *args]
        self.logger.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                cwd=self.path,
            )
        except FileNotFoundError as e:
            raise GitError("git not found. Install git and make sure it is on PATH") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {args[0]} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout

    def has_commits(self) -> bool:
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", "HEAD"],
            capture_output=True,
            text=True,
            check=False,
            cwd=self.path,
        )
        return result.returncode == 0

    def change_log(self, limit: int) -> list[ChangeSet]:
        """Return at most ``limit`` commits reachable from HEAD, newest first.

        Raises:
            GitError: If git fails
        """
        if not self.has_commits():
            return []
        output = self._run("log", "-n", str(limit), f"--format={_LOG_FORMAT}")
        return parse_log(output)

    def __repr__(self) -> str:
        return f"GitRepository({str(self.path)!r})"
