"""Implementation of the 'suggest' command.

Shows what the version policy proposes for the root module, including
the mined commit history for history-aware policies.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from release_mapper.config import load_config
from release_mapper.config.loader import find_pyproject_toml
from release_mapper.core.history import mine_history
from release_mapper.core.policy import ConventionalCommitsPolicy, PolicyRequest, get_policy
from release_mapper.core.rules import VersionRules
from release_mapper.exceptions import ReleaseMapperError
from release_mapper.project.pyproject import discover_modules
from release_mapper.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from release_mapper.core.history import CommitHistory


def run_suggest(
    path: str | None,
    policy_id: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the suggest command.

    Args:
        path: Optional path to project directory
        policy_id: Version policy override
        console: Console for standard output
        err_console: Console for error output
    """
    project_path = Path(path) if path else Path.cwd()

    try:
        config = load_config(project_path)
        if policy_id:
            config = config.model_copy(
                update={"policy": config.policy.model_copy(update={"id": policy_id})}
            )
        project_root = find_pyproject_toml(project_path).parent
        root_module = discover_modules(project_root, config)[0]
        policy = get_policy(config.policy.id)
    except ReleaseMapperError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    policy_config = config.policy
    try:
        if isinstance(policy, ConventionalCommitsPolicy):
            rules = VersionRules.from_config(policy_config.config, policy_config.rules)
            history = mine_history(
                GitRepository(project_root),
                rules,
                page_size=policy_config.page_size,
                max_commits=policy_config.max_commits,
            )
            console.print(_history_table(history))
            release = policy.suggest_from_history(root_module.version, history, rules)
        else:
            release = policy.suggest_release(PolicyRequest(version=root_module.version))
        development = policy.suggest_development(PolicyRequest(version=release))
    except ReleaseMapperError as e:
        err_console.print(f"[red]Error computing suggestion:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(
        f"\n[bold]{root_module.key}[/] ([dim]policy {policy.policy_id}[/])\n"
        f"  Current version:     [cyan]{root_module.version}[/]\n"
        f"  Release version:     [green]{release}[/]\n"
        f"  Development version: [yellow]{development}[/]"
    )


def _history_table(history: CommitHistory) -> Table:
    table = Table(title=f"Commits since tag {history.tag_version or '(none found)'}")
    table.add_column("Bump", style="magenta")
    table.add_column("Message")
    for commit in history.commits:
        first_line = commit.message.splitlines()[0] if commit.message else ""
        table.add_row(commit.bump.value, first_line)
    return table
