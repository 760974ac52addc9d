"""Implementation of the 'versions' command.

The versions command resolves the release and development versions of
every module and writes them to the properties file.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from release_mapper.cli.prompter import RichPrompter
from release_mapper.config import load_config
from release_mapper.config.loader import find_pyproject_toml
from release_mapper.core.policy import policy_requires_scm
from release_mapper.core.resolver import VersionResolver
from release_mapper.exceptions import ReleaseMapperError
from release_mapper.project.pyproject import discover_modules
from release_mapper.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from release_mapper.config.models import MapperConfig
    from release_mapper.core.models import Module
    from release_mapper.core.registry import VersionRegistry


def apply_overrides(
    config: MapperConfig,
    *,
    batch_mode: bool = False,
    branch: bool = False,
    release_version: str | None = None,
    development_version: str | None = None,
    policy_id: str | None = None,
    auto_version_submodules: bool = False,
) -> MapperConfig:
    """Return a copy of ``config`` with command line flags applied.

    ``release_version`` is the branch version when ``branch`` is set.
    """
    updates: dict[str, Any] = {}
    if batch_mode:
        updates["interactive"] = False
    if branch:
        updates["branch_creation"] = True
    if auto_version_submodules:
        updates["auto_version_submodules"] = True

    version_updates: dict[str, str] = {}
    if release_version:
        version_updates["default_branch" if branch else "default_release"] = release_version
    if development_version:
        version_updates["default_development"] = development_version
    if version_updates:
        updates["versions"] = config.versions.model_copy(update=version_updates)

    if policy_id:
        updates["policy"] = config.policy.model_copy(update={"id": policy_id})

    return config.model_copy(update=updates) if updates else config


def run_versions(
    path: str | None,
    execute: bool,
    batch_mode: bool,
    branch: bool,
    release_version: str | None,
    development_version: str | None,
    policy_id: str | None,
    auto_version_submodules: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the versions command.

    Args:
        path: Optional path to project directory
        execute: Whether to actually write the properties file
        batch_mode: Resolve without prompting
        branch: Resolve branch and working copy versions instead of release and development
        release_version: Default release (or branch) version for the root module
        development_version: Default development version for the root module
        policy_id: Version policy override
        auto_version_submodules: Give every module the root module's version
        console: Console for standard output
        err_console: Console for error output
    """
    project_path = Path(path) if path else Path.cwd()

    # Load configuration
    try:
        config = load_config(project_path)
    except ReleaseMapperError as e:
        err_console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    config = apply_overrides(
        config,
        batch_mode=batch_mode,
        branch=branch,
        release_version=release_version,
        development_version=development_version,
        policy_id=policy_id,
        auto_version_submodules=auto_version_submodules,
    )

    try:
        project_root = find_pyproject_toml(project_path).parent
        modules = discover_modules(project_root, config)
    except ReleaseMapperError as e:
        err_console.print(f"[red]Error reading modules:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    # Only history-aware policies need a repository
    scm = None
    if policy_requires_scm(config.policy.id):
        try:
            scm = GitRepository(project_root)
        except ReleaseMapperError as e:
            err_console.print(f"[red]Error:[/] {escape(str(e))}")
            raise SystemExit(1) from e

    resolver = VersionResolver(
        config,
        prompter=RichPrompter(console) if config.interactive else None,
        scm=scm,
    )
    try:
        registry = resolver.run(modules, simulate=not execute)
    except ReleaseMapperError as e:
        err_console.print(f"[red]Error resolving versions:[/] {escape(str(e))}")
        if e.__cause__ is not None:
            err_console.print(f"[dim]Caused by: {escape(str(e.__cause__))}[/]")
        raise SystemExit(1) from e

    mode_str = "[green]EXECUTING[/]" if execute else "[yellow]DRY-RUN[/]"
    console.print(f"\n{mode_str} - Resolved versions for {len(modules)} module(s)\n")
    console.print(_versions_table(modules, registry, branch=config.branch_creation))

    properties_path = project_root / config.properties_path
    if not execute:
        console.print(
            Panel(
                "[bold]Would make the following changes:[/]\n\n"
                f"  • Write {len(registry)} version(s) to [cyan]{config.properties_path}[/]",
                title="[yellow]Dry Run Preview[/]",
                border_style="yellow",
            )
        )
        console.print("\n[dim]Run with [cyan]--execute[/] to apply these changes.[/]")
        return

    try:
        registry.write_properties(properties_path)
    except OSError as e:
        err_console.print(f"[red]Error writing {config.properties_path}:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(
        Panel(
            f"[green]Wrote {len(registry)} version(s) to {config.properties_path}[/]",
            title="[green]Versions Mapped[/]",
            border_style="green",
        )
    )


def _versions_table(modules: list[Module], registry: VersionRegistry, *, branch: bool) -> Table:
    if branch:
        release_label, development_label = "Branch", "Working copy"
    else:
        release_label, development_label = "Release", "Development"

    table = Table(title="Module versions")
    table.add_column("Module", style="cyan")
    table.add_column("Current")
    table.add_column(release_label, style="green")
    table.add_column(development_label, style="yellow")
    for module in modules:
        table.add_row(
            module.key,
            module.version,
            registry.get_release_version(module.key) or "-",
            registry.get_development_version(module.key) or "-",
        )
    return table
