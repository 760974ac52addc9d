"""Command line application."""

from __future__ import annotations

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from release_mapper import __version__

app = typer.Typer(
    name="release-mapper",
    help="Map release and development versions across the modules of a project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)

PathArgument = Annotated[
    str | None,
    typer.Argument(help="Project directory (defaults to the current directory)."),
]
PolicyOption = Annotated[
    str | None,
    typer.Option("--policy", help="Version policy identifier (default, ccsemver)."),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"release-mapper {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """release-mapper command line."""


@app.command()
def versions(
    path: PathArgument = None,
    execute: Annotated[
        bool, typer.Option("--execute", help="Write the properties file.")
    ] = False,
    batch_mode: Annotated[
        bool, typer.Option("--batch-mode", "-B", help="Resolve without prompting.")
    ] = False,
    branch: Annotated[
        bool, typer.Option("--branch", help="Resolve branch and working copy versions.")
    ] = False,
    release_version: Annotated[
        str | None,
        typer.Option("--release-version", help="Release (or branch) version of the root module."),
    ] = None,
    development_version: Annotated[
        str | None,
        typer.Option("--development-version", help="Development version of the root module."),
    ] = None,
    policy: PolicyOption = None,
    auto_version_submodules: Annotated[
        bool,
        typer.Option(
            "--auto-version-submodules", help="Give every module the root module's version."
        ),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging.")] = False,
) -> None:
    """Resolve the versions of every module and write release.properties."""
    from release_mapper.cli.commands.versions import run_versions

    _configure_logging(verbose)
    run_versions(
        path=path,
        execute=execute,
        batch_mode=batch_mode,
        branch=branch,
        release_version=release_version,
        development_version=development_version,
        policy_id=policy,
        auto_version_submodules=auto_version_submodules,
        console=console,
        err_console=err_console,
    )


@app.command()
def suggest(
    path: PathArgument = None,
    policy: PolicyOption = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging.")] = False,
) -> None:
    """Show the policy's suggested versions for the root module."""
    from release_mapper.cli.commands.suggest import run_suggest

    _configure_logging(verbose)
    run_suggest(path=path, policy_id=policy, console=console, err_console=err_console)


if __name__ == "__main__":
    app()
