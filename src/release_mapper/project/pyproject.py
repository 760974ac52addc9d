"""Reactor discovery from pyproject.toml files.

The root project is the first module of the reactor. Sub-projects listed
in ``[tool.release-mapper].modules`` follow in the configured order, each
described by its own pyproject.toml.

Versions are read with a regex rather than a TOML parser so that the
exact text of the version field is kept, including development markers
that are not valid PEP 440.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from release_mapper.config.loader import find_pyproject_toml, load_pyproject_toml
from release_mapper.core.models import Module
from release_mapper.exceptions import ConfigNotFoundError, ProjectError, VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

    from release_mapper.config.models import MapperConfig

_VERSION_SECTIONS = ("project", "tool\\.poetry")


def _resolve_pyproject(path: Path | None) -> Path:
    if path is None:
        return find_pyproject_toml()
    if path.is_dir():
        return find_pyproject_toml(path)
    return path


def get_pyproject_version(path: Path | None = None) -> str:
    """Get the version from pyproject.toml.

    Args:
        path: Path to pyproject.toml or directory to search from

    Returns:
        Version string, verbatim

    Raises:
        VersionNotFoundError: If version cannot be found
    """
    pyproject_path = _resolve_pyproject(path)
    content = pyproject_path.read_text()

    # PEP 621 first, then Poetry
    for section in _VERSION_SECTIONS:
        match = re.search(
            rf'^\[{section}\](?:(?!^\[).)*?^version\s*=\s*["\']([^"\']+)["\']',
            content,
            re.MULTILINE | re.DOTALL,
        )
        if match:
            return match.group(1)

    raise VersionNotFoundError(
        f"Could not find version in {pyproject_path}. "
        "Expected [project].version or [tool.poetry].version."
    )


def get_pyproject_name(path: Path | None = None) -> str:
    """Get the project name from pyproject.toml.

    Raises:
        ProjectError: If neither [project].name nor [tool.poetry].name is set
    """
    pyproject_path = _resolve_pyproject(path)
    data = load_pyproject_toml(pyproject_path)
    name = data.get("project", {}).get("name") or data.get("tool", {}).get("poetry", {}).get(
        "name"
    )
    if not name:
        raise ProjectError(f"Could not find project name in {pyproject_path}")
    return str(name)


def read_module(directory: Path, group: str | None = None) -> Module:
    """Describe the project in ``directory`` as a reactor module.

    Args:
        directory: Project directory containing pyproject.toml
        group: Coordinate group; defaults to the project name

    Raises:
        ProjectError: If the directory has no readable pyproject.toml
    """
    pyproject_path = directory / "pyproject.toml"
    if not pyproject_path.is_file():
        raise ProjectError(f"No pyproject.toml in module directory {directory}")
    name = get_pyproject_name(pyproject_path)
    return Module(
        group=group or name,
        artifact=name,
        version=get_pyproject_version(pyproject_path),
        name=name,
    )


def discover_modules(root: Path, config: MapperConfig) -> list[Module]:
    """List the reactor modules: the root project, then configured sub-projects.

    Raises:
        ProjectError: If a module cannot be read
    """
    try:
        root_pyproject = find_pyproject_toml(root)
    except ConfigNotFoundError as e:
        raise ProjectError(str(e)) from e

    root_dir = root_pyproject.parent
    group = config.group or get_pyproject_name(root_pyproject)
    modules = [read_module(root_dir, group)]
    for module_path in config.modules:
        modules.append(read_module(root_dir / module_path, group))

    keys = [m.key for m in modules]
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        raise ProjectError(f"Duplicate module keys: {', '.join(duplicates)}")
    return modules
