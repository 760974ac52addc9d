"""Version resolution engine.

For every module of the reactor and every phase of the release workflow,
decide which version to assign. Decision precedence for one module:

1. Retention: phases that must not touch the module keep its current version.
2. An explicit version configured for the module.
3. The first module's version, when ``auto_version_submodules`` is set.
4. The run-wide default version (first module only).
5. The policy suggestion, used as-is in batch mode or offered as the
   default answer of an interactive prompt.

Explicit, default and answered versions must match the snapshot format of the
phase. Only a development or working copy answer without the snapshot marker
is asked again; anywhere else the wrong format is fatal.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from release_mapper.core.models import Phase
from release_mapper.core.policy import PolicyRequest, VersionPolicy, get_policy
from release_mapper.core.registry import VersionRegistry
from release_mapper.core.version import is_snapshot
from release_mapper.exceptions import (
    MiningError,
    PolicyConfigError,
    PolicyError,
    PromptError,
    RegistryError,
    ReleaseExecutionError,
    VersionFormatError,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from release_mapper.config.models import MapperConfig
    from release_mapper.core.history import ChangeLogSource
    from release_mapper.core.models import Module

_logger = logging.getLogger(__name__)

# Base version used for suggestions when an interactive run cannot parse the project version.
FALLBACK_BASE_VERSION = "1.0"

# Phases whose interactive answer is asked again when it lacks the snapshot marker.
_CONTINUITY_PHASES = frozenset({Phase.DEVELOPMENT, Phase.BRANCH_DEVELOPMENT})


class Prompter(Protocol):
    """Interactive prompt collaborator.

    Implementations raise :class:`~release_mapper.exceptions.PromptError` on failure.
    """

    def ask(self, question: str, default: str) -> str: ...


def check_version_format(phase: Phase, version: str) -> None:
    """Assert the snapshot format required by ``phase``.

    Raises:
        VersionFormatError: If the version has the wrong format
    """
    if is_snapshot(version) == phase.expects_snapshot:
        return
    expected = "a snapshot" if phase.expects_snapshot else "a non-snapshot"
    raise VersionFormatError(f"{version} is invalid, expected {expected}", version=version)


class VersionResolver:
    """Resolves versions for all modules of a reactor, phase by phase.

    Args:
        config: Run configuration
        prompter: Prompt collaborator, required for interactive runs
        scm: Change-log collaborator handed to history-aware policies
        registry: Registry receiving committed results
        logger: Logger for resolution decisions
    """

    def __init__(
        self,
        config: MapperConfig,
        *,
        prompter: Prompter | None = None,
        scm: ChangeLogSource | None = None,
        registry: VersionRegistry | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.prompter = prompter
        self.scm = scm
        self.registry = registry if registry is not None else VersionRegistry()
        self.logger = logger or _logger
        self._policy: VersionPolicy | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def run(
        self,
        modules: Sequence[Module],
        phases: Iterable[Phase] | None = None,
        *,
        simulate: bool = False,
    ) -> VersionRegistry:
        """Resolve every phase of the run in order.

        With ``simulate`` the same resolution happens against a scratch copy
        of the registry, leaving :attr:`registry` untouched.

        Returns:
            The registry holding the results

        Raises:
            ReleaseExecutionError: If any module of any phase cannot be resolved
        """
        target = self.registry.copy() if simulate else self.registry
        for phase in phases if phases is not None else self.config.phases:
            self._resolve_into(phase, modules, target)
        return target

    def resolve_phase(
        self,
        phase: Phase,
        modules: Sequence[Module],
        *,
        simulate: bool = False,
    ) -> dict[str, str]:
        """Resolve a single phase.

        Returns:
            Mapping of module key to resolved version

        Raises:
            ReleaseExecutionError: If a module cannot be resolved; nothing is committed
        """
        target = self.registry.copy() if simulate else self.registry
        return self._resolve_into(phase, modules, target)

    # -------------------------------------------------------------------------
    # Phase resolution
    # -------------------------------------------------------------------------

    def _resolve_into(
        self,
        phase: Phase,
        modules: Sequence[Module],
        target: VersionRegistry,
    ) -> dict[str, str]:
        staged: dict[str, str] = {}
        propagated: str | None = None

        for index, module in enumerate(modules):
            is_first = index == 0
            version = self._resolve_module(phase, module, target, is_first, propagated)
            staged[module.key] = version
            self.logger.info("%s version of %s: %s", phase.value.capitalize(), module.key, version)
            # A retained version was never checked against the phase, so it is not copied.
            retained = self._retains_current_version(phase, module)
            if is_first and self.config.auto_version_submodules and not retained:
                propagated = version

        # Committed only once every module of the phase has resolved.
        try:
            target.record_all(phase, staged)
        except RegistryError as e:
            raise ReleaseExecutionError(str(e)) from e
        return staged

    def _resolve_module(
        self,
        phase: Phase,
        module: Module,
        target: VersionRegistry,
        is_first: bool,
        propagated: str | None,
    ) -> str:
        if self._retains_current_version(phase, module):
            self.logger.debug("Keeping current version %s of %s", module.version, module.key)
            return module.version

        explicit = self.config.versions.explicit_version(phase, module.key)
        if explicit is not None:
            return self._validated(phase, explicit)

        if propagated is not None:
            return propagated

        default = self.config.versions.default_version(phase) if is_first else None
        if default is not None:
            return self._validated(phase, default)

        suggestion = self._suggest(phase, module, target, is_first)
        if not self.config.interactive:
            return self._validated(phase, suggestion)
        return self._prompt(phase, module, suggestion)

    def _retains_current_version(self, phase: Phase, module: Module) -> bool:
        config = self.config
        if phase == Phase.DEVELOPMENT:
            return not config.update_working_copy_versions
        if phase == Phase.BRANCH_DEVELOPMENT:
            return not (is_snapshot(module.version) and config.update_working_copy_versions)
        if phase == Phase.BRANCH_RELEASE:
            # Branching from a non-snapshot keeps that version on the branch unless
            # update_versions_to_snapshot is set, even though the next snapshot would
            # be the more natural choice there.
            bump_branch = is_snapshot(module.version) or config.update_versions_to_snapshot
            return not (config.update_branch_versions and bump_branch)
        return False

    def _validated(self, phase: Phase, version: str) -> str:
        try:
            check_version_format(phase, version)
        except VersionFormatError as e:
            raise ReleaseExecutionError(str(e)) from e
        return version

    # -------------------------------------------------------------------------
    # Suggestions and prompting
    # -------------------------------------------------------------------------

    def _base_version(
        self,
        phase: Phase,
        module: Module,
        target: VersionRegistry,
        is_first: bool,
    ) -> str:
        """Version handed to the policy: development continues from the release."""
        if phase == Phase.DEVELOPMENT:
            versions = self.config.versions
            candidates = (
                target.get_version(Phase.RELEASE, module.key),
                versions.explicit_version(Phase.RELEASE, module.key),
                versions.default_version(Phase.RELEASE) if is_first else None,
            )
        elif phase == Phase.BRANCH_DEVELOPMENT:
            candidates = (target.get_version(Phase.BRANCH_RELEASE, module.key),)
        else:
            candidates = ()
        return next((c for c in candidates if c), module.version)

    def _get_policy(self) -> VersionPolicy:
        if self._policy is None:
            try:
                self._policy = get_policy(self.config.policy.id, logger=self.logger)
            except PolicyError as e:
                raise ReleaseExecutionError(str(e)) from e
        return self._policy

    def _ask_policy(self, phase: Phase, base_version: str) -> str:
        policy = self._get_policy()
        policy_config = self.config.policy
        request = PolicyRequest(
            version=base_version,
            scm=self.scm,
            config=policy_config.config,
            rules=policy_config.rules,
            page_size=policy_config.page_size,
            max_commits=policy_config.max_commits,
        )
        if phase == Phase.RELEASE:
            return policy.suggest_release(request)
        return policy.suggest_development(request)

    def _suggest(
        self,
        phase: Phase,
        module: Module,
        target: VersionRegistry,
        is_first: bool,
    ) -> str:
        base_version = self._base_version(phase, module, target, is_first)
        try:
            try:
                return self._ask_policy(phase, base_version)
            except VersionFormatError:
                if not self.config.interactive:
                    raise
                self.logger.debug(
                    "Cannot parse %s of %s, suggesting from %s",
                    base_version,
                    module.key,
                    FALLBACK_BASE_VERSION,
                )
                return self._ask_policy(phase, FALLBACK_BASE_VERSION)
        except VersionFormatError as e:
            raise ReleaseExecutionError(
                f"Error parsing version, cannot determine next version: {e}"
            ) from e
        except MiningError as e:
            raise ReleaseExecutionError(
                f"Unable to determine the next version of {module.key} from the SCM history: {e}"
            ) from e
        except PolicyConfigError as e:
            raise ReleaseExecutionError(f"Invalid version policy configuration: {e}") from e

    def _prompt(self, phase: Phase, module: Module, suggestion: str) -> str:
        prompter = self.prompter
        if prompter is None:
            raise ReleaseExecutionError("Interactive version resolution requires a prompter")

        question = phase.question(module)
        try:
            answer = _ask(prompter, question, suggestion)
            # Development answers must keep the marker; re-ask while the default is usable.
            if phase in _CONTINUITY_PHASES and is_snapshot(suggestion):
                while not is_snapshot(answer):
                    self.logger.warning("%s is invalid, expected a snapshot", answer)
                    answer = _ask(prompter, question, suggestion)
        except PromptError as e:
            raise ReleaseExecutionError(f"Error reading version from input handler: {e}") from e
        return self._validated(phase, answer)


def _ask(prompter: Prompter, question: str, suggestion: str) -> str:
    answer = prompter.ask(question, suggestion).strip()
    return answer or suggestion
