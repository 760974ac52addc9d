"""Tests for the version resolution engine."""

from __future__ import annotations

import logging

import pytest

from release_mapper.config.models import MapperConfig, PolicyConfig, VersionsConfig
from release_mapper.core.models import Module, Phase
from release_mapper.core.registry import VersionRegistry
from release_mapper.core.resolver import VersionResolver, check_version_format
from release_mapper.exceptions import (
    GitError,
    MiningError,
    PolicyNotFoundError,
    PromptError,
    RegistryError,
    ReleaseExecutionError,
    VersionFormatError,
)

APP = Module("com.acme", "app", "1.2-SNAPSHOT", name="App")
LIB = Module("com.acme", "lib", "1.2-SNAPSHOT")
OLD_LIB = Module("com.acme", "old-lib", "0.9.1-SNAPSHOT")


def batch(**kwargs) -> MapperConfig:
    return MapperConfig(interactive=False, **kwargs)


def interactive(**kwargs) -> MapperConfig:
    return MapperConfig(interactive=True, **kwargs)


class TestCheckVersionFormat:
    """Tests for check_version_format()."""

    def test_release_rejects_snapshot(self):
        """The release phase needs a non-snapshot."""
        with pytest.raises(VersionFormatError, match="^3.0-SNAPSHOT is invalid, expected a non"):
            check_version_format(Phase.RELEASE, "3.0-SNAPSHOT")

    @pytest.mark.parametrize(
        "phase", [Phase.DEVELOPMENT, Phase.BRANCH_RELEASE, Phase.BRANCH_DEVELOPMENT]
    )
    def test_other_phases_need_snapshot(self, phase: Phase):
        """Every other phase needs a snapshot."""
        with pytest.raises(VersionFormatError, match="^3.0 is invalid, expected a snapshot$"):
            check_version_format(phase, "3.0")

    def test_opaque_versions_pass(self):
        """Only the marker is checked, not the grammar."""
        check_version_format(Phase.RELEASE, "PPX")
        check_version_format(Phase.DEVELOPMENT, "MYB_200909-SNAPSHOT")


class TestBatchResolution:
    """Tests for batch-mode resolution with the default policy."""

    def test_release_and_development(self):
        """Release strips the marker; development continues from the release."""
        registry = VersionResolver(batch()).run([APP, LIB])

        assert registry.phase_versions(Phase.RELEASE) == {
            "com.acme:app": "1.2",
            "com.acme:lib": "1.2",
        }
        assert registry.phase_versions(Phase.DEVELOPMENT) == {
            "com.acme:app": "1.3-SNAPSHOT",
            "com.acme:lib": "1.3-SNAPSHOT",
        }

    def test_modules_resolved_independently(self):
        """Without propagation every module follows its own version."""
        registry = VersionRegistry()
        VersionResolver(batch(), registry=registry).run([APP, OLD_LIB])

        assert registry.get_release_version("com.acme:old-lib") == "0.9.1"
        assert registry.get_development_version("com.acme:old-lib") == "0.10.0-SNAPSHOT"

    def test_explicit_versions(self):
        """Explicit per-module versions win over the policy."""
        config = batch(
            versions=VersionsConfig(
                release={"com.acme:lib": "PPX"},
                development={"com.acme:lib": "MYB_200909-SNAPSHOT"},
            )
        )

        registry = VersionResolver(config).run([APP, LIB])

        assert registry.get_release_version("com.acme:lib") == "PPX"
        assert registry.get_development_version("com.acme:lib") == "MYB_200909-SNAPSHOT"
        assert registry.get_release_version("com.acme:app") == "1.2"

    def test_blank_explicit_version_ignored(self):
        """An empty explicit version counts as not configured."""
        config = batch(versions=VersionsConfig(release={"com.acme:app": ""}))

        assert VersionResolver(config).resolve_phase(Phase.RELEASE, [APP]) == {
            "com.acme:app": "1.2"
        }

    def test_invalid_explicit_release(self):
        """A snapshot configured as release version fails with the exact message."""
        config = batch(versions=VersionsConfig(release={"com.acme:app": "3.0-SNAPSHOT"}))

        with pytest.raises(ReleaseExecutionError) as exc_info:
            VersionResolver(config).resolve_phase(Phase.RELEASE, [APP])

        assert str(exc_info.value) == "3.0-SNAPSHOT is invalid, expected a non-snapshot"
        assert isinstance(exc_info.value.__cause__, VersionFormatError)

    def test_invalid_default_development(self):
        """A non-snapshot default development version fails."""
        config = batch(versions=VersionsConfig(default_development="3.0"))

        with pytest.raises(ReleaseExecutionError, match="^3.0 is invalid, expected a snapshot$"):
            VersionResolver(config).resolve_phase(Phase.DEVELOPMENT, [APP])

    def test_default_only_for_first_module(self):
        """Default versions apply to the first module only."""
        config = batch(versions=VersionsConfig(default_release="3.0"))

        versions = VersionResolver(config).resolve_phase(Phase.RELEASE, [APP, LIB])

        assert versions == {"com.acme:app": "3.0", "com.acme:lib": "1.2"}

    def test_development_from_default_release(self):
        """Development continues from the default release version when none is recorded."""
        config = batch(versions=VersionsConfig(default_release="3.0"))
        app = Module("com.acme", "app", "1.2.1-SNAPSHOT")

        versions = VersionResolver(config).resolve_phase(Phase.DEVELOPMENT, [app, LIB])

        assert versions == {"com.acme:app": "3.1-SNAPSHOT", "com.acme:lib": "1.3-SNAPSHOT"}

    def test_development_from_explicit_release(self):
        """Development continues from the explicit release version."""
        config = batch(versions=VersionsConfig(release={"com.acme:lib": "2.5"}))

        versions = VersionResolver(config).resolve_phase(Phase.DEVELOPMENT, [APP, LIB])

        assert versions["com.acme:lib"] == "2.6-SNAPSHOT"

    def test_unparseable_version_fails(self):
        """Batch mode cannot suggest from text outside the version grammar."""
        module = Module("com.acme", "app", "foo")

        with pytest.raises(ReleaseExecutionError) as exc_info:
            VersionResolver(batch()).resolve_phase(Phase.RELEASE, [module])

        assert str(exc_info.value).startswith(
            "Error parsing version, cannot determine next version:"
        )
        assert isinstance(exc_info.value.__cause__, VersionFormatError)


class TestAutoVersionSubmodules:
    """Tests for first-module version propagation."""

    def test_propagates_to_all_modules(self):
        """Every later module gets the first module's version."""
        config = batch(
            auto_version_submodules=True,
            versions=VersionsConfig(default_release="3.0"),
        )

        registry = VersionResolver(config).run([APP, LIB, OLD_LIB])

        assert set(registry.phase_versions(Phase.RELEASE).values()) == {"3.0"}
        assert set(registry.phase_versions(Phase.DEVELOPMENT).values()) == {"3.1-SNAPSHOT"}

    def test_explicit_beats_propagation(self):
        """An explicit version for a submodule still wins."""
        config = batch(
            auto_version_submodules=True,
            versions=VersionsConfig(release={"com.acme:lib": "7.0"}),
        )

        versions = VersionResolver(config).resolve_phase(Phase.RELEASE, [APP, LIB, OLD_LIB])

        assert versions == {
            "com.acme:app": "1.2",
            "com.acme:lib": "7.0",
            "com.acme:old-lib": "1.2",
        }

    def test_retained_version_not_propagated(self):
        """A first module that keeps its release version does not hand it on."""
        config = batch(branch_creation=True, auto_version_submodules=True)
        root = Module("com.acme", "app", "1.2")

        versions = VersionResolver(config).resolve_phase(
            Phase.BRANCH_DEVELOPMENT, [root, LIB]
        )

        assert versions == {"com.acme:app": "1.2", "com.acme:lib": "1.3-SNAPSHOT"}

    def test_submodules_not_prompted(self, make_prompter):
        """Only the first module is asked for."""
        prompter = make_prompter()
        config = interactive(auto_version_submodules=True)

        VersionResolver(config, prompter=prompter).resolve_phase(Phase.RELEASE, [APP, LIB])

        assert len(prompter.questions) == 1


class TestInteractiveResolution:
    """Tests for prompting."""

    def test_blank_answer_accepts_suggestion(self, make_prompter):
        """The suggestion is the default answer."""
        prompter = make_prompter("")

        versions = VersionResolver(interactive(), prompter=prompter).resolve_phase(
            Phase.RELEASE, [APP]
        )

        assert versions == {"com.acme:app": "1.2"}
        assert prompter.questions == [
            ('What is the release version for "App"? (com.acme:app)', "1.2"),
        ]

    def test_answer_used(self, make_prompter):
        """A typed answer replaces the suggestion."""
        prompter = make_prompter(" 2.0 ")

        versions = VersionResolver(interactive(), prompter=prompter).resolve_phase(
            Phase.RELEASE, [APP]
        )

        assert versions == {"com.acme:app": "2.0"}

    def test_question_wording(self, make_prompter):
        """Each phase asks its own question."""
        prompter = make_prompter()
        config = interactive(branch_creation=True, update_branch_versions=True)

        VersionResolver(config, prompter=prompter).run([LIB])

        assert [q for q, _ in prompter.questions] == [
            'What is the branch version for "lib"? (com.acme:lib)',
            'What is the new working copy version for "lib"? (com.acme:lib)',
        ]

    def test_snapshot_continuity(self, make_prompter):
        """A wrong-format answer is asked again with the same default."""
        prompter = make_prompter("2.0", "2.0-SNAPSHOT")
        module = Module("com.acme", "app", "1.11-SNAPSHOT")

        versions = VersionResolver(interactive(), prompter=prompter).resolve_phase(
            Phase.DEVELOPMENT, [module]
        )

        assert versions == {"com.acme:app": "2.0-SNAPSHOT"}
        assert [d for _, d in prompter.questions] == ["1.12-SNAPSHOT", "1.12-SNAPSHOT"]

    def test_working_copy_continuity(self, make_prompter):
        """A working copy answer without the marker is asked again too."""
        prompter = make_prompter("1.4", "1.5-SNAPSHOT")
        config = interactive(branch_creation=True)

        versions = VersionResolver(config, prompter=prompter).resolve_phase(
            Phase.BRANCH_DEVELOPMENT, [APP]
        )

        assert versions == {"com.acme:app": "1.5-SNAPSHOT"}
        assert len(prompter.questions) == 2

    def test_snapshot_release_answer_fails(self, make_prompter):
        """A snapshot answered for a release fails after a single prompt."""
        prompter = make_prompter("2.0-SNAPSHOT", "2.0")

        with pytest.raises(ReleaseExecutionError) as exc_info:
            VersionResolver(interactive(), prompter=prompter).resolve_phase(Phase.RELEASE, [APP])

        assert str(exc_info.value) == "2.0-SNAPSHOT is invalid, expected a non-snapshot"
        assert isinstance(exc_info.value.__cause__, VersionFormatError)
        assert len(prompter.questions) == 1

    def test_non_snapshot_branch_answer_fails(self, make_prompter):
        """A bumped branch answered without the marker fails after a single prompt."""
        prompter = make_prompter("1.3")
        config = interactive(branch_creation=True, update_branch_versions=True)

        with pytest.raises(ReleaseExecutionError, match="^1.3 is invalid, expected a snapshot$"):
            VersionResolver(config, prompter=prompter).resolve_phase(Phase.BRANCH_RELEASE, [APP])

        assert len(prompter.questions) == 1

    def test_fallback_release(self, make_prompter):
        """An unparseable project version suggests 1.0 for release."""
        prompter = make_prompter()
        module = Module("com.acme", "app", "SNAPSHOT")

        versions = VersionResolver(interactive(), prompter=prompter).resolve_phase(
            Phase.RELEASE, [module]
        )

        assert versions == {"com.acme:app": "1.0"}
        assert prompter.questions[0][1] == "1.0"

    def test_fallback_development(self, make_prompter):
        """An unparseable project version suggests 1.1-SNAPSHOT for development."""
        prompter = make_prompter()
        module = Module("com.acme", "app", "foo")

        VersionResolver(interactive(), prompter=prompter).resolve_phase(
            Phase.DEVELOPMENT, [module]
        )

        assert prompter.questions[0][1] == "1.1-SNAPSHOT"

    def test_development_suggestion_follows_release_answer(self, make_prompter):
        """The development default builds on the answered release version."""
        prompter = make_prompter("4.0", "")

        registry = VersionResolver(interactive(), prompter=prompter).run([APP])

        assert prompter.questions[1][1] == "4.1-SNAPSHOT"
        assert registry.get_development_version("com.acme:app") == "4.1-SNAPSHOT"

    def test_explicit_versions_not_prompted(self, make_prompter):
        """Configured versions skip the prompt."""
        prompter = make_prompter()
        config = interactive(versions=VersionsConfig(default_release="5.0"))

        VersionResolver(config, prompter=prompter).resolve_phase(Phase.RELEASE, [APP])

        assert prompter.questions == []

    def test_prompt_failure(self, make_prompter):
        """Prompter errors are wrapped with the cause kept."""
        prompter = make_prompter(error=PromptError("closed"))

        with pytest.raises(ReleaseExecutionError) as exc_info:
            VersionResolver(interactive(), prompter=prompter).resolve_phase(Phase.RELEASE, [APP])

        assert str(exc_info.value) == "Error reading version from input handler: closed"
        assert isinstance(exc_info.value.__cause__, PromptError)

    def test_missing_prompter(self):
        """Interactive resolution without a prompter fails."""
        with pytest.raises(ReleaseExecutionError, match="requires a prompter"):
            VersionResolver(interactive()).resolve_phase(Phase.RELEASE, [APP])


class TestRetention:
    """Tests for phases that keep the current version."""

    def test_working_copy_not_updated(self):
        """Development keeps the current version when working copies are not updated."""
        config = batch(update_working_copy_versions=False)
        module = Module("com.acme", "app", "1.2")

        versions = VersionResolver(config).resolve_phase(Phase.DEVELOPMENT, [module])

        assert versions == {"com.acme:app": "1.2"}

    def test_retention_beats_explicit(self):
        """A retained module ignores configured versions."""
        config = batch(
            update_working_copy_versions=False,
            versions=VersionsConfig(development={"com.acme:app": "9.0-SNAPSHOT"}),
        )

        versions = VersionResolver(config).resolve_phase(Phase.DEVELOPMENT, [APP])

        assert versions == {"com.acme:app": "1.2-SNAPSHOT"}

    def test_branch_not_updated(self):
        """Without update_branch_versions the branch keeps the current version."""
        config = batch(branch_creation=True)

        registry = VersionResolver(config).run([APP])

        assert registry.get_version(Phase.BRANCH_RELEASE, "com.acme:app") == "1.2-SNAPSHOT"
        assert registry.get_version(Phase.BRANCH_DEVELOPMENT, "com.acme:app") == "1.3-SNAPSHOT"

    def test_branch_bumped(self):
        """With update_branch_versions a snapshot branch gets the next snapshot."""
        config = batch(branch_creation=True, update_branch_versions=True)

        registry = VersionResolver(config).run([APP])

        assert registry.get_release_version("com.acme:app") == "1.3-SNAPSHOT"
        assert registry.get_development_version("com.acme:app") == "1.4-SNAPSHOT"

    def test_non_snapshot_branch_kept(self):
        """A non-snapshot module keeps its version on the branch.

        Documented quirk, kept deliberately, though the next snapshot would be
        more natural.
        """
        config = batch(branch_creation=True, update_branch_versions=True)
        module = Module("com.acme", "app", "1.2")

        registry = VersionResolver(config).run([module])

        assert registry.get_version(Phase.BRANCH_RELEASE, "com.acme:app") == "1.2"
        assert registry.get_version(Phase.BRANCH_DEVELOPMENT, "com.acme:app") == "1.2"

    def test_non_snapshot_branch_to_snapshot(self):
        """update_versions_to_snapshot bumps a non-snapshot branch."""
        config = batch(
            branch_creation=True,
            update_branch_versions=True,
            update_versions_to_snapshot=True,
        )
        module = Module("com.acme", "app", "1.2")

        versions = VersionResolver(config).resolve_phase(Phase.BRANCH_RELEASE, [module])

        assert versions == {"com.acme:app": "1.3-SNAPSHOT"}

    def test_invalid_default_branch(self):
        """A bumped branch needs a snapshot default."""
        config = batch(
            branch_creation=True,
            update_branch_versions=True,
            versions=VersionsConfig(default_branch="3.0"),
        )

        with pytest.raises(ReleaseExecutionError, match="^3.0 is invalid, expected a snapshot$"):
            VersionResolver(config).resolve_phase(Phase.BRANCH_RELEASE, [APP])

    def test_branch_falls_back_to_release_map(self):
        """The branch phase reads the release map when the branch map has no entry."""
        config = batch(
            branch_creation=True,
            update_branch_versions=True,
            versions=VersionsConfig(release={"com.acme:app": "2.0-SNAPSHOT"}),
        )

        versions = VersionResolver(config).resolve_phase(Phase.BRANCH_RELEASE, [APP])

        assert versions == {"com.acme:app": "2.0-SNAPSHOT"}


class TestPolicyHandling:
    """Tests for policy lookup and history mining inside the engine."""

    def test_unknown_policy(self):
        """An unknown policy fails with the lookup error as cause."""
        config = batch(policy=PolicyConfig(id="nope"))

        with pytest.raises(ReleaseExecutionError) as exc_info:
            VersionResolver(config).resolve_phase(Phase.RELEASE, [APP])

        assert isinstance(exc_info.value.__cause__, PolicyNotFoundError)

    def test_policy_looked_up_lazily(self):
        """An unknown policy is harmless while no suggestion is needed."""
        config = batch(
            policy=PolicyConfig(id="nope"),
            versions=VersionsConfig(release={"com.acme:app": "1.0"}),
        )

        assert VersionResolver(config).resolve_phase(Phase.RELEASE, [APP]) == {
            "com.acme:app": "1.0"
        }

    def test_conventional_commits(self, make_change_log):
        """The ccsemver policy mines the attached change log."""
        source = make_change_log("feat: new", ("release", ["1.4.2"]))
        config = batch(policy=PolicyConfig(id="ccsemver"))

        registry = VersionResolver(config, scm=source).run([APP])

        assert registry.get_release_version("com.acme:app") == "1.5.0"
        assert registry.get_development_version("com.acme:app") == "1.6.0-SNAPSHOT"

    def test_mining_failure(self, make_change_log):
        """SCM failures name the module and keep the mining error as cause."""
        source = make_change_log(error=GitError("not a repository"))
        config = batch(policy=PolicyConfig(id="ccsemver"))

        with pytest.raises(ReleaseExecutionError, match="com.acme:app") as exc_info:
            VersionResolver(config, scm=source).resolve_phase(Phase.RELEASE, [APP])

        assert isinstance(exc_info.value.__cause__, MiningError)


class TestRegistryCommit:
    """Tests for staging, committing and simulation."""

    def test_failed_phase_commits_nothing(self):
        """A failure on a later module leaves the phase empty."""
        registry = VersionRegistry()
        config = batch(versions=VersionsConfig(release={"com.acme:lib": "2.0-SNAPSHOT"}))

        with pytest.raises(ReleaseExecutionError):
            VersionResolver(config, registry=registry).run([APP, LIB])

        assert len(registry) == 0

    def test_simulate_leaves_registry_untouched(self):
        """A simulated run returns results in a scratch registry."""
        resolver = VersionResolver(batch())

        result = resolver.run([APP, LIB], simulate=True)

        assert len(result) == 4
        assert len(resolver.registry) == 0

    def test_second_run_rejected(self):
        """Each slot is written once."""
        resolver = VersionResolver(batch())
        resolver.resolve_phase(Phase.RELEASE, [APP])

        with pytest.raises(ReleaseExecutionError) as exc_info:
            resolver.resolve_phase(Phase.RELEASE, [APP])

        assert isinstance(exc_info.value.__cause__, RegistryError)

    @pytest.mark.parametrize("policy_id", ["default", "ccsemver"])
    def test_repeated_runs_agree(self, make_change_log, policy_id: str):
        """Two runs over the same modules and history record the same versions."""
        source = make_change_log("fix: bug", "feat!: api", ("release", ["1.4.2"]))
        config = batch(policy=PolicyConfig(id=policy_id))

        first = VersionResolver(config, scm=source).run([APP, LIB, OLD_LIB])
        second = VersionResolver(config, scm=source).run([APP, LIB, OLD_LIB])

        assert list(first) == list(second)
        assert len(first) == 6

    def test_explicit_phases(self):
        """run() resolves only the requested phases."""
        registry = VersionResolver(batch()).run([APP], phases=[Phase.RELEASE])

        assert registry.get_release_version("com.acme:app") == "1.2"
        assert registry.get_development_version("com.acme:app") is None

    def test_injected_logger(self, caplog):
        """Resolution decisions go to the injected logger."""
        logger = logging.getLogger("test.resolver")

        with caplog.at_level(logging.INFO, logger="test.resolver"):
            VersionResolver(batch(), logger=logger).resolve_phase(Phase.RELEASE, [APP])

        assert "Release version of com.acme:app: 1.2" in caplog.text
