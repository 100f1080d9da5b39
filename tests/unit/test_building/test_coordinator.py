"""
Unit tests for the multi-target build coordinator.
"""

from pathlib import Path

import pytest

from ndkapk.building.coordinator import MultiTargetBuildCoordinator
from ndkapk.models.manifest import ManifestDescriptor
from ndkapk.models.runtime import ArtifactIdentity, ArtifactKind, BuildTarget, PackageConfig
from ndkapk.validation import CommandFailedError

ALL_TARGETS = [BuildTarget.ARMV7A, BuildTarget.ARM64_V8A, BuildTarget.X86, BuildTarget.X86_64]


@pytest.fixture
def package_config(temp_dir):
    return PackageConfig(
        build_dir=temp_dir / "apk",
        apk_name="demo",
        manifest=ManifestDescriptor(package="rust.demo_app"),
        disable_compression=True,
    )


@pytest.fixture
def coordinator(fake_invoker, fake_resolver, fake_writer):
    return MultiTargetBuildCoordinator(fake_invoker, fake_resolver, fake_writer)


@pytest.mark.unit
class TestAssemble:
    """Test cases for MultiTargetBuildCoordinator.assemble."""

    def test_builds_every_target_in_order(self, coordinator, fake_invoker, fake_writer, lib_artifact, package_config):
        unsigned = coordinator.assemble(lib_artifact, ALL_TARGETS, package_config, 23, ["--features", "x"])

        assert fake_invoker.built_targets == ALL_TARGETS
        assert all(call[2] == 23 and call[3] == ["--features", "x"] for call in fake_invoker.calls)
        builder = fake_writer.builders[0]
        assert builder.finalized
        assert [target for _, target in unsigned.libraries] == ALL_TARGETS

    def test_first_failure_stops_later_targets(self, coordinator, fake_invoker, fake_writer, lib_artifact,
                                               package_config):
        fake_invoker.fail_on = {BuildTarget.ARM64_V8A}

        with pytest.raises(CommandFailedError) as exc_info:
            coordinator.assemble(lib_artifact, ALL_TARGETS, package_config, 23)

        assert fake_invoker.built_targets == [BuildTarget.ARMV7A, BuildTarget.ARM64_V8A]
        assert exc_info.value.returncode == 101
        builder = fake_writer.builders[0]
        assert builder.discarded
        assert not builder.finalized

    def test_search_paths_end_with_deps_dir(self, coordinator, fake_invoker, fake_resolver, lib_artifact,
                                            package_config):
        coordinator.assemble(lib_artifact, [BuildTarget.X86_64], package_config, 23)

        artifact_path, target, search_paths = fake_resolver.artifact_calls[0]
        assert target is BuildTarget.X86_64
        assert artifact_path == fake_invoker.build_dir(BuildTarget.X86_64) / "libdemo_app.so"
        assert search_paths == [
            fake_invoker.root / "native" / "x86_64",
            fake_invoker.build_dir(BuildTarget.X86_64) / "deps",
        ]

    def test_example_artifact_path(self, coordinator, fake_invoker, fake_resolver, package_config):
        artifact = ArtifactIdentity("hello", ArtifactKind.EXAMPLE)
        coordinator.assemble(artifact, [BuildTarget.ARM64_V8A], package_config, 23)

        artifact_path = fake_resolver.artifact_calls[0][0]
        assert artifact_path.parent.name == "examples"

    def test_runtime_libs_added_only_when_configured(self, coordinator, fake_resolver, lib_artifact, package_config):
        coordinator.assemble(lib_artifact, [BuildTarget.ARM64_V8A], package_config, 23)
        assert fake_resolver.runtime_calls == []

        coordinator.assemble(
            lib_artifact, [BuildTarget.ARM64_V8A, BuildTarget.X86], package_config, 23,
            runtime_libs=Path("/work/libs"),
        )
        assert fake_resolver.runtime_calls == [
            (Path("/work/libs"), BuildTarget.ARM64_V8A),
            (Path("/work/libs"), BuildTarget.X86),
        ]

    def test_resolver_failure_discards(self, fake_invoker, fake_writer, lib_artifact, package_config):
        class BrokenResolver:
            def add_artifact_and_deps(self, *args):
                raise RuntimeError("missing libc++_shared.so")

        coordinator = MultiTargetBuildCoordinator(fake_invoker, BrokenResolver(), fake_writer)

        with pytest.raises(RuntimeError):
            coordinator.assemble(lib_artifact, ALL_TARGETS, package_config, 23)

        assert fake_invoker.built_targets == [BuildTarget.ARMV7A]
        assert fake_writer.builders[0].discarded

    def test_no_targets_rejected(self, coordinator, lib_artifact, package_config):
        with pytest.raises(ValueError):
            coordinator.assemble(lib_artifact, [], package_config, 23)
