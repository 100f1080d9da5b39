"""
Unit tests for crate manifest validation.

Tests the conversion of `[package]` and `[package.metadata.android]` tables
into typed configuration, including version inheritance and error reporting.
"""

from pathlib import Path

import pytest

from ndkapk.config.validators import (
    validate_android_metadata,
    validate_app_config,
    validate_manifest_descriptor,
    validate_package_version,
)
from ndkapk.models.manifest import MetaData
from ndkapk.models.runtime import BuildTarget
from ndkapk.validation import ConfigurationError, ValidationError


@pytest.mark.unit
class TestAndroidMetadataValidation:
    """Test cases for validate_android_metadata."""

    def test_full_table(self, sample_android_metadata):
        metadata = validate_android_metadata(sample_android_metadata)

        assert metadata.apk_name == "demo"
        assert metadata.assets == Path("assets")
        assert metadata.resources is None
        assert metadata.build_targets == [BuildTarget.ARM64_V8A, BuildTarget.X86_64]
        assert metadata.strip == "strip"
        assert metadata.reverse_port_forward == {"tcp:8080": "tcp:8080"}
        assert metadata.signing["release"].path == Path("keys/release.keystore")
        assert metadata.signing["release"].keystore_password == "hunter2"

    def test_empty_table_gives_defaults(self):
        metadata = validate_android_metadata({})

        assert metadata.apk_name is None
        assert metadata.build_targets == []
        assert metadata.strip == "default"
        assert metadata.signing == {}
        assert metadata.android_manifest.package == ""

    def test_unknown_build_target(self, sample_android_metadata):
        sample_android_metadata["build_targets"] = ["riscv64-linux-android"]

        with pytest.raises(ValidationError) as exc_info:
            validate_android_metadata(sample_android_metadata)

        assert exc_info.value.field_name == "package.metadata.android.build_targets"

    def test_invalid_strip_mode(self, sample_android_metadata):
        sample_android_metadata["strip"] = "everything"

        with pytest.raises(ValidationError) as exc_info:
            validate_android_metadata(sample_android_metadata)

        assert "strip" in str(exc_info.value)

    def test_signing_entry_needs_password(self, sample_android_metadata):
        del sample_android_metadata["signing"]["release"]["keystore_password"]

        with pytest.raises(ValidationError) as exc_info:
            validate_android_metadata(sample_android_metadata)

        assert exc_info.value.field_name == "package.metadata.android.signing.release.keystore_password"

    def test_port_forward_values_must_be_strings(self, sample_android_metadata):
        sample_android_metadata["reverse_port_forward"] = {"tcp:8080": 8080}

        with pytest.raises(ValidationError):
            validate_android_metadata(sample_android_metadata)


@pytest.mark.unit
class TestManifestDescriptorValidation:
    def test_manifest_fields(self, sample_android_metadata):
        manifest = validate_manifest_descriptor(sample_android_metadata)

        assert manifest.sdk.min_sdk_version == 26
        assert manifest.sdk.target_sdk_version == 33
        assert manifest.application.label == "Demo"
        assert manifest.application.debuggable is None
        activity = manifest.application.activity
        assert activity.exported is None
        assert activity.intent_filters[0].actions == ["android.intent.action.VIEW"]
        assert activity.meta_data == [MetaData("com.example.flag", "on")]

    def test_hand_set_version_is_carried_through(self):
        manifest = validate_manifest_descriptor({"version_name": "9.9", "version_code": 12})
        assert manifest.version_name == "9.9"
        assert manifest.version_code == 12

    def test_sdk_version_must_be_integer(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest_descriptor({"sdk": {"min_sdk_version": "high"}})

        assert exc_info.value.field_name == "package.metadata.android.sdk.min_sdk_version"

    def test_exported_must_be_bool(self):
        with pytest.raises(ValidationError):
            validate_manifest_descriptor({"application": {"activity": {"exported": "yes"}}})

    def test_meta_data_requires_name_and_value(self):
        with pytest.raises(ValidationError):
            validate_manifest_descriptor({"application": {"activity": {"meta_data": [{"name": "x"}]}}})


@pytest.mark.unit
class TestPackageVersionValidation:
    def test_literal_version(self):
        assert validate_package_version("0.3.1", None) == "0.3.1"

    def test_inherited_version(self):
        assert validate_package_version({"workspace": True}, {"package": {"version": "2.1.0"}}) == "2.1.0"

    def test_workspace_false_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_package_version({"workspace": False}, {"package": {"version": "2.1.0"}})

        assert "workspace=false" in str(exc_info.value)

    def test_inheritance_without_workspace(self):
        with pytest.raises(ConfigurationError):
            validate_package_version({"workspace": True}, None)

    def test_inheritance_without_workspace_version(self):
        with pytest.raises(ConfigurationError):
            validate_package_version({"workspace": True}, {"members": ["app"]})

    def test_other_types_rejected(self):
        with pytest.raises(ValidationError):
            validate_package_version(3, None)


@pytest.mark.unit
class TestAppConfigValidation:
    def test_missing_package_table(self):
        with pytest.raises(ConfigurationError):
            validate_app_config({"workspace": {}}, None, Path("/work/Cargo.toml"))

    def test_package_name_required(self):
        with pytest.raises(ValidationError):
            validate_app_config({"package": {"version": "1.0.0"}}, None, Path("/work/Cargo.toml"))

    def test_minimal_package(self):
        config = validate_app_config(
            {"package": {"name": "demo", "version": "1.0.0"}}, None, Path("/work/demo/Cargo.toml")
        )

        assert config.package.name == "demo"
        assert config.package.manifest_dir == Path("/work/demo").resolve()
        assert config.android.build_targets == []
