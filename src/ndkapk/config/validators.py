"""
Crate manifest validation utilities.

This module converts the raw `[package]` and `[package.metadata.android]`
tables into the typed configuration models.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.config import AndroidMetadata, AppConfig, PackageSettings, SigningEntry
from ..models.manifest import (
    Activity,
    Application,
    IntentFilter,
    ManifestDescriptor,
    MetaData,
    Sdk,
)
from ..models.runtime import BuildTarget
from ..validation import (
    ConfigurationError,
    ValidationError,
    validate_enum_choice,
    validate_non_empty_string,
    validate_optional_bool,
    validate_port_forward,
    validate_positive_integer,
    validate_relative_path,
    validate_sdk_version,
    validate_string_list,
    validate_table,
)

logger = logging.getLogger(__name__)

ANDROID_TABLE = "package.metadata.android"
STRIP_MODES = ["default", "strip", "split"]


def validate_package_version(value: Any, workspace: Optional[Dict[str, Any]]) -> str:
    """
    Resolve `package.version`, following `version = { workspace = true }`.

    Raises:
        ConfigurationError: If inheritance is requested but cannot be satisfied
    """
    if isinstance(value, str):
        return validate_non_empty_string(value, field_name="package.version")

    if isinstance(value, dict) and "workspace" in value:
        if value["workspace"] is not True:
            raise ConfigurationError("`workspace=false` is unsupported for package.version")
        if workspace is None:
            raise ConfigurationError("package.version inherits from a workspace, but no workspace manifest was found")
        inherited = workspace.get("package", {}).get("version")
        if inherited is None:
            raise ConfigurationError("package.version inherits from the workspace, but [workspace.package] has no version")
        return validate_non_empty_string(inherited, field_name="workspace.package.version")

    raise ValidationError(
        "package.version must be a string or `{ workspace = true }`",
        field_name="package.version",
        value=value
    )


def _validate_intent_filter(raw: Any, field_name: str) -> IntentFilter:
    table = validate_table(raw, field_name=field_name)
    data = []
    for i, entry in enumerate(table.get("data", [])):
        entry = validate_table(entry, field_name=f"{field_name}.data[{i}]")
        data.append({str(k): str(v) for k, v in entry.items()})
    return IntentFilter(
        actions=validate_string_list(table.get("actions", []), field_name=f"{field_name}.actions"),
        categories=validate_string_list(table.get("categories", []), field_name=f"{field_name}.categories"),
        data=data,
    )


def _validate_meta_data(raw: Any, field_name: str) -> MetaData:
    table = validate_table(raw, field_name=field_name)
    return MetaData(
        name=validate_non_empty_string(table.get("name"), field_name=f"{field_name}.name"),
        value=validate_non_empty_string(table.get("value"), field_name=f"{field_name}.value"),
    )


def validate_activity(raw: Dict[str, Any], prefix: str) -> Activity:
    activity = Activity(exported=validate_optional_bool(raw.get("exported"), field_name=f"{prefix}.exported"))
    if "name" in raw:
        activity.name = validate_non_empty_string(raw["name"], field_name=f"{prefix}.name")
    activity.intent_filters = [
        _validate_intent_filter(entry, f"{prefix}.intent_filter[{i}]")
        for i, entry in enumerate(raw.get("intent_filter", []))
    ]
    activity.meta_data = [
        _validate_meta_data(entry, f"{prefix}.meta_data[{i}]")
        for i, entry in enumerate(raw.get("meta_data", []))
    ]
    return activity


def validate_manifest_descriptor(android_data: Dict[str, Any]) -> ManifestDescriptor:
    """
    Build the manifest template from the manifest fields of the android table.

    `version_name` and `version_code` are carried through unchanged so that
    the build can reject them with a clear message.
    """
    sdk_data = validate_table(android_data.get("sdk", {}), field_name=f"{ANDROID_TABLE}.sdk")
    app_data = validate_table(android_data.get("application", {}), field_name=f"{ANDROID_TABLE}.application")
    activity_data = validate_table(app_data.get("activity", {}), field_name=f"{ANDROID_TABLE}.application.activity")

    sdk = Sdk()
    if "min_sdk_version" in sdk_data:
        sdk.min_sdk_version = validate_sdk_version(sdk_data["min_sdk_version"], f"{ANDROID_TABLE}.sdk.min_sdk_version")
    if "target_sdk_version" in sdk_data:
        sdk.target_sdk_version = validate_sdk_version(
            sdk_data["target_sdk_version"], f"{ANDROID_TABLE}.sdk.target_sdk_version"
        )

    application = Application(
        label=app_data.get("label", ""),
        debuggable=validate_optional_bool(app_data.get("debuggable"), field_name=f"{ANDROID_TABLE}.application.debuggable"),
        activity=validate_activity(activity_data, f"{ANDROID_TABLE}.application.activity"),
    )
    if not isinstance(application.label, str):
        raise ValidationError(
            "application.label must be a string",
            field_name=f"{ANDROID_TABLE}.application.label",
            value=application.label
        )

    manifest = ManifestDescriptor(sdk=sdk, application=application)
    if "package" in android_data:
        manifest.package = validate_non_empty_string(android_data["package"], field_name=f"{ANDROID_TABLE}.package")
    if "version_name" in android_data:
        manifest.version_name = str(android_data["version_name"])
    if "version_code" in android_data:
        manifest.version_code = validate_positive_integer(
            android_data["version_code"], field_name=f"{ANDROID_TABLE}.version_code"
        )
    return manifest


def validate_signing(raw: Any) -> Dict[str, SigningEntry]:
    table = validate_table(raw, field_name=f"{ANDROID_TABLE}.signing")
    entries: Dict[str, SigningEntry] = {}
    for profile, entry in table.items():
        prefix = f"{ANDROID_TABLE}.signing.{profile}"
        entry = validate_table(entry, field_name=prefix)
        password = entry.get("keystore_password")
        if not isinstance(password, str):
            raise ValidationError(
                f"{prefix}.keystore_password must be a string",
                field_name=f"{prefix}.keystore_password",
                value=password
            )
        entries[profile] = SigningEntry(
            path=validate_relative_path(entry.get("path"), field_name=f"{prefix}.path"),
            keystore_password=password,
        )
    return entries


def validate_build_targets(raw: Any) -> List[BuildTarget]:
    triples = validate_string_list(raw, field_name=f"{ANDROID_TABLE}.build_targets")
    try:
        return [BuildTarget.from_rust_triple(triple) for triple in triples]
    except ConfigurationError as e:
        raise ValidationError(
            f"{ANDROID_TABLE}.build_targets: {e}",
            field_name=f"{ANDROID_TABLE}.build_targets",
            value=raw
        ) from e


def validate_android_metadata(android_data: Dict[str, Any]) -> AndroidMetadata:
    """
    Validate and create AndroidMetadata from `[package.metadata.android]`.

    Args:
        android_data: The raw android table; may be empty

    Returns:
        Validated AndroidMetadata instance

    Raises:
        ValidationError: If a field has the wrong type or value
    """
    android_data = validate_table(android_data, field_name=ANDROID_TABLE)
    metadata = AndroidMetadata(
        build_targets=validate_build_targets(android_data.get("build_targets", [])),
        strip=validate_enum_choice(android_data.get("strip", "default"), STRIP_MODES, field_name=f"{ANDROID_TABLE}.strip"),
        reverse_port_forward=validate_port_forward(
            android_data.get("reverse_port_forward", {}), field_name=f"{ANDROID_TABLE}.reverse_port_forward"
        ),
        signing=validate_signing(android_data.get("signing", {})),
        android_manifest=validate_manifest_descriptor(android_data),
    )
    if "apk_name" in android_data:
        metadata.apk_name = validate_non_empty_string(android_data["apk_name"], field_name=f"{ANDROID_TABLE}.apk_name")
    for name in ("assets", "resources", "runtime_libs"):
        if name in android_data:
            setattr(metadata, name, validate_relative_path(android_data[name], field_name=f"{ANDROID_TABLE}.{name}"))
    return metadata


def validate_app_config(
    manifest_data: Dict[str, Any],
    workspace: Optional[Dict[str, Any]],
    manifest_path: Path,
) -> AppConfig:
    """
    Validate a parsed crate manifest into an AppConfig.

    Raises:
        ConfigurationError: If `[package]` is missing or a field is invalid
    """
    if "package" not in manifest_data:
        raise ConfigurationError(f"`{manifest_path}` has no [package] table")
    package_data = validate_table(manifest_data["package"], field_name="package")

    package = PackageSettings(
        name=validate_non_empty_string(package_data.get("name"), field_name="package.name"),
        version=validate_package_version(package_data.get("version", "0.0.0"), workspace),
        manifest_path=manifest_path.resolve(),
    )
    metadata = validate_table(package_data.get("metadata", {}), field_name="package.metadata")
    android = validate_android_metadata(metadata.get("android", {}))
    return AppConfig(package=package, android=android)
