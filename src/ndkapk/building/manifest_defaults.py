"""
Manifest defaulting.

Fills in the fields of a per-artifact ManifestDescriptor that configuration
left unset. Explicit values are never overwritten, so applying the defaults to
an already defaulted manifest changes nothing.
"""

import logging
import re
from typing import Optional

from ..collaborators.base import CrossCompileInvoker
from ..models.manifest import (
    LAUNCHER_CATEGORY,
    LIB_NAME_META,
    MAIN_ACTION,
    IntentFilter,
    ManifestDescriptor,
    MetaData,
)
from ..models.runtime import ArtifactIdentity, ArtifactKind, BuildProfile
from ..validation import ConfigurationError

logger = logging.getLogger(__name__)

# The NDK toolchain we drive cannot target anything older.
MIN_SDK_FLOOR = 23
# Android 12 refuses to start an entry point that does not declare `exported`.
EXPORTED_REQUIRED_SDK = 31

PACKAGE_PREFIX = "rust"
EXAMPLE_PACKAGE_PREFIX = "rust.example"


def resolve_min_sdk_version(configured: Optional[int], toolchain_default: Optional[int] = None) -> int:
    """
    The API level passed to the compiler and written as `minSdkVersion`.

    Uses the configured value, else the toolchain default, and never goes below 23.
    """
    value = configured if configured is not None else toolchain_default
    if value is None:
        return MIN_SDK_FLOOR
    return max(value, MIN_SDK_FLOOR)


def version_code_from_semver(version: str, apk_id: int = 1) -> int:
    """
    Pack `major.minor.patch` into an Android version code.

    Layout is `apk_id << 24 | major << 16 | minor << 8 | patch`, so each
    component must fit in one byte. Pre-release and build suffixes are ignored.

    Raises:
        ConfigurationError: If the version is not semver or a component exceeds 255
    """
    parts = re.split(r"[.\-+]", version)
    if len(parts) < 3:
        raise ConfigurationError(f"Package version `{version}` is not a semantic version")
    components = []
    for name, part in zip(("major", "minor", "patch"), parts[:3]):
        if not part.isdigit():
            raise ConfigurationError(f"Package version `{version}` has a non-numeric {name} component")
        number = int(part)
        if number > 255:
            raise ConfigurationError(
                f"Package version `{version}`: {name} component {number} does not fit a version code (max 255)"
            )
        components.append(number)
    major, minor, patch = components
    return (apk_id << 24) | (major << 16) | (minor << 8) | patch


def apply_package_version(manifest: ManifestDescriptor, version: str) -> None:
    """
    Derive `versionName` and `versionCode` from the crate version.

    Raises:
        ConfigurationError: If either was set by hand in the manifest config
    """
    if manifest.version_name is not None:
        raise ConfigurationError("version_name must not be set in [package.metadata.android]; it comes from package.version")
    if manifest.version_code is not None:
        raise ConfigurationError("version_code must not be set in [package.metadata.android]; it comes from package.version")
    manifest.version_code = version_code_from_semver(version)
    manifest.version_name = version


def default_package_id(artifact: ArtifactIdentity) -> str:
    prefix = EXAMPLE_PACKAGE_PREFIX if artifact.kind is ArtifactKind.EXAMPLE else PACKAGE_PREFIX
    return f"{prefix}.{artifact.lib_name}"


def apply_manifest_defaults(
    template: ManifestDescriptor,
    artifact: ArtifactIdentity,
    profile: BuildProfile,
    toolchain: CrossCompileInvoker,
) -> ManifestDescriptor:
    """Produce the manifest for one artifact from the shared template.

    The template is copied, not modified. The toolchain is asked for its
    default API levels only when the manifest does not set them.

    Args:
        template: Manifest values from configuration
        artifact: The artifact being packaged
        profile: Active build profile; the dev profile makes the app debuggable
        toolchain: Source of default min/target API levels

    Returns:
        A manifest with package id, label and both API levels set.
    """
    manifest = template.copy()
    application = manifest.application
    activity = application.activity

    if not manifest.package:
        manifest.package = default_package_id(artifact)

    if not application.label:
        application.label = artifact.name

    lib_meta = MetaData(name=LIB_NAME_META, value=artifact.lib_name)
    if lib_meta not in activity.meta_data:
        activity.meta_data.append(lib_meta)

    if not activity.declares_main_action():
        activity.intent_filters.append(
            IntentFilter(actions=[MAIN_ACTION], categories=[LAUNCHER_CATEGORY])
        )

    sdk = manifest.sdk
    if sdk.target_sdk_version is None:
        sdk.target_sdk_version = toolchain.default_target_platform()
    if sdk.min_sdk_version is None:
        sdk.min_sdk_version = resolve_min_sdk_version(None, toolchain.default_min_platform())
    else:
        sdk.min_sdk_version = resolve_min_sdk_version(sdk.min_sdk_version)

    if sdk.target_sdk_version >= EXPORTED_REQUIRED_SDK and activity.exported is None:
        activity.exported = True

    if application.debuggable is None:
        application.debuggable = profile.is_dev

    logger.debug(
        f"Manifest for `{artifact.name}`: package={manifest.package}, "
        f"minSdk={sdk.min_sdk_version}, targetSdk={sdk.target_sdk_version}"
    )
    return manifest
