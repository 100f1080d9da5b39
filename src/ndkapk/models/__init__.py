"""
Data models for the build and deployment pipeline.

Configuration Models:
- Crate package settings and `[package.metadata.android]` options
- Per-profile signing entries

Manifest Models:
- The Android manifest descriptor, its application, activity and intent filters

Runtime Models:
- Target architectures, artifact identity and build profile
- Signing keys and the finalized package configuration
- The handle to an app process running on a device
"""

from .config import AndroidMetadata, AppConfig, PackageSettings, SigningEntry
from .manifest import (
    Activity,
    Application,
    IntentFilter,
    ManifestDescriptor,
    MetaData,
    Sdk,
)
from .runtime import (
    ArtifactIdentity,
    ArtifactKind,
    BuildProfile,
    BuildTarget,
    DeviceProcessHandle,
    PackageConfig,
    SigningKey,
)

__all__ = [
    # Configuration
    "AndroidMetadata",
    "AppConfig",
    "PackageSettings",
    "SigningEntry",
    # Manifest
    "Activity",
    "Application",
    "IntentFilter",
    "ManifestDescriptor",
    "MetaData",
    "Sdk",
    # Runtime
    "ArtifactIdentity",
    "ArtifactKind",
    "BuildProfile",
    "BuildTarget",
    "DeviceProcessHandle",
    "PackageConfig",
    "SigningKey",
]
