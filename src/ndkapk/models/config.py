"""
Configuration data models.

This module contains the typed form of the crate manifest: the `[package]`
table and the `[package.metadata.android]` table.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .manifest import ManifestDescriptor
from .runtime import BuildTarget


@dataclass
class SigningEntry:
    """
    A keystore configured for one profile, loaded from
    `[package.metadata.android.signing.<profile>]`.
    """

    # Path to the keystore, relative to the crate manifest directory.
    path: Path
    keystore_password: str


@dataclass
class AndroidMetadata:
    """
    Settings loaded from `[package.metadata.android]`.
    """

    # Package file name without the `.apk` suffix; defaults to the artifact name.
    apk_name: Optional[str] = None
    # Directory paths, relative to the crate manifest directory.
    assets: Optional[Path] = None
    resources: Optional[Path] = None
    runtime_libs: Optional[Path] = None
    # Declared default targets, used when no --target is given.
    build_targets: List[BuildTarget] = field(default_factory=list)
    # One of "default", "strip", "split"; interpreted by the packaging backend.
    strip: str = "default"
    # Device socket spec -> host socket spec, applied with `adb reverse`.
    reverse_port_forward: Dict[str, str] = field(default_factory=dict)
    # Profile name -> keystore.
    signing: Dict[str, SigningEntry] = field(default_factory=dict)
    # Template for every artifact's manifest.
    android_manifest: ManifestDescriptor = field(default_factory=ManifestDescriptor)


@dataclass
class PackageSettings:
    """
    The subset of `[package]` used by the build.
    """

    name: str
    version: str
    # Absolute path of the crate manifest; relative paths resolve against its parent.
    manifest_path: Path

    @property
    def manifest_dir(self) -> Path:
        return self.manifest_path.parent


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    package: PackageSettings
    android: AndroidMetadata
