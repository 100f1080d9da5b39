"""
ndkapk: build, sign and run Android packages for Rust crates.

The package is organized into specialized modules:
- config: Crate manifest loading and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Subprocess execution and output capture
- collaborators: cargo, adb, keytool and packaging backend adapters
- building: Target selection, manifest defaulting, signing and assembly
- device: Install/launch and log following on a device
- cli: Command-line interface

Usage:
    From command line:
        ndkapk build --release

    Programmatically:
        from ndkapk import ApkBuilder, BuildSessionConfig, Collaborators, get_config
        builder = ApkBuilder(BuildSessionConfig(get_config(), profile, target_dir), collaborators)
        builder.build()
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_manifest_path
from .building import ApkBuilder, BuildSessionConfig, Collaborators
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    ArtifactIdentity,
    ArtifactKind,
    BuildProfile,
    BuildTarget,
    ManifestDescriptor,
    PackageConfig,
    SigningKey,
)

# Errors
from .validation import (
    CommandFailedError,
    ConfigurationError,
    MissingSigningKeyError,
    NdkApkError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_manifest_path",
    "ApkBuilder",
    "BuildSessionConfig",
    "Collaborators",
    "main_cli",
    # Models
    "AppConfig",
    "ArtifactIdentity",
    "ArtifactKind",
    "BuildProfile",
    "BuildTarget",
    "ManifestDescriptor",
    "PackageConfig",
    "SigningKey",
    # Errors
    "CommandFailedError",
    "ConfigurationError",
    "MissingSigningKeyError",
    "NdkApkError",
    "ValidationError",
]
