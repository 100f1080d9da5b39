"""
Package assembly: target selection, manifest defaulting, signing and the
multi-target build session.
"""

from .builder import ApkBuilder, BuildSessionConfig, Collaborators
from .coordinator import MultiTargetBuildCoordinator
from .manifest_defaults import (
    MIN_SDK_FLOOR,
    apply_manifest_defaults,
    apply_package_version,
    resolve_min_sdk_version,
    version_code_from_semver,
)
from .signing import SIGNING_RULES, SigningInputs, resolve_signing_key
from .targets import resolve_build_targets

__all__ = [
    "ApkBuilder",
    "BuildSessionConfig",
    "Collaborators",
    "MultiTargetBuildCoordinator",
    "MIN_SDK_FLOOR",
    "apply_manifest_defaults",
    "apply_package_version",
    "resolve_min_sdk_version",
    "version_code_from_semver",
    "SIGNING_RULES",
    "SigningInputs",
    "resolve_signing_key",
    "resolve_build_targets",
]
