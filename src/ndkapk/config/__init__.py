"""
Configuration management for the ndkapk package.

Loads the crate manifest (`Cargo.toml`) and validates its `[package]` and
`[package.metadata.android]` tables, caching the result.
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    get_config,
    get_manifest_path,
    is_config_loaded,
    load_config,
    set_manifest_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import find_workspace_manifest, load_crate_manifest, load_toml_file
from .validators import (
    validate_android_metadata,
    validate_app_config,
    validate_manifest_descriptor,
    validate_package_version,
)

__all__ = [
    # Main interface
    "get_config",
    "set_manifest_path",
    "get_manifest_path",
    "clear_config_cache",
    "is_config_loaded",
    "load_config",
    # Advanced interface
    "load_toml_file",
    "load_crate_manifest",
    "find_workspace_manifest",
    "validate_android_metadata",
    "validate_app_config",
    "validate_manifest_descriptor",
    "validate_package_version",
]
