"""
Configuration management and singleton pattern.

The crate manifest is loaded and validated once per process; later calls to
get_config() return the cached AppConfig.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from .loader import MANIFEST_FILE_NAME, load_crate_manifest
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Overridden by the CLI's --manifest-path and by tests.
_MANIFEST_PATH = Path(MANIFEST_FILE_NAME)


def set_manifest_path(manifest_path: Path) -> None:
    """
    Set the crate manifest to load and drop any cached configuration.
    """
    global _MANIFEST_PATH, _CONFIG
    _MANIFEST_PATH = manifest_path
    _CONFIG = None
    logger.debug(f"Manifest path set to: {manifest_path}")


def get_manifest_path() -> Path:
    return _MANIFEST_PATH


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def load_config(manifest_path: Path) -> AppConfig:
    """
    Load and validate a crate manifest without touching the cache.

    Raises:
        ConfigurationError: If the manifest is missing, malformed or invalid
    """
    manifest_data, workspace = load_crate_manifest(manifest_path)
    app_config = validate_app_config(manifest_data, workspace, manifest_path)
    logger.debug(
        f"Loaded `{app_config.package.name}` {app_config.package.version} "
        f"with {len(app_config.android.build_targets)} declared build targets"
    )
    return app_config


def get_config() -> AppConfig:
    """
    Get the crate configuration, loading it if necessary.

    Raises:
        ConfigurationError: If the manifest is missing, malformed or invalid
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_MANIFEST_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None
