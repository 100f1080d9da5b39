"""
Crate manifest loading utilities.

This module handles the low-level loading and parsing of `Cargo.toml` files,
including locating the workspace manifest a crate may inherit values from.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..validation import ConfigurationError, ErrorSeverity, handle_config_error

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = "Cargo.toml"


def load_toml_file(file_path: Path, description: str = "manifest") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        ConfigurationError: If the file doesn't exist or is malformed
    """
    logger.debug(f"Loading {description} from: {file_path}")

    if not file_path.is_file():
        logger.error(f"{description} not found: {file_path}")
        raise ConfigurationError(f"{description} not found: {file_path}")

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger
        )
        raise ConfigurationError(f"Malformed {description} `{file_path}`: {e}") from e


def find_workspace_manifest(manifest_path: Path) -> Optional[Path]:
    """
    Find the manifest declaring `[workspace]` for the crate at ``manifest_path``.

    The crate's own manifest counts when it is also the workspace root.
    """
    manifest_path = manifest_path.resolve()
    candidates = [manifest_path] + [d / MANIFEST_FILE_NAME for d in manifest_path.parent.parents]
    for candidate in candidates:
        if not candidate.is_file():
            continue
        if "workspace" in load_toml_file(candidate, "workspace manifest candidate"):
            logger.debug(f"Found workspace manifest: {candidate}")
            return candidate
    return None


def load_crate_manifest(manifest_path: Path) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """
    Load a crate manifest and, when there is one, its workspace manifest.

    Returns:
        The crate's parsed tables and the workspace's `[workspace]` table (or None)
    """
    data = load_toml_file(manifest_path, "crate manifest")
    workspace_path = find_workspace_manifest(manifest_path)
    if workspace_path is None:
        return data, None
    workspace_data = load_toml_file(workspace_path, "workspace manifest")
    return data, workspace_data.get("workspace", {})
