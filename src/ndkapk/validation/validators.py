"""
Simplified validation functions.

This module provides the small set of value validators used when turning raw
TOML tables into typed configuration models.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within a range.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    # TOML booleans are ints in Python; they are never a valid count here.
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value",
) -> str:
    """
    Validate that a value is one of a fixed set of strings.

    Raises:
        ValidationError: If the value is not one of ``valid_choices``
    """
    if value not in valid_choices:
        raise ValidationError(
            f"{field_name} must be one of {valid_choices}, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a string with visible content."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value


def validate_optional_bool(value: Any, field_name: str = "value") -> Optional[bool]:
    """Validate a value that is either absent (None) or a boolean."""
    if value is not None and not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean",
            field_name=field_name,
            value=value
        )
    return value


def validate_string_list(value: Any, field_name: str = "value") -> List[str]:
    """Validate a list whose items are all strings."""
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(
            f"{field_name} must be a list of strings",
            field_name=field_name,
            value=value
        )
    return list(value)


def validate_table(value: Any, field_name: str = "value") -> Dict[str, Any]:
    """Validate that a value is a TOML table (a dict)."""
    if not isinstance(value, dict):
        raise ValidationError(
            f"{field_name} must be a table",
            field_name=field_name,
            value=value
        )
    return value


def validate_relative_path(value: Any, field_name: str = "path") -> Path:
    """
    Validate a path string from the manifest.

    The path is not required to exist; it is resolved against the manifest
    directory later.
    """
    path_str = validate_non_empty_string(value, field_name=field_name)
    return Path(path_str)


def validate_port_forward(value: Any, field_name: str = "reverse_port_forward") -> Dict[str, str]:
    """
    Validate a mapping of device socket spec to host socket spec.

    Example: ``{"tcp:8080" = "tcp:8080"}``.
    """
    table = validate_table(value, field_name=field_name)
    forwards: Dict[str, str] = {}
    for remote, local in table.items():
        if not isinstance(local, str) or not local:
            raise ValidationError(
                f"{field_name}.{remote} must be a non-empty string",
                field_name=f"{field_name}.{remote}",
                value=local
            )
        forwards[remote] = local
    return forwards


def validate_sdk_version(value: Union[int, Any], field_name: str) -> int:
    """Android API levels start at 1; anything above 100 is treated as a typo."""
    return validate_positive_integer(value, min_value=1, max_value=100, field_name=field_name)
