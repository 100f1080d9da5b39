"""
Validation and error handling for the ndkapk package.

This module provides input validation and the error taxonomy shared by the
build, signing and deployment stages.
"""

from .exceptions import (
    CommandFailedError,
    ConfigurationError,
    DeviceInteractionError,
    ErrorSeverity,
    MissingSigningKeyError,
    NdkApkError,
    PackagingError,
    UnexpectedProcessStateError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_device_error,
    handle_error,
)

from .validators import (
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

__all__ = [
    # Errors
    "NdkApkError",
    "ConfigurationError",
    "ValidationError",
    "CommandFailedError",
    "MissingSigningKeyError",
    "DeviceInteractionError",
    "UnexpectedProcessStateError",
    "PackagingError",
    "ErrorSeverity",
    "handle_error",
    "handle_config_error",
    "handle_device_error",
    "handle_cli_error",
    # Validators
    "validate_enum_choice",
    "validate_non_empty_string",
    "validate_optional_bool",
    "validate_port_forward",
    "validate_positive_integer",
    "validate_relative_path",
    "validate_sdk_version",
    "validate_string_list",
    "validate_table",
]
