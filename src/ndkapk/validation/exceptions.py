"""
Exception hierarchy and error handling helpers.

This module defines the error taxonomy used across the build, signing and
deployment stages, plus the small set of helpers that log errors consistently
before re-raising or exiting.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class NdkApkError(Exception):
    """Base class for every fatal condition raised by ndkapk."""


class ConfigurationError(NdkApkError):
    """Malformed or contradictory build configuration."""


class ValidationError(ConfigurationError):
    """
    Exception raised when a single configuration value fails validation.

    Carries the offending field name and value so the CLI can point the
    user at the exact key in the manifest.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class CommandFailedError(NdkApkError):
    """
    An external command could not be started or exited with a non-zero status.

    ``diagnostic`` holds the bytes the command wrote to standard error.
    ``returncode`` is None when the executable could not be spawned.
    """

    def __init__(self, command: Union[str, Sequence[str]], returncode: Optional[int],
                 diagnostic: bytes = b""):
        if not isinstance(command, str):
            command = " ".join(str(part) for part in command)
        self.command = command
        self.returncode = returncode
        self.diagnostic = diagnostic
        text = diagnostic.decode("utf-8", errors="replace").strip()
        if returncode is None:
            message = f"Command `{command}` could not be started"
        else:
            message = f"Command `{command}` failed with exit code {returncode}"
        if text:
            message = f"{message}:\n{text}"
        super().__init__(message)


class MissingSigningKeyError(NdkApkError):
    """No signing key could be determined for a non-development profile."""

    def __init__(self, profile: str):
        self.profile = profile
        super().__init__(
            f"No signing key found for profile `{profile}`. Set "
            f"CARGO_APK_{profile.upper().replace('-', '_')}_KEYSTORE and "
            f"CARGO_APK_{profile.upper().replace('-', '_')}_KEYSTORE_PASSWORD, "
            f"or add a [package.metadata.android.signing.{profile}] table"
        )


class DeviceInteractionError(NdkApkError):
    """An install, launch or poll command against the device failed."""


class UnexpectedProcessStateError(NdkApkError):
    """The device reported a process id that could not be interpreted."""


class PackagingError(NdkApkError):
    """Raised by packaging backends when assembling or signing fails."""


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_device_error(error: Exception, context: str, **kwargs) -> None:
    """Handle errors raised while talking to the device."""
    handle_error(error, f"device {context}", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log an error raised at the CLI boundary and exit."""
    exit_code = kwargs.pop('exit_code', 1)
    include_traceback = kwargs.pop('include_traceback', False)

    severity = kwargs.pop('severity', ErrorSeverity.CRITICAL if include_traceback else ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
