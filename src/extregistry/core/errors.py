# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for the extension registry.

All exceptions inherit from ExtRegistryError for consistent error handling.
"""

from typing import List, Optional


class ExtRegistryError(Exception):
    """Base exception for all extension registry errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize registry error.

        Args:
            message: Human-readable error message
            details: Additional error details
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for CLI/JSON output."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class StoreCorruptError(ExtRegistryError):
    """Backing registry document exists but cannot be parsed."""

    def __init__(self, message: str, path: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize store corruption error.

        Args:
            message: Description of what failed to parse
            path: Path to the registry document
            details: Additional error details
        """
        super().__init__(message, details=details)
        self.path = path


class CycleDetectedError(ExtRegistryError):
    """Dependency graph among extension packages has no valid order."""

    def __init__(self, cycle: List[str], details: Optional[dict] = None):
        """
        Initialize cycle error.

        Args:
            cycle: Participating nodes in dependency path order
            details: Additional error details
        """
        message = f"Dependency cycle detected: {' -> '.join(cycle + cycle[:1])}"
        super().__init__(message, details=details)
        self.cycle = cycle


class FileOperationFailedError(ExtRegistryError):
    """Copy or delete failed for a reason other than the file being absent."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details=details)
        self.path = path
        self.operation = operation


class PackageMetadataMissingError(ExtRegistryError):
    """Package description lacks the system/dependency metadata needed to add it."""

    def __init__(
        self,
        message: str,
        package_name: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details=details)
        self.package_name = package_name
        self.field = field


class SystemPackageError(ExtRegistryError):
    """System package manager command failed."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details=details)
        self.command = command or []
        self.returncode = returncode


class ConfigurationError(ExtRegistryError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.config_file = config_file


# Error Message Utilities

def sanitize_error_for_user(error: Exception, include_type: bool = True) -> str:
    """
    Sanitize error messages for user display.
    Removes stack traces and overly long output.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        User-friendly error message without stack trace
    """
    error_msg = str(error).strip()

    # Limit message length
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
