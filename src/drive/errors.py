"""Typed exception hierarchy for drive navigation errors.

These errors are raised by the entity model and the caching connector when a
request is rejected before (or instead of) reaching the backend.
"""

from typing import Optional

from src.remote_client.errors import DriveError


class NavigationError(DriveError):
    """Base exception for all navigation and validation errors."""
    pass


class InvalidHierarchyError(NavigationError):
    """Raised when a parent/child combination violates containment rules."""

    def __init__(self, parent_path: str, child_kind: str, allowed: Optional[str] = None):
        message = f"'{parent_path or '/'}' cannot contain {child_kind}"
        if allowed:
            message += f"; it can contain only {allowed}"
        super().__init__(message)
        self.parent_path = parent_path
        self.child_kind = child_kind
        self.allowed = allowed


class UnsupportedOperationError(NavigationError):
    """Raised when the target entity lacks the capability an operation needs."""

    def __init__(self, operation: str, kind: str, path: Optional[str] = None):
        message = f"Operation '{operation}' is not supported by {kind}"
        if path is not None:
            message += f" at '{path or '/'}'"
        super().__init__(message)
        self.operation = operation
        self.kind = kind
        self.path = path


class InvalidArgumentError(NavigationError):
    """Raised when a required name, target or parameter is missing or invalid."""

    def __init__(self, argument: str, message: str):
        super().__init__(f"Invalid argument '{argument}': {message}")
        self.argument = argument
        self.original_message = message


class ConfigError(NavigationError):
    """Raised when drive configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message
