"""Custom exceptions for dbsync."""

from typing import Optional


class DbSyncError(Exception):
    """Base exception for all dbsync errors."""

    pass


class ConfigurationError(DbSyncError):
    """Error in configuration."""

    pass


class ValidationError(DbSyncError):
    """Error in input validation."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for '{field}': {message}")


class NotFoundError(DbSyncError):
    """Resource not found."""

    def __init__(self, resource_type: str, resource_id: str, location: Optional[str] = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.location = location
        message = f"{resource_type} '{resource_id}' not found"
        if location:
            message += f" on {location} server"
        super().__init__(message)


class ConnectivityError(DbSyncError):
    """Error connecting to a database endpoint."""

    def __init__(self, label: str, message: str):
        self.label = label
        super().__init__(f"cannot connect to {label} server: {message}")


class ToolUnavailableError(DbSyncError):
    """External binary or container runtime is missing."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"{tool} not available: {message}")


class StorageError(DbSyncError):
    """Error with the scratch directory or a dump artifact."""

    def __init__(self, path: str, message: str):
        self.path = str(path)
        super().__init__(f"{message}: {path}")


class ExternalToolError(DbSyncError):
    """An external dump/restore tool exited with a failure."""

    def __init__(self, tool: str, message: str, output: Optional[str] = None):
        self.tool = tool
        self.output = output
        text = f"{tool} failed: {message}"
        if output:
            text += f"\nOutput: {output.strip()}"
        super().__init__(text)


class SchemaError(DbSyncError):
    """Error while dropping or creating the local schema."""

    pass


class SyncError(DbSyncError):
    """A sync attempt failed; wraps the cause with the phase it failed in."""

    def __init__(self, phase: str, context: str, cause: Exception, result=None):
        self.phase = phase
        self.cause = cause
        self.result = result
        super().__init__(f"{context}: {cause}")


__all__ = [
    "DbSyncError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "ConnectivityError",
    "ToolUnavailableError",
    "StorageError",
    "ExternalToolError",
    "SchemaError",
    "SyncError",
]
