"""Utility functions for dbsync."""

from .formatting import format_duration, format_size, mask_secrets
from .tool_paths import get_tool_path
from .validators import (
    SYSTEM_SCHEMAS,
    is_loopback_host,
    quote_identifier,
    validate_database_name,
    validate_hostname,
    validate_port,
)

__all__ = [
    "SYSTEM_SCHEMAS",
    "format_duration",
    "format_size",
    "get_tool_path",
    "is_loopback_host",
    "mask_secrets",
    "quote_identifier",
    "validate_database_name",
    "validate_hostname",
    "validate_port",
]
