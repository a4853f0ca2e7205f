"""
Validation utilities for dbsync.

Provides validation functions for database names, hostnames and ports.
"""

import ipaddress
import re
from typing import Optional

# Schemas owned by the server itself; never a sync target
SYSTEM_SCHEMAS = ("information_schema", "performance_schema", "mysql", "sys")

MAX_DATABASE_NAME_LENGTH = 64

_FORBIDDEN_NAME_CHARS = re.compile(r"[\s/\\]")


def validate_database_name(name: str) -> tuple[bool, Optional[str]]:
    """
    Validate a database name as a sync target.

    Args:
        name: Database name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not name:
        return False, "database name cannot be empty"

    if len(name) > MAX_DATABASE_NAME_LENGTH:
        return False, f"database name too long (max {MAX_DATABASE_NAME_LENGTH} characters)"

    if _FORBIDDEN_NAME_CHARS.search(name):
        return False, "database name contains invalid characters"

    if name.lower() in SYSTEM_SCHEMAS:
        return False, f"cannot sync system database '{name}'"

    return True, None


def validate_port(port: int) -> tuple[bool, Optional[str]]:
    """
    Validate a port number.

    Args:
        port: Port number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(port, int):
        return False, "Port must be an integer"

    if port < 1 or port > 65535:
        return False, f"Port must be between 1 and 65535, got {port}"

    return True, None


def validate_hostname(hostname: str) -> tuple[bool, Optional[str]]:
    """
    Validate a hostname or IP address.

    Args:
        hostname: Hostname to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not hostname or not hostname.strip():
        return False, "Hostname cannot be empty"

    hostname = hostname.strip()

    if len(hostname) > 255:
        return False, "Hostname cannot exceed 255 characters"

    try:
        ipaddress.ip_address(hostname)
        return True, None
    except ValueError:
        pass

    hostname_pattern = r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
    if re.match(hostname_pattern, hostname):
        return True, None

    return False, f"Invalid host format: {hostname}"


def is_loopback_host(hostname: str) -> bool:
    """Check whether a host refers to the local machine's loopback interface."""
    if hostname.strip().lower() == "localhost":
        return True
    try:
        return ipaddress.ip_address(hostname.strip()).is_loopback
    except ValueError:
        return False


def quote_identifier(name: str) -> str:
    """Backtick-quote a MySQL identifier."""
    return "`" + name.replace("`", "``") + "`"
