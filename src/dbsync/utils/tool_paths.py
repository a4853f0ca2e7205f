"""
External tool path resolver.

Resolves paths to the CLI tools each sync strategy shells out to
(mysql, mysqldump, mysqlsh, docker).

Lookup order:
1. Explicit path from settings
2. System PATH
3. Standard install locations (MySQL Shell only)
"""

import logging
import os
import shutil
import sys
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

# Tool names mapped to their binary files
TOOL_NAMES = {
    "mysql": "mysql",
    "mysqldump": "mysqldump",
    "mysqlsh": "mysqlsh",
    "docker": "docker",
}

_POSIX_MYSQLSH_PATHS = (
    "/usr/bin/mysqlsh",
    "/usr/local/bin/mysqlsh",
    "/opt/mysql-shell/bin/mysqlsh",
)

_WINDOWS_MYSQLSH_PATHS = (
    r"C:\Program Files\MySQL\MySQL Shell 8.4\bin\mysqlsh.exe",
    r"C:\Program Files\MySQL\MySQL Shell 8.0\bin\mysqlsh.exe",
    r"C:\Program Files (x86)\MySQL\MySQL Shell 8.4\bin\mysqlsh.exe",
    r"C:\Program Files (x86)\MySQL\MySQL Shell 8.0\bin\mysqlsh.exe",
)


@lru_cache(maxsize=1)
def find_installed_mysqlsh() -> Optional[str]:
    """
    Look for MySQL Shell in its standard install locations.

    Returns:
        Path to mysqlsh if found, None otherwise.
    """
    candidates = _WINDOWS_MYSQLSH_PATHS if sys.platform == "win32" else _POSIX_MYSQLSH_PATHS
    for path in candidates:
        if os.path.isfile(path):
            logger.debug(f"Using installed MySQL Shell: {path}")
            return path
    return None


def get_tool_path(tool_name: str, configured: Optional[str] = None) -> str:
    """
    Get the path to an external tool.

    Args:
        tool_name: Name of the tool (e.g., "mysql", "mysqldump", "mysqlsh")
        configured: Path from settings, used as-is when set

    Returns:
        Resolved path, or the bare binary name (relying on PATH at exec time).
    """
    if configured:
        return configured

    if tool_name not in TOOL_NAMES:
        logger.warning(f"Unknown tool requested: {tool_name}, using as-is")
        binary_name = tool_name
    else:
        binary_name = TOOL_NAMES[tool_name]

    found = shutil.which(binary_name)
    if found:
        return found

    if tool_name == "mysqlsh":
        installed = find_installed_mysqlsh()
        if installed:
            return installed

    logger.debug(f"{binary_name} not found on PATH, using bare name")
    return binary_name

