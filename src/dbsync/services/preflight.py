"""
Pre-flight checks shared by every sync engine.

The sequence short-circuits on the first failure and runs before any
external process is started.
"""

import logging
import os
import tempfile
from typing import Callable

from ..config import Settings
from ..exceptions import ConnectivityError, NotFoundError, StorageError
from ..models import Endpoint
from .database_inspector import DatabaseInspector

logger = logging.getLogger(__name__)


class PreflightChecker:
    """
    Validates that a sync can start.

    Args:
        settings: Application settings
        inspector: Inspector used for existence checks and probes
    """

    def __init__(self, settings: Settings, inspector: DatabaseInspector):
        self.settings = settings
        self.inspector = inspector

    def run(self, name: str, tool_check: Callable[[], None]) -> None:
        """
        Run all checks in order.

        Args:
            name: Database to sync
            tool_check: Engine-specific check raising ToolUnavailableError

        Raises:
            ValidationError: Unsafe database name
            NotFoundError: Database missing on the remote server
            ConnectivityError: Remote or local server unreachable
            ToolUnavailableError: Required binary or runtime missing
            StorageError: Scratch directory not writable
        """
        logger.debug(f"Running pre-flight checks for '{name}'")

        self.inspector.validate_database_name(name)

        remote = self.settings.remote_endpoint
        if not self.inspector.database_exists(name, remote):
            raise NotFoundError("Database", name, remote.label)

        self.check_endpoint(remote)
        self.check_endpoint(self.settings.local_endpoint)

        tool_check()
        self.check_scratch_dir()

        logger.debug(f"Pre-flight checks passed for '{name}'")

    def check_endpoint(self, endpoint: Endpoint) -> None:
        probe = self.inspector.test_connection(endpoint)
        if not probe.connected:
            raise ConnectivityError(endpoint.label, probe.error or "unknown error")

    def check_scratch_dir(self) -> None:
        """Ensure the scratch directory exists and accepts new files."""
        path = self.settings.scratch_dir
        try:
            os.makedirs(path, exist_ok=True)
            with tempfile.NamedTemporaryFile(dir=path, prefix=".dbsync_probe_"):
                pass
        except OSError as e:
            raise StorageError(path, f"scratch directory is not writable ({e})") from e
