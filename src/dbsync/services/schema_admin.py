"""
Local schema administration.

Prepares the destination server before a restore: terminate sessions bound
to the target schema, drop it, recreate it, and toggle server variables the
load tools need. There is no transaction around drop/create/restore; a crash
in between leaves the local schema absent or partially loaded.
"""

import logging
import re

import mysql.connector

from ..config import Settings
from ..exceptions import DbSyncError, SchemaError
from ..utils.validators import quote_identifier
from .database_inspector import DatabaseInspector

logger = logging.getLogger(__name__)

_VARIABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SchemaAdmin:
    """Mutating statements against the local endpoint."""

    def __init__(self, settings: Settings, inspector: DatabaseInspector):
        self.settings = settings
        self.inspector = inspector

    @property
    def endpoint(self):
        return self.settings.local_endpoint

    def kill_sessions(self, name: str) -> int:
        """
        Terminate sessions using a database so DROP does not hang.

        Best effort: failures are logged and never abort the sync.

        Returns:
            Number of sessions killed
        """
        try:
            session_ids = self.inspector.list_sessions(name, self.endpoint)
        except DbSyncError as e:
            logger.warning(f"Could not list sessions on '{name}': {e}")
            return 0

        if not session_ids:
            return 0

        killed = 0
        try:
            with self.inspector.connect(self.endpoint) as conn:
                cursor = conn.cursor()
                try:
                    for session_id in session_ids:
                        try:
                            cursor.execute(f"KILL {int(session_id)}")
                            killed += 1
                        except mysql.connector.Error as e:
                            # session may have ended on its own
                            logger.warning(f"Could not kill session {session_id}: {e}")
                finally:
                    cursor.close()
        except mysql.connector.Error as e:
            logger.warning(f"Could not kill sessions on '{name}': {e}")

        logger.info(f"Killed {killed} connections to '{name}'")
        return killed

    def drop_database(self, name: str) -> None:
        logger.info(f"Dropping existing local database '{name}'")
        self._execute(
            f"DROP DATABASE IF EXISTS {quote_identifier(name)}",
            "failed to drop existing database",
        )

    def create_database(self, name: str) -> None:
        logger.info(f"Creating local database '{name}'")
        self._execute(
            f"CREATE DATABASE IF NOT EXISTS {quote_identifier(name)} "
            f"CHARACTER SET {self.settings.default_charset}",
            "failed to create database",
        )

    def set_global(self, variable: str, value) -> None:
        """Set a global server variable (e.g. local_infile for MySQL Shell loads)."""
        if not _VARIABLE_NAME.match(variable):
            raise SchemaError(f"invalid server variable name: {variable!r}")
        self._execute(
            f"SET GLOBAL {variable} = %s",
            f"failed to set {variable}",
            (value,),
        )

    def recreate_database(self, name: str, kill_sessions: bool = True) -> bool:
        """
        Drop (if present) and recreate a local database.

        Args:
            name: Database to recreate
            kill_sessions: Terminate open sessions before the drop

        Returns:
            True if the database existed before
        """
        existed = self.inspector.database_exists(name, self.endpoint)
        if existed:
            if kill_sessions:
                self.kill_sessions(name)
            self.drop_database(name)
        self.create_database(name)
        return existed

    def _execute(self, sql: str, context: str, params: tuple = ()) -> None:
        try:
            with self.inspector.connect(self.endpoint) as conn:
                cursor = conn.cursor()
                try:
                    cursor.execute(sql, params)
                finally:
                    cursor.close()
        except mysql.connector.Error as e:
            raise SchemaError(f"{context}: {e}") from e
