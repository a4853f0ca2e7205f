"""
Database inspection service.

Read-only metadata queries against a MySQL endpoint (remote or local):
connection probes, database listing, existence checks and size/table
metadata. Connections are short-lived and bounded by the configured
connect timeout.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

import mysql.connector

from ..config import Settings
from ..exceptions import ConnectivityError, NotFoundError, ValidationError
from ..models import ConnectionProbe, DatabaseDescriptor, Endpoint
from ..utils.validators import SYSTEM_SCHEMAS, validate_database_name

logger = logging.getLogger(__name__)

_SYSTEM_SCHEMA_LIST = ", ".join(f"'{name}'" for name in SYSTEM_SCHEMAS)

LIST_DATABASES_QUERY = f"""
    SELECT
        s.SCHEMA_NAME,
        COALESCE(
            (SELECT ROUND(SUM(t.DATA_LENGTH + t.INDEX_LENGTH))
             FROM information_schema.TABLES t
             WHERE t.TABLE_SCHEMA = s.SCHEMA_NAME), 0
        ) AS db_size,
        COALESCE(
            (SELECT COUNT(*)
             FROM information_schema.TABLES t
             WHERE t.TABLE_SCHEMA = s.SCHEMA_NAME), 0
        ) AS tables_count,
        (SELECT MIN(t.CREATE_TIME)
         FROM information_schema.TABLES t
         WHERE t.TABLE_SCHEMA = s.SCHEMA_NAME) AS created_at
    FROM information_schema.SCHEMATA s
    WHERE s.SCHEMA_NAME NOT IN ({_SYSTEM_SCHEMA_LIST})
    ORDER BY s.SCHEMA_NAME
"""

DATABASE_INFO_QUERY = """
    SELECT
        s.SCHEMA_NAME,
        COALESCE(
            (SELECT ROUND(SUM(t.DATA_LENGTH + t.INDEX_LENGTH))
             FROM information_schema.TABLES t
             WHERE t.TABLE_SCHEMA = s.SCHEMA_NAME), 0
        ) AS db_size,
        COALESCE(
            (SELECT COUNT(*)
             FROM information_schema.TABLES t
             WHERE t.TABLE_SCHEMA = s.SCHEMA_NAME), 0
        ) AS tables_count,
        (SELECT MIN(t.CREATE_TIME)
         FROM information_schema.TABLES t
         WHERE t.TABLE_SCHEMA = s.SCHEMA_NAME) AS created_at
    FROM information_schema.SCHEMATA s
    WHERE s.SCHEMA_NAME = %s
"""

DATABASE_EXISTS_QUERY = "SELECT COUNT(*) FROM information_schema.SCHEMATA WHERE SCHEMA_NAME = %s"

SESSIONS_QUERY = (
    "SELECT ID FROM information_schema.PROCESSLIST "
    "WHERE DB = %s AND ID != CONNECTION_ID()"
)


def _descriptor_from_row(row) -> DatabaseDescriptor:
    name, size, tables, created_at = row
    return DatabaseDescriptor(
        name=name,
        size_bytes=int(size or 0),
        table_count=int(tables or 0),
        created_at=created_at,
    )


class DatabaseInspector:
    """
    Queries schema metadata on a MySQL endpoint.

    Never mutates the target server.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @contextmanager
    def connect(self, endpoint: Endpoint) -> Iterator["mysql.connector.MySQLConnection"]:
        """Open a short-lived server-level connection (no default schema)."""
        conn = mysql.connector.connect(
            host=endpoint.host,
            port=endpoint.port,
            user=endpoint.user,
            password=endpoint.password,
            connection_timeout=self.settings.connect_timeout,
            charset=self.settings.default_charset,
        )
        try:
            yield conn
        finally:
            conn.close()

    def test_connection(self, endpoint: Endpoint) -> ConnectionProbe:
        """
        Probe an endpoint with a version query.

        Args:
            endpoint: Server to probe

        Returns:
            ConnectionProbe; failures are reported in ``error``, never raised
        """
        probe = ConnectionProbe(host=endpoint.host, port=endpoint.port, user=endpoint.user)

        try:
            with self.connect(endpoint) as conn:
                cursor = conn.cursor()
                try:
                    cursor.execute("SELECT VERSION()")
                    row = cursor.fetchone()
                finally:
                    cursor.close()
        except Exception as e:
            logger.debug(f"Connection probe to {endpoint.label} {endpoint.address} failed: {e}")
            probe.error = f"{endpoint.address}: {e}"
            return probe

        probe.connected = True
        probe.server_version = str(row[0]) if row else None
        return probe

    def list_databases(self, endpoint: Endpoint) -> list[DatabaseDescriptor]:
        """
        List user databases with size and table count, ordered by name.

        Raises:
            ConnectivityError: If the server cannot be reached or queried
        """
        rows = self._query(endpoint, LIST_DATABASES_QUERY, (), "failed to query databases")
        return [_descriptor_from_row(row) for row in rows]

    def database_exists(self, name: str, endpoint: Endpoint) -> bool:
        rows = self._query(
            endpoint, DATABASE_EXISTS_QUERY, (name,), "failed to check database existence"
        )
        return bool(rows and rows[0][0])

    def get_database_info(self, name: str, endpoint: Endpoint) -> DatabaseDescriptor:
        """
        Fetch size and table count for one database.

        Raises:
            NotFoundError: If the database does not exist on the endpoint
            ConnectivityError: If the server cannot be reached or queried
        """
        rows = self._query(endpoint, DATABASE_INFO_QUERY, (name,), "failed to get database info")
        if not rows:
            raise NotFoundError("Database", name, endpoint.label)
        return _descriptor_from_row(rows[0])

    def list_sessions(self, name: str, endpoint: Endpoint) -> list[int]:
        """Process-list ids of sessions using a database, excluding our own."""
        rows = self._query(endpoint, SESSIONS_QUERY, (name,), "failed to list sessions")
        return [int(row[0]) for row in rows]

    def validate_database_name(self, name: str) -> None:
        """
        Raises:
            ValidationError: If the name is unsafe or names a system schema
        """
        is_valid, error = validate_database_name(name)
        if not is_valid:
            raise ValidationError("database_name", error)

    def _query(self, endpoint: Endpoint, sql: str, params: tuple, context: str) -> list:
        try:
            with self.connect(endpoint) as conn:
                cursor = conn.cursor()
                try:
                    cursor.execute(sql, params)
                    return cursor.fetchall()
                finally:
                    cursor.close()
        except mysql.connector.Error as e:
            raise ConnectivityError(endpoint.label, f"{context}: {e}") from e
