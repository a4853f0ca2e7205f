"""Pytest fixtures shared by the dbsync tests."""

from unittest.mock import MagicMock

import pytest

from dbsync.config import Settings
from dbsync.models import ConnectionProbe, DatabaseDescriptor
from dbsync.services import DatabaseInspector, ProcessRunner, SchemaAdmin
from dbsync.services.process_runner import ProcessResult

MB = 1024 * 1024


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def settings(scratch_dir):
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        remote_host="db.example.com",
        remote_port=3306,
        remote_user="reader",
        remote_password="remote-secret",
        local_host="127.0.0.1",
        local_port=3307,
        local_user="root",
        local_password="local-secret",
        threads=4,
        scratch_dir=str(scratch_dir),
        progress_interval=0.01,
    )


@pytest.fixture
def shop_info():
    return DatabaseDescriptor(name="shop", size_bytes=50 * MB, table_count=12)


@pytest.fixture
def inspector(settings, shop_info):
    """Inspector double: 'shop' exists remotely only and both servers answer."""
    mock = MagicMock(spec=DatabaseInspector)
    mock.validate_database_name.side_effect = DatabaseInspector(settings).validate_database_name
    mock.database_exists.side_effect = lambda name, endpoint: endpoint.label == "remote"
    mock.test_connection.side_effect = lambda endpoint: ConnectionProbe(
        host=endpoint.host,
        port=endpoint.port,
        user=endpoint.user,
        connected=True,
        server_version="8.0.36",
    )
    mock.get_database_info.return_value = shop_info
    mock.list_sessions.return_value = []
    return mock


@pytest.fixture
def runner():
    mock = MagicMock(spec=ProcessRunner)
    mock.is_available.return_value = True
    mock.capture.return_value = ""
    mock.run.return_value = ProcessResult(returncode=0, output="", duration_seconds=0.1)
    return mock


@pytest.fixture
def admin():
    return MagicMock(spec=SchemaAdmin)


@pytest.fixture
def engine_kwargs(settings, inspector, runner, admin):
    return {"settings": settings, "inspector": inspector, "runner": runner, "admin": admin}
