"""Tests for the shared pre-flight sequence."""

import os
from unittest.mock import MagicMock

import pytest

from dbsync.exceptions import (
    ConnectivityError,
    NotFoundError,
    StorageError,
    ToolUnavailableError,
    ValidationError,
)
from dbsync.models import ConnectionProbe
from dbsync.services import DatabaseInspector, PreflightChecker


@pytest.fixture
def inspector(settings):
    mock = MagicMock(spec=DatabaseInspector)
    mock.validate_database_name.side_effect = DatabaseInspector(settings).validate_database_name
    mock.database_exists.return_value = True
    mock.test_connection.side_effect = lambda endpoint: ConnectionProbe(
        host=endpoint.host, port=endpoint.port, user=endpoint.user, connected=True
    )
    return mock


def unreachable(label):
    def probe(endpoint):
        if endpoint.label == label:
            return ConnectionProbe(
                host=endpoint.host,
                port=endpoint.port,
                user=endpoint.user,
                error=f"{endpoint.address}: Connection refused",
            )
        return ConnectionProbe(host=endpoint.host, port=endpoint.port, user=endpoint.user, connected=True)

    return probe


def test_all_checks_pass(settings, inspector):
    tool_check = MagicMock()

    PreflightChecker(settings, inspector).run("shop", tool_check)

    tool_check.assert_called_once_with()
    assert os.path.isdir(settings.scratch_dir)
    assert os.listdir(settings.scratch_dir) == []


def test_rejects_system_schema_first(settings, inspector):
    tool_check = MagicMock()

    with pytest.raises(ValidationError):
        PreflightChecker(settings, inspector).run("information_schema", tool_check)

    inspector.database_exists.assert_not_called()
    tool_check.assert_not_called()


def test_missing_remote_database(settings, inspector):
    inspector.database_exists.return_value = False

    with pytest.raises(NotFoundError, match="not found on remote server"):
        PreflightChecker(settings, inspector).run("shop", MagicMock())

    inspector.test_connection.assert_not_called()


@pytest.mark.parametrize("label", ["remote", "local"])
def test_unreachable_endpoint(settings, inspector, label):
    inspector.test_connection.side_effect = unreachable(label)
    tool_check = MagicMock()

    with pytest.raises(ConnectivityError, match=f"cannot connect to {label} server.*Connection refused"):
        PreflightChecker(settings, inspector).run("shop", tool_check)

    tool_check.assert_not_called()


def test_tool_check_failure_propagates(settings, inspector):
    tool_check = MagicMock(side_effect=ToolUnavailableError("mysqldump", "'mysqldump --version' failed"))

    with pytest.raises(ToolUnavailableError, match="mysqldump --version"):
        PreflightChecker(settings, inspector).run("shop", tool_check)


def test_unwritable_scratch_dir(settings, inspector, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    settings = settings.model_copy(update={"scratch_dir": str(blocker / "scratch")})

    with pytest.raises(StorageError):
        PreflightChecker(settings, inspector).run("shop", MagicMock())
