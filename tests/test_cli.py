"""Tests for the command line interface."""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from dbsync.cli import app
from dbsync.exceptions import ConnectivityError, SyncError
from dbsync.models import (
    ConnectionProbe,
    DatabaseDescriptor,
    DumpMethod,
    SyncPlan,
    SyncResult,
)

MB = 1024 * 1024


@pytest.fixture
def cli(settings):
    with patch("dbsync.cli.get_settings", return_value=settings), patch("dbsync.cli.setup_logging"):
        yield CliRunner()


@pytest.fixture
def engine():
    mock = MagicMock()
    mock.plan.return_value = SyncPlan(
        database_name="shop",
        method=DumpMethod.MYSQLSH,
        size_bytes=50 * MB,
        table_count=12,
        will_replace_existing=True,
        threads=4,
    )
    mock.create_dump.return_value = (
        SyncResult(
            success=True,
            database_name="shop",
            dump_size_bytes=50 * MB,
            table_count=12,
            message="DRY RUN: Would replace local database 'shop' with 12 tables (50.0 MB)",
        ),
        None,
    )
    mock.command_preview.return_value = [["mysqlsh", "--password=****"], ["mysqlsh", "load"]]
    mock.execute_sync.return_value = SyncResult(
        success=True,
        database_name="shop",
        duration_seconds=65,
        dump_duration_seconds=20,
        restore_duration_seconds=45,
        dump_size_bytes=30 * MB,
        table_count=12,
    )
    with patch("dbsync.cli.get_sync_engine", return_value=mock) as factory:
        mock.factory = factory
        yield mock


@pytest.fixture
def inspector():
    mock = MagicMock()
    with patch("dbsync.cli.DatabaseInspector", return_value=mock):
        yield mock


def test_sync_with_force(cli, engine):
    result = cli.invoke(app, ["sync", "shop", "--force"])

    assert result.exit_code == 0, result.output
    assert "replace existing local database" in result.output
    assert "Synced 'shop'" in result.output
    engine.execute_sync.assert_called_once()
    assert engine.execute_sync.call_args.args == ("shop",)


def test_sync_dry_run(cli, engine):
    result = cli.invoke(app, ["sync", "shop", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "DRY RUN: Would replace local database 'shop'" in result.output
    assert "--password=****" in result.output
    engine.create_dump.assert_called_once_with("shop", dry_run=True)
    engine.execute_sync.assert_not_called()


def test_sync_cancelled_at_prompt(cli, engine):
    result = cli.invoke(app, ["sync", "shop"], input="n\n")

    assert result.exit_code == 0
    assert "Cancelled" in result.output
    engine.execute_sync.assert_not_called()


def test_sync_confirmed_at_prompt(cli, engine):
    result = cli.invoke(app, ["sync", "shop"], input="y\n")

    assert result.exit_code == 0, result.output
    engine.execute_sync.assert_called_once()


def test_sync_overrides_threads_and_method(cli, engine):
    result = cli.invoke(app, ["sync", "shop", "--force", "--threads", "2", "--method", "mysqldump"])

    assert result.exit_code == 0, result.output
    method, settings = engine.factory.call_args.args
    assert method == DumpMethod.MYSQLDUMP
    assert settings.threads == 2


def test_sync_failure_exits_one(cli, engine):
    cause = ConnectivityError("local", "127.0.0.1:3307: refused")
    failed = SyncResult.failed("shop", "validation failed: boom", datetime.now())
    engine.execute_sync.side_effect = SyncError("validating", "validation failed", cause, failed)

    result = cli.invoke(app, ["sync", "shop", "--force"])

    assert result.exit_code == 1
    assert "validation failed: cannot connect to local server" in result.output


def test_sync_plan_failure_exits_one(cli, engine):
    engine.plan.side_effect = ConnectivityError("remote", "db.example.com:3306: timed out")

    result = cli.invoke(app, ["sync", "shop"])

    assert result.exit_code == 1
    assert "cannot connect to remote server" in result.output


def test_sync_prompts_for_database(cli, engine, inspector):
    inspector.list_databases.return_value = [
        DatabaseDescriptor(name="analytics", size_bytes=MB, table_count=3),
        DatabaseDescriptor(name="shop", size_bytes=50 * MB, table_count=12),
    ]

    result = cli.invoke(app, ["sync", "--force"], input="2\n")

    assert result.exit_code == 0, result.output
    engine.plan.assert_called_once_with("shop")


def test_list_sorted_by_size(cli, inspector):
    inspector.list_databases.return_value = [
        DatabaseDescriptor(name="analytics", size_bytes=MB, table_count=3),
        DatabaseDescriptor(name="shop", size_bytes=50 * MB, table_count=12),
    ]

    result = cli.invoke(app, ["list"])

    assert result.exit_code == 0, result.output
    assert result.output.index("shop") < result.output.index("analytics")
    assert "50.0 MB" in result.output


def test_list_failure(cli, inspector):
    inspector.list_databases.side_effect = ConnectivityError("remote", "Access denied")

    result = cli.invoke(app, ["list"])

    assert result.exit_code == 1
    assert "Access denied" in result.output


def test_status_exits_zero_when_unreachable(cli, inspector):
    inspector.test_connection.side_effect = [
        ConnectionProbe(host="db", port=3306, user="reader", connected=True, server_version="8.0.36"),
        ConnectionProbe(host="127.0.0.1", port=3307, user="root", error="refused"),
    ]

    result = cli.invoke(app, ["status"])

    assert result.exit_code == 0, result.output
    assert "connected" in result.output
    assert "unreachable" in result.output


def test_config_masks_passwords(cli):
    result = cli.invoke(app, ["config"])

    assert result.exit_code == 0, result.output
    assert "remote-secret" not in result.output
    assert "local-secret" not in result.output
    assert "****" in result.output


def test_version(cli):
    result = cli.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "dbsync 0.1.0" in result.output
