"""
Base sync engine defining the interface for all dump/restore strategies.
"""

import logging
import os
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional, Tuple

from ..config import Settings, get_settings
from ..exceptions import StorageError
from ..models import DumpMethod, SyncPlan, SyncResult
from ..services.database_inspector import DatabaseInspector
from ..services.preflight import PreflightChecker
from ..services.process_runner import ProcessRunner
from ..services.progress import (
    ArtifactSizeSampler,
    ElapsedTimeEstimate,
    ProgressReporter,
    ProgressSupervisor,
)
from ..services.schema_admin import SchemaAdmin
from ..services.sync_orchestrator import SyncOrchestrator
from ..utils.artifacts import artifact_size, remove_artifact
from ..utils.formatting import format_duration, format_size, mask_secrets

logger = logging.getLogger(__name__)


class BaseSyncEngine(ABC):
    """
    Abstract base class for sync engines.

    Engines differ only in the commands they build and run; validation,
    progress reporting, artifact handling and target preparation are shared.
    """

    #: Appended to artifact paths (".sql" for single-file dumps)
    artifact_suffix = ""

    #: Terminate sessions on an existing local schema before dropping it
    kill_sessions_before_drop = True

    def __init__(
        self,
        settings: Optional[Settings] = None,
        inspector: Optional[DatabaseInspector] = None,
        runner: Optional[ProcessRunner] = None,
        admin: Optional[SchemaAdmin] = None,
        reporter: Optional[ProgressReporter] = None,
    ):
        self.settings = settings or get_settings()
        self.inspector = inspector or DatabaseInspector(self.settings)
        self.runner = runner or ProcessRunner(
            tick_interval=self.settings.progress_interval,
            timeout=self.settings.tool_timeout,
        )
        self.admin = admin or SchemaAdmin(self.settings, self.inspector)
        self.reporter = reporter
        self.preflight = PreflightChecker(self.settings, self.inspector)

    @property
    @abstractmethod
    def method(self) -> DumpMethod:
        """Return the dump method this engine implements."""
        pass

    @abstractmethod
    def check_tools(self) -> None:
        """
        Verify the external tools are usable.

        Raises:
            ToolUnavailableError: Naming the command that was attempted
        """
        pass

    @abstractmethod
    def build_dump_command(self, name: str, artifact: str) -> list[str]:
        pass

    @abstractmethod
    def build_restore_command(self, name: str, artifact: str) -> list[str]:
        pass

    @property
    def dump_tool(self) -> str:
        return self.method.value

    @property
    def restore_tool(self) -> str:
        return self.method.value

    def tool_env(self) -> Optional[dict]:
        """Extra environment variables for the external tools."""
        return None

    # Shared operations

    def validate(self, name: str) -> None:
        """
        Check a sync of ``name`` can start. No subprocess is spawned before
        the connectivity checks have passed.
        """
        self.preflight.run(name, self.check_tools)

    def plan(self, name: str) -> SyncPlan:
        """Validate and describe what a sync would do."""
        self.validate(name)
        info = self.inspector.get_database_info(name, self.settings.remote_endpoint)
        exists = self.inspector.database_exists(name, self.settings.local_endpoint)
        return SyncPlan(
            database_name=name,
            method=self.method,
            size_bytes=info.size_bytes,
            table_count=info.table_count,
            will_replace_existing=exists,
            threads=self.settings.threads,
        )

    def new_artifact_path(self, name: str) -> str:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        filename = f"{self.method.value}_{name}_{stamp}{self.artifact_suffix}"
        return os.path.join(self.settings.scratch_dir, filename)

    def create_dump(self, name: str, dry_run: bool = False) -> Tuple[SyncResult, Optional[str]]:
        """
        Dump a remote database into the scratch directory.

        Args:
            name: Database to dump
            dry_run: Only report what would happen

        Returns:
            Tuple of (result, artifact path); the path is None for a dry run

        Raises:
            ValidationError, NotFoundError, ConnectivityError, ToolUnavailableError:
                On a dry run, if the sync could not start
            ExternalToolError: If the dump tool fails (the partial artifact
                is removed first)
        """
        started_at = datetime.now()

        if dry_run:
            plan = self.plan(name)
            action = "replace" if plan.will_replace_existing else "create"
            message = (
                f"DRY RUN: Would {action} local database '{name}' with "
                f"{plan.table_count} tables ({format_size(plan.size_bytes)})"
            )
            result = SyncResult(
                success=True,
                database_name=name,
                method=self.method,
                dump_size_bytes=plan.size_bytes,
                table_count=plan.table_count,
                message=message,
                started_at=started_at,
                completed_at=datetime.now(),
            )
            return result, None

        info = self.inspector.get_database_info(name, self.settings.remote_endpoint)
        try:
            os.makedirs(self.settings.scratch_dir, exist_ok=True)
        except OSError as e:
            raise StorageError(self.settings.scratch_dir, f"cannot create scratch directory ({e})") from e

        artifact = self.new_artifact_path(name)
        logger.info(
            f"Dumping '{name}' ({format_size(info.size_bytes)}, "
            f"{info.table_count} tables) with {self.method.value}"
        )

        supervisor = ProgressSupervisor(
            phase="dump",
            total_bytes=info.size_bytes,
            sampler=ArtifactSizeSampler(artifact),
            reporter=self.reporter,
        )
        start = time.monotonic()
        try:
            self._run_dump(name, artifact, supervisor.tick)
        except BaseException:
            supervisor.stop()
            remove_artifact(artifact)
            raise

        duration = time.monotonic() - start
        size = artifact_size(artifact)
        supervisor.finish(size)
        logger.info(f"Dump of '{name}' completed in {format_duration(duration)}: {format_size(size)}")

        result = SyncResult(
            success=True,
            database_name=name,
            method=self.method,
            duration_seconds=duration,
            dump_duration_seconds=duration,
            dump_size_bytes=size,
            table_count=info.table_count,
            started_at=started_at,
            completed_at=datetime.now(),
        )
        return result, artifact

    def restore_dump(self, artifact: Optional[str], name: str, dry_run: bool = False) -> SyncResult:
        """
        Recreate the local database and load a dump artifact into it.

        Raises:
            StorageError: If the artifact does not exist (also for a dry run)
            SchemaError: If the local schema cannot be dropped or created
            ExternalToolError: If the restore tool fails
        """
        if not artifact or not os.path.exists(artifact):
            raise StorageError(artifact or "", "dump artifact not found")

        started_at = datetime.now()
        total = artifact_size(artifact)

        if dry_run:
            return SyncResult(
                success=True,
                database_name=name,
                method=self.method,
                dump_size_bytes=total,
                message=f"DRY RUN: Would restore {format_size(total)} into local database '{name}'",
                started_at=started_at,
                completed_at=datetime.now(),
            )

        logger.info(f"Restoring '{name}' from {artifact}")
        start = time.monotonic()
        self._prepare_target(name)

        supervisor = ProgressSupervisor(
            phase="restore",
            total_bytes=total,
            sampler=ElapsedTimeEstimate(),
            reporter=self.reporter,
            estimated=True,
        )
        try:
            self._run_restore(name, artifact, supervisor.tick)
        except BaseException:
            supervisor.stop()
            raise
        supervisor.finish()

        duration = time.monotonic() - start
        logger.info(f"Restore of '{name}' completed in {format_duration(duration)}")

        return SyncResult(
            success=True,
            database_name=name,
            method=self.method,
            duration_seconds=duration,
            restore_duration_seconds=duration,
            dump_size_bytes=total,
            started_at=started_at,
            completed_at=datetime.now(),
        )

    def execute_sync(self, name: str, on_phase=None) -> SyncResult:
        """Validate, dump, restore and clean up in one go."""
        return SyncOrchestrator(self, on_phase=on_phase).run(name)

    def command_preview(self, name: str) -> list[list[str]]:
        """The dump and restore commands a sync would run, passwords masked."""
        artifact = self.new_artifact_path(name)
        return [
            mask_secrets(self.build_dump_command(name, artifact)),
            mask_secrets(self.build_restore_command(name, artifact)),
        ]

    # Hooks

    def _prepare_target(self, name: str) -> None:
        self.admin.recreate_database(name, kill_sessions=self.kill_sessions_before_drop)

    def _run_dump(self, name: str, artifact: str, on_tick: Callable[[], None]) -> None:
        cmd = self.build_dump_command(name, artifact)
        self._log_command(cmd)
        self.runner.run(cmd, tool=self.dump_tool, env=self.tool_env(), on_tick=on_tick)

    def _run_restore(self, name: str, artifact: str, on_tick: Callable[[], None]) -> None:
        cmd = self.build_restore_command(name, artifact)
        self._log_command(cmd)
        self.runner.run(cmd, tool=self.restore_tool, env=self.tool_env(), on_tick=on_tick)

    def _log_command(self, cmd: list[str]) -> None:
        logger.debug(f"Executing: {' '.join(mask_secrets(cmd))}")
