"""
Sync orchestrator.

Drives one sync attempt through a linear state machine:

    idle -> validating -> dumping -> restoring -> cleanup -> done

Any failure moves to ``failed``, which is terminal. The dump artifact is
removed whether the attempt succeeded or not.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from ..exceptions import SyncError
from ..models import SyncPhase, SyncResult
from ..utils.artifacts import remove_artifact
from ..utils.formatting import format_duration, format_size

logger = logging.getLogger(__name__)

PHASE_CONTEXT = {
    SyncPhase.IDLE: "validation failed",
    SyncPhase.VALIDATING: "validation failed",
    SyncPhase.DUMPING: "dump creation failed",
    SyncPhase.RESTORING: "dump restoration failed",
}


class SyncOrchestrator:
    """
    Runs validate, dump, restore and cleanup for one database.

    Args:
        engine: Sync engine providing validate/create_dump/restore_dump
        on_phase: Optional callback invoked on every phase change
    """

    def __init__(self, engine, on_phase: Optional[Callable[[SyncPhase], None]] = None):
        self.engine = engine
        self.on_phase = on_phase
        self.phase = SyncPhase.IDLE
        self.history: list[SyncPhase] = [SyncPhase.IDLE]

    def run(self, name: str) -> SyncResult:
        """
        Sync one database from the remote server to the local server.

        Returns:
            Successful SyncResult

        Raises:
            SyncError: On any failure, wrapping the cause and carrying a
                failed SyncResult
        """
        if self.phase is not SyncPhase.IDLE:
            raise RuntimeError(f"orchestrator already used (phase: {self.phase.value})")

        method = self.engine.method
        started_at = datetime.now()
        start = time.monotonic()
        artifact = None
        dump_result = None
        restore_result = None

        logger.info(f"Starting {method.value} sync of '{name}'")

        try:
            self._enter(SyncPhase.VALIDATING)
            self.engine.validate(name)

            self._enter(SyncPhase.DUMPING)
            dump_result, artifact = self.engine.create_dump(name)

            self._enter(SyncPhase.RESTORING)
            restore_result = self.engine.restore_dump(artifact, name)
            duration = time.monotonic() - start
        except KeyboardInterrupt:
            logger.warning(f"Sync of '{name}' interrupted during {self.phase.value}")
            self._cleanup(artifact)
            self._enter(SyncPhase.FAILED)
            raise
        except Exception as e:
            failed_phase = self.phase
            context = PHASE_CONTEXT.get(failed_phase, "sync failed")
            logger.error(f"Sync of '{name}' failed: {context}: {e}")

            self._cleanup(artifact)
            self._enter(SyncPhase.FAILED)

            result = SyncResult.failed(
                database_name=name,
                error=f"{context}: {e}",
                started_at=started_at,
                method=method,
                dump_duration_seconds=dump_result.dump_duration_seconds if dump_result else 0.0,
            )
            raise SyncError(failed_phase.value, context, e, result) from e

        self._enter(SyncPhase.CLEANUP)
        self._cleanup(artifact)
        self._enter(SyncPhase.DONE)

        result = SyncResult(
            success=True,
            database_name=name,
            method=method,
            duration_seconds=duration,
            dump_duration_seconds=dump_result.dump_duration_seconds,
            restore_duration_seconds=restore_result.restore_duration_seconds,
            dump_size_bytes=dump_result.dump_size_bytes,
            table_count=dump_result.table_count,
            started_at=started_at,
            completed_at=datetime.now(),
        )
        logger.info(
            f"Synced '{name}' in {format_duration(duration)} "
            f"({format_size(result.dump_size_bytes)}, {result.table_count} tables)"
        )
        return result

    def _enter(self, phase: SyncPhase) -> None:
        logger.debug(f"Sync phase: {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.history.append(phase)
        if self.on_phase is not None:
            self.on_phase(phase)

    def _cleanup(self, artifact) -> None:
        if artifact is None:
            return
        logger.debug(f"Removing dump artifact {artifact}")
        remove_artifact(artifact)
