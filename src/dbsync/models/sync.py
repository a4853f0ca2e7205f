"""
Sync plan and result models.

A SyncResult is created once per sync attempt and is the unit handed back
to the CLI layer.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class DumpMethod(str, Enum):
    """Supported dump/restore toolchains."""

    MYSQLDUMP = "mysqldump"
    MYDUMPER = "mydumper"
    MYSQLSH = "mysqlsh"


class SyncPhase(str, Enum):
    """Phases of a single sync attempt."""

    IDLE = "idle"
    VALIDATING = "validating"
    DUMPING = "dumping"
    RESTORING = "restoring"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


class SyncPlan(BaseModel):
    """What a sync would do, shown before anything is mutated."""

    database_name: str
    method: DumpMethod
    size_bytes: int = Field(default=0, ge=0)
    table_count: int = Field(default=0, ge=0)
    will_replace_existing: bool = False
    threads: int = Field(default=1, ge=1)

    @property
    def action(self) -> str:
        return "replace" if self.will_replace_existing else "create"


class SyncResult(BaseModel):
    """
    Result of a dump, a restore, or a full sync.

    Immutable after construction. A failed result always carries an error.
    """

    success: bool
    database_name: str
    method: Optional[DumpMethod] = None

    duration_seconds: float = Field(default=0.0, ge=0)
    dump_duration_seconds: float = Field(default=0.0, ge=0)
    restore_duration_seconds: float = Field(default=0.0, ge=0)

    dump_size_bytes: int = 0
    table_count: int = 0

    error: Optional[str] = None
    message: Optional[str] = Field(
        default=None, description="Informational text, e.g. the dry-run plan"
    )

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime = Field(default_factory=datetime.now)

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _check_outcome(self) -> "SyncResult":
        if self.success:
            if self.dump_size_bytes < 0:
                raise ValueError("successful result must have dump_size_bytes >= 0")
            if self.table_count < 0:
                raise ValueError("successful result must have table_count >= 0")
        elif not self.error:
            raise ValueError("failed result must carry an error")
        return self

    @classmethod
    def failed(
        cls,
        database_name: str,
        error: str,
        started_at: datetime,
        method: Optional[DumpMethod] = None,
        dump_duration_seconds: float = 0.0,
        restore_duration_seconds: float = 0.0,
    ) -> "SyncResult":
        """Build a failed result ending now."""
        completed_at = datetime.now()
        return cls(
            success=False,
            database_name=database_name,
            method=method,
            error=error or "unknown error",
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=max((completed_at - started_at).total_seconds(), 0.0),
            dump_duration_seconds=dump_duration_seconds,
            restore_duration_seconds=restore_duration_seconds,
        )
