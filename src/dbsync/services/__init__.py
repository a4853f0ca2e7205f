"""Services for dbsync."""

from .database_inspector import DatabaseInspector
from .preflight import PreflightChecker
from .process_runner import ProcessResult, ProcessRunner
from .progress import (
    ArtifactSizeSampler,
    ElapsedTimeEstimate,
    ProgressSupervisor,
    ProgressUpdate,
)
from .schema_admin import SchemaAdmin
from .sync_orchestrator import SyncOrchestrator

__all__ = [
    "ArtifactSizeSampler",
    "DatabaseInspector",
    "ElapsedTimeEstimate",
    "PreflightChecker",
    "ProcessResult",
    "ProcessRunner",
    "ProgressSupervisor",
    "ProgressUpdate",
    "SchemaAdmin",
    "SyncOrchestrator",
]
