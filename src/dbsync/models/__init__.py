"""Data models for dbsync."""

from .database import ConnectionProbe, DatabaseDescriptor, Endpoint
from .sync import DumpMethod, SyncPhase, SyncPlan, SyncResult

__all__ = [
    # Database
    "ConnectionProbe",
    "DatabaseDescriptor",
    "Endpoint",
    # Sync
    "DumpMethod",
    "SyncPhase",
    "SyncPlan",
    "SyncResult",
]
