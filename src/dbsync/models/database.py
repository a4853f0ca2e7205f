"""
Database endpoint and metadata models.

Defines connection parameters for the remote and local servers and the
snapshots the inspector returns about them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Endpoint(BaseModel):
    """
    Connection parameters for one MySQL server.

    Read-only input for the sync core; built from Settings.
    """

    label: str = Field(..., description="remote or local")
    host: str
    port: int = Field(default=3306)
    user: str = Field(default="root")
    password: str = Field(default="", repr=False)

    class Config:
        frozen = True

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class DatabaseDescriptor(BaseModel):
    """A database as seen through schema metadata."""

    name: str = Field(..., description="Database name")
    size_bytes: int = Field(default=0, ge=0, description="data_length + index_length")
    table_count: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None

    class Config:
        frozen = True


class ConnectionProbe(BaseModel):
    """Outcome of a single liveness check against an endpoint."""

    host: str
    port: int
    user: str
    connected: bool = False
    server_version: Optional[str] = None
    error: Optional[str] = None
