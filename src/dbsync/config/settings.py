"""
Application settings and configuration management.

Loads configuration from DBSYNC_* environment variables and .env files
with sensible defaults.
"""

import tempfile
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from ..models import DumpMethod, Endpoint
from ..utils.validators import validate_hostname, validate_port


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Remote MySQL (source)
    remote_host: str = Field(default="localhost")
    remote_port: int = Field(default=3306)
    remote_user: str = Field(default="root")
    remote_password: str = Field(default="")

    # Local MySQL (destination)
    local_host: str = Field(default="localhost")
    local_port: int = Field(default=3306)
    local_user: str = Field(default="root")
    local_password: str = Field(default="")

    # Dump settings
    method: DumpMethod = Field(default=DumpMethod.MYSQLSH)
    threads: int = Field(default=8)
    chunk_size: int = Field(default=100000, description="Rows per mydumper chunk")
    compress: bool = Field(default=False)
    scratch_dir: str = Field(default_factory=tempfile.gettempdir)
    connect_timeout: int = Field(default=10, description="Seconds for connection probes")
    tool_timeout: Optional[float] = Field(
        default=None, description="Seconds before a dump/restore process is killed"
    )
    progress_interval: float = Field(default=0.5)

    # Tool locations
    mysqldump_path: Optional[str] = Field(default=None)
    mysql_path: Optional[str] = Field(default=None)
    mysqlsh_path: Optional[str] = Field(default=None)

    # Container strategy
    mydumper_image: str = Field(default="mydumper/mydumper:latest")
    container_runtime: str = Field(default="docker")
    container_host_gateway: str = Field(default="host.docker.internal")

    # CLI
    default_charset: str = Field(default="utf8mb4")
    confirm_destructive: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    class Config:
        env_prefix = "DBSYNC_"
        env_file = ("~/.dbsync.env", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @field_validator("remote_host", "local_host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        is_valid, error = validate_hostname(value)
        if not is_valid:
            raise ValueError(error)
        return value.strip()

    @field_validator("remote_port", "local_port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        is_valid, error = validate_port(value)
        if not is_valid:
            raise ValueError(error)
        return value

    @field_validator("threads", "chunk_size", "connect_timeout")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @property
    def remote_endpoint(self) -> Endpoint:
        """Connection parameters for the source server."""
        return Endpoint(
            label="remote",
            host=self.remote_host,
            port=self.remote_port,
            user=self.remote_user,
            password=self.remote_password,
        )

    @property
    def local_endpoint(self) -> Endpoint:
        """Connection parameters for the destination server."""
        return Endpoint(
            label="local",
            host=self.local_host,
            port=self.local_port,
            user=self.local_user,
            password=self.local_password,
        )

    def describe(self) -> dict:
        """Effective configuration with passwords masked."""
        data = self.model_dump(mode="json")
        for key in ("remote_password", "local_password"):
            if data.get(key):
                data[key] = "****"
        return data


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
