"""
Sync engines for the supported dump toolchains.

Each engine handles the dump and restore commands for its toolchain.
"""

from typing import Optional, Union

from ..config import Settings
from ..exceptions import ConfigurationError
from ..models import DumpMethod
from .base_engine import BaseSyncEngine
from .mydumper_engine import MydumperEngine
from .mysqldump_engine import MysqldumpEngine
from .mysqlsh_engine import MysqlshEngine


def get_sync_engine(
    method: Union[DumpMethod, str, None] = None,
    settings: Optional[Settings] = None,
    **kwargs,
) -> BaseSyncEngine:
    """
    Get the appropriate sync engine for a dump method.

    Args:
        method: Dump method (defaults to settings.method)
        settings: Settings passed to the engine
        **kwargs: Collaborators forwarded to the engine constructor

    Returns:
        Sync engine instance

    Raises:
        ConfigurationError: If the method is not supported
    """
    if method is None:
        if settings is None:
            raise ConfigurationError("either a dump method or settings is required")
        method = settings.method

    engines = {
        DumpMethod.MYSQLDUMP: MysqldumpEngine,
        DumpMethod.MYDUMPER: MydumperEngine,
        DumpMethod.MYSQLSH: MysqlshEngine,
    }

    try:
        engine_class = engines[DumpMethod(method)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unsupported dump method: {method}")

    return engine_class(settings=settings, **kwargs)


__all__ = [
    "BaseSyncEngine",
    "MydumperEngine",
    "MysqldumpEngine",
    "MysqlshEngine",
    "get_sync_engine",
]
