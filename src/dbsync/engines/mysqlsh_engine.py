"""
Sync engine using MySQL Shell dump and load utilities.
"""

import logging
from urllib.parse import quote

from ..exceptions import ToolUnavailableError
from ..models import DumpMethod, Endpoint
from ..utils.tool_paths import get_tool_path
from .base_engine import BaseSyncEngine

logger = logging.getLogger(__name__)


def build_uri(endpoint: Endpoint) -> str:
    """MySQL Shell URI without the password (passed separately)."""
    host = f"[{endpoint.host}]" if ":" in endpoint.host else endpoint.host
    return f"mysql://{quote(endpoint.user, safe='')}@{host}:{endpoint.port}"


class MysqlshEngine(BaseSyncEngine):
    """
    Sync engine for MySQL Shell ``util dump-schemas`` / ``util load-dump``.

    Dumps into a directory of zstd-compressed chunks. Loading uses LOAD DATA
    LOCAL INFILE, so local_infile is switched on for the local server first.
    """

    @property
    def method(self) -> DumpMethod:
        return DumpMethod.MYSQLSH

    @property
    def mysqlsh_path(self) -> str:
        return get_tool_path("mysqlsh", self.settings.mysqlsh_path)

    def tool_env(self) -> dict:
        return {"MYSQLSH_TERM_COLOR_MODE": "nocolor"}

    def check_tools(self) -> None:
        cmd = [self.mysqlsh_path, "--version"]
        if not self.runner.is_available(cmd):
            raise ToolUnavailableError(
                "mysqlsh",
                f"'{' '.join(cmd)}' failed; install MySQL Shell or set DBSYNC_MYSQLSH_PATH",
            )

    def build_dump_command(self, name: str, artifact: str) -> list[str]:
        remote = self.settings.remote_endpoint
        return [
            self.mysqlsh_path,
            "--uri", build_uri(remote),
            f"--password={remote.password}",
            "--",
            "util", "dump-schemas", name,
            f"--outputUrl={artifact}",
            f"--threads={self.settings.threads}",
            "--consistent=false",  # No global read lock (managed servers)
            "--skipConsistencyChecks",
            "--compression=zstd",
        ]

    def build_restore_command(self, name: str, artifact: str) -> list[str]:
        local = self.settings.local_endpoint
        return [
            self.mysqlsh_path,
            "--uri", build_uri(local),
            f"--password={local.password}",
            "--",
            "util", "load-dump", artifact,
            f"--threads={self.settings.threads}",
            "--deferTableIndexes=all",
            "--resetProgress",  # Ignore progress left by an earlier attempt
            "--ignoreVersion",
            "--skipBinlog=true",
        ]

    def _prepare_target(self, name: str) -> None:
        self.admin.set_global("local_infile", 1)
        super()._prepare_target(name)
