"""
Sync engine using mysqldump and the mysql client.
"""

import logging
from typing import Callable

from ..exceptions import ToolUnavailableError
from ..models import DumpMethod
from ..utils.tool_paths import get_tool_path
from .base_engine import BaseSyncEngine

logger = logging.getLogger(__name__)


class MysqldumpEngine(BaseSyncEngine):
    """
    Sync engine for the native MySQL client tools.

    Produces a single .sql file streamed from mysqldump's stdout, restored
    by feeding it to the mysql client on stdin.
    """

    artifact_suffix = ".sql"
    kill_sessions_before_drop = False

    @property
    def method(self) -> DumpMethod:
        return DumpMethod.MYSQLDUMP

    @property
    def dump_tool(self) -> str:
        return "mysqldump"

    @property
    def restore_tool(self) -> str:
        return "mysql"

    @property
    def mysqldump_path(self) -> str:
        return get_tool_path("mysqldump", self.settings.mysqldump_path)

    @property
    def mysql_path(self) -> str:
        return get_tool_path("mysql", self.settings.mysql_path)

    def check_tools(self) -> None:
        for tool, path in (("mysqldump", self.mysqldump_path), ("mysql", self.mysql_path)):
            cmd = [path, "--version"]
            if not self.runner.is_available(cmd):
                raise ToolUnavailableError(tool, f"'{' '.join(cmd)}' failed")

    def build_dump_command(self, name: str, artifact: str) -> list[str]:
        remote = self.settings.remote_endpoint
        return [
            self.mysqldump_path,
            "--single-transaction",  # Consistent snapshot for InnoDB
            "--routines",
            "--triggers",
            "--no-tablespaces",  # Avoids needing the PROCESS privilege
            "--set-gtid-purged=OFF",
            "--opt",
            "--quick",  # Retrieve rows one at a time
            "--compress",
            "--disable-keys",
            "--extended-insert",
            f"--host={remote.host}",
            f"--port={remote.port}",
            f"--user={remote.user}",
            f"--password={remote.password}",
            name,
        ]

    def build_restore_command(self, name: str, artifact: str) -> list[str]:
        local = self.settings.local_endpoint
        return [
            self.mysql_path,
            "--compress",
            "--quick",
            "--max_allowed_packet=1GB",
            f"--host={local.host}",
            f"--port={local.port}",
            f"--user={local.user}",
            f"--password={local.password}",
            name,
        ]

    def _run_dump(self, name: str, artifact: str, on_tick: Callable[[], None]) -> None:
        cmd = self.build_dump_command(name, artifact)
        self._log_command(cmd)
        with open(artifact, "wb") as out:
            result = self.runner.run(cmd, tool=self.dump_tool, stdout=out, on_tick=on_tick)
        if result.output:
            # mysqldump writes warnings to stderr
            logger.warning(f"mysqldump stderr: {result.output}")

    def _run_restore(self, name: str, artifact: str, on_tick: Callable[[], None]) -> None:
        cmd = self.build_restore_command(name, artifact)
        self._log_command(cmd)
        with open(artifact, "rb") as dump_file:
            self.runner.run(cmd, tool=self.restore_tool, stdin=dump_file, on_tick=on_tick)
