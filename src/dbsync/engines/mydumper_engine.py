"""
Sync engine using mydumper and myloader inside a container.

Neither tool needs to be installed locally: both run from the mydumper
image with host networking and the dump directory bind-mounted at /dump.
"""

import logging
import os
import sys
from typing import Callable

from ..exceptions import ExternalToolError, StorageError, ToolUnavailableError
from ..models import DumpMethod
from ..utils.tool_paths import get_tool_path
from ..utils.validators import is_loopback_host
from .base_engine import BaseSyncEngine

logger = logging.getLogger(__name__)

CONTAINER_DUMP_DIR = "/dump"
QUERIES_PER_TRANSACTION = 50000


def convert_path_for_container(path: str, platform: str = sys.platform) -> str:
    """Convert ``C:\\dir\\x`` to ``/c/dir/x`` for bind mounts on Windows hosts."""
    if platform != "win32":
        return path
    path = path.replace("\\", "/")
    if len(path) >= 2 and path[1] == ":":
        path = "/" + path[0].lower() + path[2:]
    return path


class MydumperEngine(BaseSyncEngine):
    """
    Sync engine for mydumper/myloader.

    Dumps into a directory of per-table chunk files; schema, data and
    indexes are loaded in parallel.
    """

    @property
    def method(self) -> DumpMethod:
        return DumpMethod.MYDUMPER

    @property
    def dump_tool(self) -> str:
        return "mydumper"

    @property
    def restore_tool(self) -> str:
        return "myloader"

    @property
    def runtime(self) -> str:
        return get_tool_path(self.settings.container_runtime)

    def container_host(self, host: str) -> str:
        """Hosts on the loopback interface are reached through the runtime gateway."""
        if is_loopback_host(host):
            return self.settings.container_host_gateway
        return host

    def check_tools(self) -> None:
        cmd = [self.runtime, "version", "--format", "{{.Server.Version}}"]
        if not self.runner.is_available(cmd):
            raise ToolUnavailableError(
                self.settings.container_runtime,
                f"'{' '.join(cmd)}' failed; is the container runtime running?",
            )
        self.remove_stale_containers()

    def remove_stale_containers(self) -> int:
        """Remove leftover containers of the mydumper image. Best effort."""
        image = self.settings.mydumper_image.split(":", 1)[0]
        try:
            output = self.runner.capture(
                [self.runtime, "ps", "-aq", "--filter", f"ancestor={image}"],
                tool=self.settings.container_runtime,
            )
        except (ExternalToolError, ToolUnavailableError) as e:
            logger.warning(f"Could not list stale containers: {e}")
            return 0

        container_ids = output.split()
        if not container_ids:
            return 0

        try:
            self.runner.capture(
                [self.runtime, "rm", "-f", *container_ids],
                tool=self.settings.container_runtime,
            )
        except (ExternalToolError, ToolUnavailableError) as e:
            logger.warning(f"Could not remove stale containers: {e}")
            return 0

        logger.info(f"Removed {len(container_ids)} stale containers")
        return len(container_ids)

    def _container_prefix(self, artifact: str) -> list[str]:
        mount = convert_path_for_container(os.path.abspath(artifact))
        return [
            self.runtime,
            "run",
            "--rm",
            "--network",
            "host",
            "-v",
            f"{mount}:{CONTAINER_DUMP_DIR}",
            self.settings.mydumper_image,
        ]

    def build_dump_command(self, name: str, artifact: str) -> list[str]:
        remote = self.settings.remote_endpoint
        threads = str(self.settings.threads)
        cmd = self._container_prefix(artifact) + [
            "mydumper",
            "--host", self.container_host(remote.host),
            "--port", str(remote.port),
            "--user", remote.user,
            "--password", remote.password,
            "--database", name,
            "--outputdir", CONTAINER_DUMP_DIR,
            "--threads", threads,
            "--rows", str(self.settings.chunk_size),
            "--compress-protocol",
            "--triggers",
            "--routines",
            "--events",
            "--sync-thread-lock-mode=NO_LOCK",  # No global locks (managed servers)
            "--skip-constraints",  # Foreign keys go to a separate file
            "--skip-indexes",  # Indexes are created after the data load
            "--verbose", "3",
        ]
        if self.settings.compress:
            cmd.append("--compress")
        return cmd

    def build_restore_command(self, name: str, artifact: str) -> list[str]:
        local = self.settings.local_endpoint
        threads = str(self.settings.threads)
        return self._container_prefix(artifact) + [
            "myloader",
            "--host", self.container_host(local.host),
            "--port", str(local.port),
            "--user", local.user,
            "--password", local.password,
            "--database", name,
            "--directory", CONTAINER_DUMP_DIR,
            "--threads", threads,
            "--max-threads-per-table", threads,
            "--max-threads-for-schema-creation", "1",  # Foreign keys need ordering
            "--max-threads-for-index-creation", threads,
            "--optimize-keys",
            "--skip-post",
            "--queries-per-transaction", str(QUERIES_PER_TRANSACTION),
            "--skip-definer",
            "--verbose", "1",
        ]

    def _run_dump(self, name: str, artifact: str, on_tick: Callable[[], None]) -> None:
        try:
            os.makedirs(artifact, exist_ok=True)
        except OSError as e:
            raise StorageError(artifact, f"failed to create dump directory ({e})") from e
        super()._run_dump(name, artifact, on_tick)
