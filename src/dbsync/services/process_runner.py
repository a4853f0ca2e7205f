"""
External process launcher.

Every dump and restore tool runs through ProcessRunner.run(): the child is
started in its own session, communicate() runs on a single worker thread, and
the caller waits on the resulting future with the tick interval as timeout.
Each timeout is a tick for the progress supervisor; completion always wins.
An interrupt (or any error) while waiting kills the child's process group so
no orphaned mysqldump/docker/mysqlsh process survives.
"""

import logging
import os
import signal
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import IO, Callable, Optional

from ..exceptions import ExternalToolError, ToolUnavailableError

logger = logging.getLogger(__name__)

PASSWORD_WARNING = "Using a password on the command line"


@dataclass
class ProcessResult:
    """Outcome of a finished external process."""
    returncode: int
    output: str
    duration_seconds: float


def clean_tool_output(output: str) -> str:
    """Drop the MySQL client password warning and surrounding blank space."""
    lines = [line for line in output.splitlines() if PASSWORD_WARNING not in line]
    return "\n".join(lines).strip()


class ProcessRunner:
    """
    Runs external tools to completion while ticking a progress callback.

    Args:
        tick_interval: Seconds between progress ticks
        timeout: Optional seconds before the process is killed
    """

    def __init__(self, tick_interval: float = 0.5, timeout: Optional[float] = None):
        self.tick_interval = tick_interval
        self.timeout = timeout

    def run(
        self,
        cmd: list[str],
        *,
        tool: Optional[str] = None,
        stdin: Optional[IO] = None,
        stdout: Optional[IO] = None,
        env: Optional[dict] = None,
        on_tick: Optional[Callable[[], None]] = None,
        check: bool = True,
    ) -> ProcessResult:
        """
        Run a command to completion.

        Args:
            cmd: Command and arguments
            tool: Name used in error messages (defaults to cmd[0])
            stdin: File to feed on standard input
            stdout: File receiving standard output; when omitted stdout and
                stderr are captured together
            env: Extra environment variables
            on_tick: Called every tick_interval while the process runs
            check: Raise ExternalToolError on a non-zero exit

        Returns:
            ProcessResult with the captured (diagnostic) output
        """
        tool = tool or os.path.basename(cmd[0])
        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=stdin if stdin is not None else subprocess.DEVNULL,
                stdout=stdout if stdout is not None else subprocess.PIPE,
                stderr=subprocess.PIPE if stdout is not None else subprocess.STDOUT,
                env=full_env,
                start_new_session=(os.name == "posix"),
            )
        except FileNotFoundError:
            raise ToolUnavailableError(tool, f"command '{cmd[0]}' not found")
        except PermissionError as e:
            raise ToolUnavailableError(tool, f"command '{cmd[0]}' is not executable: {e}")

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"dbsync-{tool}")
        future = executor.submit(proc.communicate)
        deadline = start + self.timeout if self.timeout else None

        try:
            while True:
                try:
                    out, err = future.result(timeout=self.tick_interval)
                    break
                except FutureTimeout:
                    if deadline is not None and time.monotonic() >= deadline:
                        self._kill(proc)
                        raise ExternalToolError(tool, f"timed out after {self.timeout:g}s")
                    if on_tick is not None:
                        on_tick()
        except BaseException:
            self._kill(proc)
            raise
        finally:
            executor.shutdown(wait=False)

        raw = out if stdout is None else err
        output = clean_tool_output((raw or b"").decode("utf-8", errors="replace"))
        result = ProcessResult(
            returncode=proc.returncode,
            output=output,
            duration_seconds=time.monotonic() - start,
        )

        if check and result.returncode != 0:
            raise ExternalToolError(tool, f"exit status {result.returncode}", output)

        return result

    def capture(self, cmd: list[str], *, tool: Optional[str] = None, timeout: float = 30) -> str:
        """Run a short command and return its standard output."""
        tool = tool or os.path.basename(cmd[0])
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=timeout)
        except FileNotFoundError:
            raise ToolUnavailableError(tool, f"command '{cmd[0]}' not found")
        except subprocess.TimeoutExpired:
            raise ExternalToolError(tool, f"timed out after {timeout:g}s")

        if result.returncode != 0:
            stderr = clean_tool_output(result.stderr.decode("utf-8", errors="replace"))
            raise ExternalToolError(tool, f"exit status {result.returncode}", stderr)

        return result.stdout.decode("utf-8", errors="replace").strip()

    def is_available(self, cmd: list[str], timeout: float = 10) -> bool:
        """Check a tool answers a version probe."""
        try:
            result = subprocess.run(cmd, capture_output=True, timeout=timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Availability probe {cmd} failed: {e}")
            return False
        return result.returncode == 0

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        if proc.poll() is not None:
            return
        logger.warning(f"Killing external process {proc.pid}")
        try:
            if os.name == "posix":
                os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
            else:
                proc.kill()
        except (ProcessLookupError, PermissionError):
            proc.kill()
