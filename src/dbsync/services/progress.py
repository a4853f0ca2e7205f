"""
Progress supervisor for long-running dump and restore processes.

While an external tool runs, the process runner ticks the supervisor on a
fixed interval. Each tick samples one of:

- the growing artifact's byte size (dump phase), a real measurement
- elapsed wall time times an assumed throughput (restore phase), an
  ESTIMATE only: the vendor tools give no byte progress for imports

Restore estimates are capped at 100% and always flagged ``estimated``.
Once finish() or stop() is called, further ticks are ignored so the final
completion event is never followed by a stale render.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..utils.artifacts import PathLike, artifact_size
from ..utils.formatting import format_size

logger = logging.getLogger(__name__)

# Rough import throughput used for restore estimates: 20 MB per minute
ESTIMATED_RESTORE_RATE = 20 * 1024 * 1024 // 60


@dataclass(frozen=True)
class ProgressUpdate:
    """One rendered progress sample."""
    phase: str
    current_bytes: int
    total_bytes: int
    elapsed_seconds: float
    estimated: bool = False
    done: bool = False

    @property
    def fraction(self) -> float:
        if self.total_bytes <= 0:
            return 1.0 if self.done else 0.0
        return min(self.current_bytes / self.total_bytes, 1.0)

    @property
    def percent(self) -> float:
        return self.fraction * 100

    def describe(self) -> str:
        if self.done:
            return f"{self.phase} completed: {format_size(self.current_bytes)}"
        text = (
            f"{self.phase}... {format_size(self.current_bytes)} / "
            f"{format_size(self.total_bytes)} ({self.percent:.1f}%)"
        )
        if self.estimated:
            text += " (estimated)"
        return text


ProgressReporter = Callable[[ProgressUpdate], None]
Sampler = Callable[[float], int]


class ArtifactSizeSampler:
    """Samples the on-disk size of a dump artifact."""

    def __init__(self, path: PathLike):
        self.path = path

    def __call__(self, elapsed_seconds: float) -> int:
        return artifact_size(self.path)


class ElapsedTimeEstimate:
    """Guesses bytes processed from elapsed time and an assumed rate."""

    def __init__(self, bytes_per_second: int = ESTIMATED_RESTORE_RATE):
        self.bytes_per_second = bytes_per_second

    def __call__(self, elapsed_seconds: float) -> int:
        return int(elapsed_seconds * self.bytes_per_second)


def log_reporter(update: ProgressUpdate) -> None:
    """Default reporter: progress lines at DEBUG level."""
    logger.debug(update.describe())


class ProgressSupervisor:
    """
    Turns periodic ticks into ProgressUpdate events for a reporter.

    Args:
        phase: Label for the updates ("dump", "restore")
        total_bytes: Expected size the samples are measured against
        sampler: Callable returning the bytes processed so far
        reporter: Receives each update
        estimated: Mark samples as approximations and cap them at total_bytes
    """

    def __init__(
        self,
        phase: str,
        total_bytes: int,
        sampler: Sampler,
        reporter: Optional[ProgressReporter] = None,
        estimated: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.phase = phase
        self.total_bytes = max(int(total_bytes), 0)
        self.sampler = sampler
        self.reporter = reporter or log_reporter
        self.estimated = estimated
        self._clock = clock
        self._started = clock()
        self._finished = False
        self._lock = threading.Lock()
        self.last_update: Optional[ProgressUpdate] = None

    @property
    def finished(self) -> bool:
        return self._finished

    def elapsed(self) -> float:
        return self._clock() - self._started

    def tick(self) -> Optional[ProgressUpdate]:
        """Sample and report once; a no-op after completion."""
        with self._lock:
            if self._finished:
                return None
            elapsed = self.elapsed()
            current = self.sampler(elapsed)
            if self.estimated and self.total_bytes:
                current = min(current, self.total_bytes)
            update = ProgressUpdate(
                phase=self.phase,
                current_bytes=current,
                total_bytes=self.total_bytes,
                elapsed_seconds=elapsed,
                estimated=self.estimated,
            )
            self._emit(update)
            return update

    def finish(self, final_bytes: Optional[int] = None) -> Optional[ProgressUpdate]:
        """Report completion exactly once."""
        with self._lock:
            if self._finished:
                return None
            self._finished = True
            update = ProgressUpdate(
                phase=self.phase,
                current_bytes=self.total_bytes if final_bytes is None else final_bytes,
                total_bytes=self.total_bytes,
                elapsed_seconds=self.elapsed(),
                estimated=False,
                done=True,
            )
            self._emit(update)
            return update

    def stop(self) -> None:
        """Stop ticking without a completion event (the process failed)."""
        with self._lock:
            self._finished = True

    def _emit(self, update: ProgressUpdate) -> None:
        self.last_update = update
        try:
            self.reporter(update)
        except Exception as e:
            # rendering must never take down the sync
            logger.warning(f"Progress reporter failed: {e}")
