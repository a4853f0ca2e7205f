"""Tests for the progress supervisor."""

import pytest

from dbsync.services.progress import (
    ESTIMATED_RESTORE_RATE,
    ArtifactSizeSampler,
    ElapsedTimeEstimate,
    ProgressSupervisor,
    ProgressUpdate,
)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_ticks_report_sampled_bytes(clock):
    reported = []
    sizes = iter([100, 400])
    supervisor = ProgressSupervisor(
        "dump", 1000, lambda elapsed: next(sizes), reporter=reported.append, clock=clock
    )

    clock.now += 1
    supervisor.tick()
    clock.now += 1
    supervisor.tick()

    assert [u.current_bytes for u in reported] == [100, 400]
    assert reported[1].elapsed_seconds == pytest.approx(2.0)
    assert reported[1].percent == pytest.approx(40.0)
    assert not reported[1].estimated


def test_only_latest_update_is_kept(clock):
    sizes = iter(range(0, 10000, 10))
    supervisor = ProgressSupervisor("dump", 10000, lambda elapsed: next(sizes), reporter=lambda u: None, clock=clock)

    for _ in range(500):
        clock.now += 0.5
        supervisor.tick()

    assert supervisor.last_update.current_bytes == 4990
    final = supervisor.finish()
    assert supervisor.last_update is final


def test_finish_emits_once_and_stops_ticks(clock):
    reported = []
    supervisor = ProgressSupervisor("dump", 1000, lambda elapsed: 10, reporter=reported.append, clock=clock)

    final = supervisor.finish(1200)
    assert final.done
    assert final.current_bytes == 1200
    assert supervisor.finish() is None
    assert supervisor.tick() is None
    assert reported == [final]


def test_stop_suppresses_completion(clock):
    reported = []
    supervisor = ProgressSupervisor("dump", 1000, lambda elapsed: 10, reporter=reported.append, clock=clock)

    supervisor.stop()

    assert supervisor.tick() is None
    assert supervisor.finish() is None
    assert reported == []


def test_estimate_is_capped_and_flagged(clock):
    supervisor = ProgressSupervisor(
        "restore", 1000, ElapsedTimeEstimate(bytes_per_second=300), estimated=True, clock=clock
    )

    clock.now += 2
    assert supervisor.tick().current_bytes == 600
    clock.now += 10
    update = supervisor.tick()
    assert update.current_bytes == 1000
    assert update.estimated
    assert "(estimated)" in update.describe()

    final = supervisor.finish()
    assert final.current_bytes == 1000
    assert not final.estimated


def test_default_restore_rate_is_twenty_megabytes_per_minute():
    assert ESTIMATED_RESTORE_RATE * 60 == pytest.approx(20 * 1024 * 1024, abs=60)
    assert ElapsedTimeEstimate()(60) == ESTIMATED_RESTORE_RATE * 60


def test_reporter_errors_do_not_propagate(clock, caplog):
    def broken(update):
        raise RuntimeError("terminal went away")

    supervisor = ProgressSupervisor("dump", 10, lambda elapsed: 1, reporter=broken, clock=clock)

    assert supervisor.tick() is not None
    assert "terminal went away" in caplog.text


def test_artifact_size_sampler(tmp_path):
    sampler = ArtifactSizeSampler(tmp_path / "dump")
    assert sampler(0) == 0

    (tmp_path / "dump").mkdir()
    (tmp_path / "dump" / "a.sql").write_bytes(b"x" * 10)
    (tmp_path / "dump" / "sub").mkdir()
    (tmp_path / "dump" / "sub" / "b.sql").write_bytes(b"y" * 5)
    assert sampler(0) == 15

    single = tmp_path / "single.sql"
    single.write_bytes(b"z" * 7)
    assert ArtifactSizeSampler(single)(0) == 7


def test_fraction_with_unknown_total():
    assert ProgressUpdate("dump", 5, 0, 1.0).fraction == 0.0
    assert ProgressUpdate("dump", 5, 0, 1.0, done=True).fraction == 1.0
