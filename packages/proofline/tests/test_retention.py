from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from proofline import Claim, ProofEngine, ProoflineConfig, RunStore, run_retention_gc

_T0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _claim(run: str) -> Claim:
    return Claim(
        event="checked",
        predicate="A",
        passed=True,
        correlation_id=run,
        scope="domain.test",
        timestamp=_T0,
    )


def test_idle_runs_are_evicted() -> None:
    clock = _Clock(_T0)
    store = RunStore(clock=clock)
    store.append("old", _claim("old"))
    store.append("old", _claim("old"))
    clock.now = _T0 + timedelta(minutes=50)
    store.append("fresh", _claim("fresh"))

    stats = run_retention_gc(
        store=store,
        config=ProoflineConfig(run_ttl_secs=3600, max_runs=10),
        now=_T0 + timedelta(minutes=90),
    )

    assert stats.evicted_runs == 1
    assert stats.evicted_claims == 2
    assert stats.remaining_runs == 1
    assert store.correlation_ids() == ("fresh",)


def test_run_ceiling_evicts_least_recently_active() -> None:
    clock = _Clock(_T0)
    store = RunStore(clock=clock)
    for minute, run in enumerate(["r1", "r2", "r3", "r4"]):
        clock.now = _T0 + timedelta(minutes=minute)
        store.append(run, _claim(run))
    clock.now = _T0 + timedelta(minutes=10)
    store.append("r1", _claim("r1"))

    stats = run_retention_gc(
        store=store,
        config=ProoflineConfig(run_ttl_secs=3600, max_runs=2),
        now=_T0 + timedelta(minutes=11),
    )

    assert stats.evicted_runs == 2
    assert sorted(store.correlation_ids()) == ["r1", "r4"]


def test_engine_gc_uses_engine_clock(caplog: pytest.LogCaptureFixture) -> None:
    clock = _Clock(_T0)
    engine = ProofEngine(config=ProoflineConfig(run_ttl_secs=60), clock=clock)
    engine.log(event="e", predicate="A", passed=True, correlation_id="r1", scope="s")
    clock.now = _T0 + timedelta(seconds=61)

    with caplog.at_level("INFO", logger="proofline.retention"):
        stats = engine.run_retention_gc()

    assert stats.evicted_runs == 1
    assert engine.get_logs_for_run("r1") == ()
    assert "evicted idle run r1" in caplog.text


class _InterleavingStore(RunStore):
    """Appends to `run` right after the GC snapshot reads its last activity."""

    def __init__(self, *, clock: _Clock, run: str, append_at: datetime) -> None:
        super().__init__(clock=clock)
        self._clock_source = clock
        self._run = run
        self._append_at = append_at
        self._done = False

    def last_activity(self, correlation_id: str) -> datetime | None:
        stale = super().last_activity(correlation_id)
        if correlation_id == self._run and not self._done:
            self._done = True
            self._clock_source.now = self._append_at
            self.append(correlation_id, _claim(correlation_id))
        return stale


def test_idle_pass_keeps_run_appended_after_snapshot() -> None:
    clock = _Clock(_T0)
    store = _InterleavingStore(clock=clock, run="r1", append_at=_T0 + timedelta(hours=2))
    store.append("r1", _claim("r1"))

    stats = run_retention_gc(
        store=store,
        config=ProoflineConfig(run_ttl_secs=3600, max_runs=10),
        now=_T0 + timedelta(hours=2),
    )

    assert stats.evicted_runs == 0
    assert stats.evicted_claims == 0
    assert len(store.get("r1")) == 2


def test_ceiling_pass_keeps_run_appended_after_snapshot() -> None:
    clock = _Clock(_T0)
    store = _InterleavingStore(clock=clock, run="r1", append_at=_T0 + timedelta(minutes=3))
    store.append("r1", _claim("r1"))
    clock.now = _T0 + timedelta(minutes=1)
    store.append("r2", _claim("r2"))

    stats = run_retention_gc(
        store=store,
        config=ProoflineConfig(run_ttl_secs=3600, max_runs=1),
        now=_T0 + timedelta(minutes=5),
    )

    assert stats.evicted_runs == 0
    assert sorted(store.correlation_ids()) == ["r1", "r2"]
    assert len(store.get("r1")) == 2
