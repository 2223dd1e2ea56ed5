from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from proofline import Claim, HierarchyRegistry, RunStore
from proofline.validator import ClaimValidator

_T0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _claim(predicate: str, *, run: str = "r1", passed: bool = True) -> Claim:
    return Claim(
        event=f"checked {predicate}",
        predicate=predicate,
        passed=passed,
        correlation_id=run,
        scope="domain.test",
        timestamp=_T0,
    )


def test_append_preserves_insertion_order() -> None:
    store = RunStore(clock=lambda: _T0)
    for predicate in ["A", "B", "A", "C"]:
        store.append("r1", _claim(predicate))
    assert [claim.predicate for claim in store.get("r1")] == ["A", "B", "A", "C"]


def test_get_unknown_run_is_empty_and_does_not_create_it() -> None:
    store = RunStore()
    assert store.get("missing") == ()
    assert store.correlation_ids() == ()
    assert store.last_activity("missing") is None


def test_get_returns_snapshot() -> None:
    store = RunStore(clock=lambda: _T0)
    store.append("r1", _claim("A"))
    snapshot = store.get("r1")
    store.append("r1", _claim("B"))
    assert len(snapshot) == 1
    assert len(store.get("r1")) == 2


def test_last_activity_tracks_latest_append() -> None:
    ticks = iter([_T0, _T0 + timedelta(seconds=5)])
    store = RunStore(clock=lambda: next(ticks))
    store.append("r1", _claim("A"))
    store.append("r1", _claim("B"))
    assert store.last_activity("r1") == _T0 + timedelta(seconds=5)


def test_evict_removes_run_and_reports_claim_count() -> None:
    store = RunStore(clock=lambda: _T0)
    store.append("r1", _claim("A"))
    store.append("r1", _claim("B"))
    store.append("r2", _claim("A", run="r2"))

    assert store.evict("r1") == 2
    assert store.evict("r1") == 0
    assert store.get("r1") == ()
    assert store.correlation_ids() == ("r2",)


def test_empty_transaction_leaves_no_run_behind() -> None:
    store = RunStore()
    with store.transaction("r1") as run:
        assert run.claims == ()
    assert store.run_count() == 0


def test_concurrent_appends_to_one_run_keep_every_claim() -> None:
    store = RunStore()
    workers = 8
    per_worker = 200
    barrier = threading.Barrier(workers)

    def _work(index: int) -> None:
        barrier.wait()
        for n in range(per_worker):
            store.append("shared", _claim(f"p{index}.{n}", run="shared"))

    threads = [threading.Thread(target=_work, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    claims = store.get("shared")
    assert len(claims) == workers * per_worker
    for index in range(workers):
        own = [c.predicate for c in claims if c.predicate.startswith(f"p{index}.")]
        assert own == [f"p{index}.{n}" for n in range(per_worker)]


def test_concurrent_child_claims_see_parent_consistently() -> None:
    registry = HierarchyRegistry()
    registry.register("A")
    registry.register("B", ["A"])
    store = RunStore()
    validator = ClaimValidator(registry=registry, store=store)
    validator.submit(
        {"event": "root", "predicate": "A", "passed": True, "correlation_id": "r1", "scope": "s"}
    )
    errors: list[BaseException] = []

    def _work() -> None:
        try:
            for _ in range(50):
                validator.submit(
                    {
                        "event": "child",
                        "predicate": "B",
                        "passed": True,
                        "correlation_id": "r1",
                        "scope": "s",
                    }
                )
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=_work) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(store.get("r1")) == 1 + 4 * 50


def test_evict_skips_run_appended_after_cutoff() -> None:
    now = [_T0]
    store = RunStore(clock=lambda: now[0])
    store.append("r1", _claim("A"))
    now[0] = _T0 + timedelta(seconds=30)
    store.append("r1", _claim("B"))

    assert store.evict("r1", idle_before=_T0 + timedelta(seconds=1)) == 0
    assert [claim.predicate for claim in store.get("r1")] == ["A", "B"]

    assert store.evict("r1", idle_before=_T0 + timedelta(seconds=31)) == 2
    assert store.get("r1") == ()
    assert store.evict("r1") == 0
