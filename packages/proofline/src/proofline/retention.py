from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from .config import ProoflineConfig
from .store import RunStore, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunRetentionStats:
    evicted_runs: int
    evicted_claims: int
    remaining_runs: int


def run_retention_gc(
    *,
    store: RunStore,
    config: ProoflineConfig,
    now: datetime | None = None,
) -> RunRetentionStats:
    now = now or utc_now()
    expiry_cutoff = now - timedelta(seconds=config.run_ttl_secs)
    evicted_runs = 0
    evicted_claims = 0

    entries: list[tuple[str, datetime]] = []
    for correlation_id in store.correlation_ids():
        last_activity = store.last_activity(correlation_id)
        if last_activity is None:
            continue
        entries.append((correlation_id, last_activity))

    remaining: list[tuple[str, datetime]] = []
    for correlation_id, last_activity in entries:
        if last_activity >= expiry_cutoff:
            remaining.append((correlation_id, last_activity))
            continue
        removed = store.evict(correlation_id, idle_before=expiry_cutoff)
        if not removed:
            continue
        evicted_claims += removed
        evicted_runs += 1
        logger.info("evicted idle run %s (last activity %s)", correlation_id, last_activity)

    if len(remaining) > config.max_runs:
        overflow = len(remaining) - config.max_runs
        for correlation_id, last_activity in sorted(
            remaining,
            key=lambda item: (item[1], item[0]),
        )[:overflow]:
            # skip runs that received a claim after the snapshot
            removed = store.evict(
                correlation_id,
                idle_before=last_activity + timedelta(microseconds=1),
            )
            if not removed:
                continue
            evicted_claims += removed
            evicted_runs += 1
            logger.info("evicted run %s to respect max_runs=%d", correlation_id, config.max_runs)

    return RunRetentionStats(
        evicted_runs=evicted_runs,
        evicted_claims=evicted_claims,
        remaining_runs=store.run_count(),
    )
