from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from .analysis import analyze_claims
from .config import ProoflineConfig
from .hierarchy import HierarchyRegistry
from .models import Claim, ProofTreeNode, RunAnalysis
from .proof_tree import build_tree_from_claims, format_proof_tree
from .retention import RunRetentionStats, run_retention_gc
from .store import RunStore, utc_now
from .validator import ClaimValidator

logger = logging.getLogger(__name__)


class ProofEngine:
    """Validates predicate claims against the hierarchy and keeps them per run.

    Build one instance at startup and pass it to every call site that
    records claims.
    """

    def __init__(
        self,
        *,
        registry: HierarchyRegistry | None = None,
        store: RunStore | None = None,
        config: ProoflineConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        # an empty registry or store is falsy; test identity, not truthiness
        self.registry = registry if registry is not None else HierarchyRegistry()
        self.store = store if store is not None else RunStore(clock=clock)
        self.config = config if config is not None else ProoflineConfig.from_env()
        self._clock = clock
        self._validator = ClaimValidator(registry=self.registry, store=self.store, clock=clock)

    def register(self, predicate: str, parents: Iterable[str] = ()) -> None:
        self.registry.register(predicate, parents)

    def log(self, claim: Mapping[str, Any] | None = None, **fields: Any) -> None:
        payload: Any = claim
        if fields:
            payload = {**(claim or {}), **fields}
        self._validator.submit(payload)

    def ingest(self, claims: Iterable[Claim]) -> int:
        """Store already-timestamped claims without validation."""
        count = 0
        for claim in claims:
            self.store.append(claim.correlation_id, claim)
            count += 1
        logger.info("ingested %d claims without validation", count)
        return count

    def get_logs_for_run(self, correlation_id: str) -> tuple[Claim, ...]:
        return self.store.get(correlation_id)

    def analyze_run(self, correlation_id: str) -> RunAnalysis:
        return analyze_claims(
            correlation_id=correlation_id,
            claims=self.store.get(correlation_id),
            registry=self.registry,
        )

    def build_proof_tree(self, correlation_id: str) -> list[ProofTreeNode]:
        return build_tree_from_claims(
            claims=self.store.get(correlation_id),
            registry=self.registry,
        )

    def render_proof_tree(self, correlation_id: str, *, indent: str = "  ") -> str:
        return format_proof_tree(self.build_proof_tree(correlation_id), indent=indent)

    def run_retention_gc(self, *, now: datetime | None = None) -> RunRetentionStats:
        return run_retention_gc(store=self.store, config=self.config, now=now or self._clock())
