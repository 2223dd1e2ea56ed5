from __future__ import annotations

from collections.abc import Iterable

from .hierarchy import HierarchyRegistry
from .models import Claim, Orphan, RunAnalysis


def _distinct(predicates: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(predicates))


def find_orphans(
    *,
    passed_predicates: list[str],
    registry: HierarchyRegistry,
) -> list[Orphan]:
    passed = set(passed_predicates)
    orphans: list[Orphan] = []
    for predicate in passed_predicates:
        missing = [parent for parent in registry.parents(predicate) if parent not in passed]
        if missing:
            orphans.append(Orphan(predicate=predicate, missing_parents=missing))
    return orphans


def analyze_claims(
    *,
    correlation_id: str,
    claims: tuple[Claim, ...],
    registry: HierarchyRegistry,
) -> RunAnalysis:
    """Audit a run independently of the write path.

    Orphans only appear for claims that reached the store without validation,
    e.g. bulk imports.
    """
    passed_predicates = _distinct(claim.predicate for claim in claims if claim.passed)
    failed_predicates = _distinct(claim.predicate for claim in claims if not claim.passed)
    orphans = find_orphans(passed_predicates=passed_predicates, registry=registry)
    return RunAnalysis(
        correlation_id=correlation_id,
        total_logs=len(claims),
        passed_predicates=passed_predicates,
        failed_predicates=failed_predicates,
        orphans=[orphan.describe() for orphan in orphans],
        orphan_details=orphans,
        healthy=not orphans,
    )
