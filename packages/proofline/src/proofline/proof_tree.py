from __future__ import annotations

from collections.abc import Iterable

from .hierarchy import HierarchyRegistry
from .models import Claim, ProofTreeNode

PASS_SYMBOL = "✓"
FAIL_SYMBOL = "✗"


def build_tree_from_claims(
    *,
    claims: tuple[Claim, ...],
    registry: HierarchyRegistry,
) -> list[ProofTreeNode]:
    passed = {claim.predicate for claim in claims if claim.passed}
    nodes: list[ProofTreeNode] = []
    visited: set[str] = set()

    for root in registry.roots():
        stack: list[tuple[str, int]] = [(root, 0)]
        while stack:
            predicate, depth = stack.pop()
            if predicate in visited:
                continue
            visited.add(predicate)
            held = predicate in passed
            nodes.append(ProofTreeNode(depth=depth, passed=held, predicate=predicate))
            if not held:
                continue
            expandable = [
                child
                for child in registry.children(predicate)
                if child in passed and child not in visited
            ]
            # reversed so the first registered child is rendered first
            for child in reversed(expandable):
                stack.append((child, depth + 1))

    return nodes


def format_proof_tree(nodes: Iterable[ProofTreeNode], *, indent: str = "  ") -> str:
    lines = [
        f"{indent * node.depth}{PASS_SYMBOL if node.passed else FAIL_SYMBOL} {node.predicate}"
        for node in nodes
    ]
    return "\n".join(lines)
