from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from .errors import CycleError, RegistrationError

logger = logging.getLogger(__name__)


def _require_identifier(value: object, *, role: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise RegistrationError(
            code="PROOFLINE_INVALID_PREDICATE_ID",
            message=f"{role} identifier must be a non-empty string",
            context={"role": role, "value": repr(value)},
        )
    return value


class HierarchyRegistry:
    """Static dependency graph between predicate identifiers.

    Parents named in a registration but never registered themselves are kept
    as implicit parentless entries, so they show up as roots.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._order: dict[str, None] = {}
        self._registered: set[str] = set()
        self._parents: dict[str, tuple[str, ...]] = {}
        self._children: dict[str, dict[str, None]] = {}

    def __contains__(self, predicate: object) -> bool:
        with self._lock:
            return predicate in self._order

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)

    def _touch(self, predicate: str) -> None:
        if predicate not in self._order:
            self._order[predicate] = None
            self._parents[predicate] = ()
            self._children[predicate] = {}

    def _descendant_path(self, start: str, target: str) -> list[str] | None:
        came_from: dict[str, str] = {}
        stack = [start]
        seen = {start}
        while stack:
            current = stack.pop()
            for child in self._children.get(current, {}):
                if child in seen:
                    continue
                came_from[child] = current
                if child == target:
                    path = [target]
                    while path[-1] != start:
                        path.append(came_from[path[-1]])
                    path.reverse()
                    return path
                seen.add(child)
                stack.append(child)
        return None

    def register(self, predicate: str, parents: Iterable[str] = ()) -> None:
        predicate = _require_identifier(predicate, role="predicate")
        if isinstance(parents, str):
            raise RegistrationError(
                code="PROOFLINE_INVALID_PARENTS",
                message="parents must be an iterable of identifiers, not a string",
                context={"predicate": predicate},
            )
        ordered_parents: dict[str, None] = {}
        for parent in parents:
            ordered_parents[_require_identifier(parent, role="parent")] = None

        with self._lock:
            for parent in ordered_parents:
                if parent == predicate:
                    raise CycleError(predicate=predicate, cycle=[predicate, predicate])
                path = self._descendant_path(predicate, parent)
                if path is not None:
                    raise CycleError(predicate=predicate, cycle=[*path, predicate])

            self._touch(predicate)
            new_parents = tuple(ordered_parents)
            for old_parent in self._parents[predicate]:
                if old_parent not in ordered_parents:
                    self._children[old_parent].pop(predicate, None)
            for parent in new_parents:
                self._touch(parent)
                self._children[parent][predicate] = None
            self._parents[predicate] = new_parents
            self._registered.add(predicate)

        logger.debug("registered predicate %s with parents %s", predicate, list(new_parents))

    def is_registered(self, predicate: str) -> bool:
        with self._lock:
            return predicate in self._registered

    def parents(self, predicate: str) -> tuple[str, ...]:
        with self._lock:
            return self._parents.get(predicate, ())

    def children(self, predicate: str) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._children.get(predicate, {}))

    def roots(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(p for p in self._order if not self._parents[p])

    def predicates(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._order)
