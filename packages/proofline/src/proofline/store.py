from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .models import Claim


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class _RunState:
    claims: list[Claim] = field(default_factory=list)
    last_activity: datetime | None = None
    lock: threading.RLock = field(default_factory=threading.RLock)


class RunHandle:
    """Locked view of one run, valid only inside `RunStore.transaction`."""

    def __init__(
        self,
        *,
        correlation_id: str,
        state: _RunState,
        clock: Callable[[], datetime],
    ) -> None:
        self.correlation_id = correlation_id
        self._state = state
        self._clock = clock

    @property
    def claims(self) -> tuple[Claim, ...]:
        return tuple(self._state.claims)

    def append(self, claim: Claim) -> None:
        self._state.claims.append(claim)
        self._state.last_activity = self._clock()


class RunStore:
    def __init__(self, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._runs: dict[str, _RunState] = {}

    def _state(self, correlation_id: str) -> _RunState:
        with self._lock:
            state = self._runs.get(correlation_id)
            if state is None:
                state = _RunState()
                self._runs[correlation_id] = state
            return state

    @contextmanager
    def transaction(self, correlation_id: str) -> Iterator[RunHandle]:
        while True:
            state = self._state(correlation_id)
            with state.lock:
                with self._lock:
                    # evicted between lookup and lock; retry on a fresh run
                    if self._runs.get(correlation_id) is not state:
                        continue
                handle = RunHandle(correlation_id=correlation_id, state=state, clock=self._clock)
                try:
                    yield handle
                finally:
                    if not state.claims:
                        with self._lock:
                            if self._runs.get(correlation_id) is state:
                                del self._runs[correlation_id]
                return

    def append(self, correlation_id: str, claim: Claim) -> None:
        with self.transaction(correlation_id) as run:
            run.append(claim)

    def get(self, correlation_id: str) -> tuple[Claim, ...]:
        with self._lock:
            state = self._runs.get(correlation_id)
        if state is None:
            return ()
        with state.lock:
            return tuple(state.claims)

    def correlation_ids(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._runs)

    def run_count(self) -> int:
        with self._lock:
            return len(self._runs)

    def last_activity(self, correlation_id: str) -> datetime | None:
        with self._lock:
            state = self._runs.get(correlation_id)
        if state is None:
            return None
        with state.lock:
            return state.last_activity

    def evict(self, correlation_id: str, *, idle_before: datetime | None = None) -> int:
        """Drop a run; with `idle_before`, only if it saw no append since then."""
        with self._lock:
            state = self._runs.get(correlation_id)
        if state is None:
            return 0
        with state.lock:
            if (
                idle_before is not None
                and state.last_activity is not None
                and state.last_activity >= idle_before
            ):
                return 0
            with self._lock:
                if self._runs.get(correlation_id) is not state:
                    return 0
                del self._runs[correlation_id]
            return len(state.claims)
