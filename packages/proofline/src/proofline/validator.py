from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from .errors import HierarchyViolation, SchemaError
from .hierarchy import HierarchyRegistry
from .models import CLAIM_CORE_FIELDS, Claim
from .store import RunStore, utc_now

logger = logging.getLogger(__name__)

_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "correlation_id": ("correlation_id", "correlationId"),
}
_RESERVED_KEYS = frozenset(
    {*CLAIM_CORE_FIELDS, "correlationId", "channel", "attributes", "timestamp"}
)


def _missing(field: str) -> SchemaError:
    return SchemaError(
        field=field,
        code="PROOFLINE_SCHEMA_MISSING_FIELD",
        message=f"claim is missing required field {field!r}",
    )


def _malformed(field: str, expected: str, value: object) -> SchemaError:
    return SchemaError(
        field=field,
        code="PROOFLINE_SCHEMA_MALFORMED_FIELD",
        message=f"claim field {field!r} must be {expected}, got {type(value).__name__}",
    )


def _lookup(payload: Mapping[str, Any], field: str) -> tuple[bool, Any]:
    for key in _FIELD_ALIASES.get(field, (field,)):
        if key in payload:
            return True, payload[key]
    return False, None


def check_claim_fields(payload: object) -> dict[str, Any]:
    """Schema check: return claim fields or raise SchemaError naming the first bad field.

    Unrecognised keys become extension attributes; a caller-supplied
    `timestamp` is dropped in favour of the acceptance time.
    """
    if not isinstance(payload, Mapping):
        raise _malformed("claim", "a mapping", payload)

    core: dict[str, Any] = {}
    for field in CLAIM_CORE_FIELDS:
        present, value = _lookup(payload, field)
        if not present or value is None:
            raise _missing(field)
        if field == "passed":
            if not isinstance(value, bool):
                raise _malformed(field, "a boolean", value)
        elif not isinstance(value, str) or not value:
            raise _malformed(field, "a non-empty string", value)
        core[field] = value

    channel = payload.get("channel")
    if channel is not None and not isinstance(channel, str):
        raise _malformed("channel", "a string", channel)

    attributes: dict[str, Any] = {}
    explicit = payload.get("attributes")
    if explicit is not None:
        if not isinstance(explicit, Mapping):
            raise _malformed("attributes", "a mapping", explicit)
        attributes.update(explicit)
    for key, value in payload.items():
        if key not in _RESERVED_KEYS:
            attributes[key] = value
    for key in attributes:
        if not isinstance(key, str):
            raise _malformed("attributes", "a mapping with string keys", key)

    return {**core, "channel": channel, "attributes": attributes}


def parse_claim(payload: object, *, timestamp: datetime) -> Claim:
    return Claim(**check_claim_fields(payload), timestamp=timestamp)


def missing_parents(
    *,
    predicate: str,
    prior_claims: tuple[Claim, ...],
    registry: HierarchyRegistry,
) -> list[str]:
    required = registry.parents(predicate)
    if not required:
        return []
    satisfied = {claim.predicate for claim in prior_claims if claim.passed}
    return [parent for parent in required if parent not in satisfied]


class ClaimValidator:
    def __init__(
        self,
        *,
        registry: HierarchyRegistry,
        store: RunStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.registry = registry
        self.store = store
        self._clock = clock

    def submit(self, payload: object) -> None:
        try:
            fields = check_claim_fields(payload)
        except SchemaError as exc:
            logger.warning("claim rejected: %s", exc)
            raise

        predicate = fields["predicate"]
        correlation_id = fields["correlation_id"]
        with self.store.transaction(correlation_id) as run:
            if fields["passed"]:
                missing = missing_parents(
                    predicate=predicate,
                    prior_claims=run.claims,
                    registry=self.registry,
                )
                if missing:
                    logger.warning(
                        "claim rejected: %s in run %s is missing parents %s",
                        predicate,
                        correlation_id,
                        missing,
                    )
                    raise HierarchyViolation(
                        predicate=predicate,
                        correlation_id=correlation_id,
                        missing_parents=missing,
                    )
            # stamped under the run lock so timestamps follow append order
            claim = Claim(**fields, timestamp=self._clock())
            run.append(claim)

        logger.debug(
            "accepted claim %s passed=%s in run %s",
            claim.predicate,
            claim.passed,
            claim.correlation_id,
        )
