from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProoflineErrorDetail(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


class ProoflineError(Exception):
    def __init__(
        self,
        *,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.detail = ProoflineErrorDetail(
            code=code,
            message=message,
            context=context or {},
        )


class SchemaError(ProoflineError, ValueError):
    """A submitted claim is missing a required field or carries a malformed one."""

    def __init__(self, *, field: str, code: str, message: str) -> None:
        super().__init__(code=code, message=message, context={"field": field})
        self.field = field


class HierarchyViolation(ProoflineError):
    """A passed claim arrived before every declared parent passed in the same run."""

    def __init__(
        self,
        *,
        predicate: str,
        correlation_id: str,
        missing_parents: list[str],
    ) -> None:
        super().__init__(
            code="PROOFLINE_HIERARCHY_VIOLATION",
            message=(
                f"predicate {predicate!r} claimed before required parents passed: "
                + ", ".join(missing_parents)
            ),
            context={
                "predicate": predicate,
                "correlation_id": correlation_id,
                "missing_parents": list(missing_parents),
            },
        )
        self.predicate = predicate
        self.correlation_id = correlation_id
        self.missing_parents = tuple(missing_parents)


class RegistrationError(ProoflineError, ValueError):
    pass


class CycleError(RegistrationError):
    def __init__(self, *, predicate: str, cycle: list[str]) -> None:
        super().__init__(
            code="PROOFLINE_HIERARCHY_CYCLE",
            message="registration would create a cycle: " + " -> ".join(cycle),
            context={"predicate": predicate, "cycle": list(cycle)},
        )
        self.predicate = predicate
        self.cycle = tuple(cycle)


class DocumentError(ProoflineError, ValueError):
    pass


def error_envelope(error: ProoflineError) -> dict[str, ProoflineErrorDetail]:
    return {"detail": error.detail}
