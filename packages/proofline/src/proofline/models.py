from __future__ import annotations

from datetime import datetime
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool

CLAIM_CORE_FIELDS: tuple[str, ...] = (
    "event",
    "predicate",
    "passed",
    "correlation_id",
    "scope",
)


class Claim(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    event: str = Field(min_length=1)
    predicate: str = Field(min_length=1)
    passed: StrictBool
    correlation_id: str = Field(min_length=1, alias="correlationId")
    scope: str = Field(min_length=1)
    channel: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    def as_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Orphan(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    predicate: str
    missing_parents: list[str]

    def describe(self) -> str:
        return f"{self.predicate} (missing: {', '.join(self.missing_parents)})"


class RunAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    correlation_id: str
    total_logs: int = Field(ge=0)
    passed_predicates: list[str] = Field(default_factory=list)
    failed_predicates: list[str] = Field(default_factory=list)
    orphans: list[str] = Field(default_factory=list)
    orphan_details: list[Orphan] = Field(default_factory=list)
    healthy: bool


class ProofTreeNode(NamedTuple):
    depth: int
    passed: bool
    predicate: str
