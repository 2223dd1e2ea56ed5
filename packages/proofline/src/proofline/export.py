from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import Claim


def canonical_json(value: Any) -> str:
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


@dataclass(frozen=True)
class LoadIssue:
    line: int
    code: str
    message: str

    def as_json(self) -> dict[str, Any]:
        return {
            "line": self.line,
            "code": self.code,
            "message": self.message,
        }


@dataclass(frozen=True)
class ParsedLine:
    line: int
    payload: dict[str, Any]


def dump_claim(claim: Claim) -> str:
    return canonical_json(claim.as_json())


def export_claims_ndjson(claims: Iterable[Claim]) -> str:
    lines = [dump_claim(claim) for claim in claims]
    return "\n".join(lines) + ("\n" if lines else "")


def read_ndjson(path: Path) -> tuple[list[ParsedLine], list[LoadIssue]]:
    parsed: list[ParsedLine] = []
    issues: list[LoadIssue] = []
    text = path.read_text(encoding="utf-8", errors="replace")
    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            issues.append(LoadIssue(line=line_no, code="INVALID_JSON", message=f"invalid JSON: {exc}"))
            continue
        if not isinstance(payload, dict):
            issues.append(
                LoadIssue(line=line_no, code="INVALID_JSON", message="line is not a JSON object")
            )
            continue
        parsed.append(ParsedLine(line=line_no, payload=payload))
    return parsed, issues


def load_claims_ndjson(path: Path) -> tuple[list[Claim], list[LoadIssue]]:
    """Load exported claims as stored, timestamps included."""
    parsed, issues = read_ndjson(path)
    claims: list[Claim] = []
    for item in parsed:
        try:
            claims.append(Claim.model_validate(item.payload))
        except ValidationError as exc:
            issues.append(
                LoadIssue(
                    line=item.line,
                    code="INVALID_CLAIM",
                    message=f"invalid claim record: {exc.errors()[0]['msg']}",
                )
            )
    return claims, sorted(issues, key=lambda issue: (issue.line, issue.code))
