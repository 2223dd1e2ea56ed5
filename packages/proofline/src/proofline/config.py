from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_RUN_TTL_SECS = 24 * 60 * 60
DEFAULT_MAX_RUNS = 10_000
DEFAULT_LOG_LEVEL = "WARNING"


def _env_int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError as exc:
            raise RuntimeError(f"{name} must be an integer") from exc
    if minimum is not None and value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise RuntimeError(f"{name} must be <= {maximum}")
    return value


def _env_log_level(name: str, default: str) -> str:
    raw = os.environ.get(name, "").strip().upper() or default
    if not isinstance(logging.getLevelName(raw), int):
        raise RuntimeError(f"{name} must be a logging level name")
    return raw


@dataclass(frozen=True)
class ProoflineConfig:
    run_ttl_secs: int = DEFAULT_RUN_TTL_SECS
    max_runs: int = DEFAULT_MAX_RUNS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "ProoflineConfig":
        return cls(
            run_ttl_secs=_env_int(
                "PROOFLINE_RUN_TTL_SECS",
                DEFAULT_RUN_TTL_SECS,
                minimum=1,
            ),
            max_runs=_env_int(
                "PROOFLINE_MAX_RUNS",
                DEFAULT_MAX_RUNS,
                minimum=1,
            ),
            log_level=_env_log_level("PROOFLINE_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
