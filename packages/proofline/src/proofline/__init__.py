from .analysis import analyze_claims, find_orphans
from .config import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_RUNS,
    DEFAULT_RUN_TTL_SECS,
    ProoflineConfig,
)
from .documents import (
    HIERARCHY_DOCUMENT_SCHEMA,
    HierarchyDocument,
    PredicateDeclaration,
    load_hierarchy_document,
    validate_hierarchy_document,
)
from .engine import ProofEngine
from .errors import (
    CycleError,
    DocumentError,
    HierarchyViolation,
    ProoflineError,
    ProoflineErrorDetail,
    RegistrationError,
    SchemaError,
    error_envelope,
)
from .export import dump_claim, export_claims_ndjson, load_claims_ndjson
from .hierarchy import HierarchyRegistry
from .models import Claim, Orphan, ProofTreeNode, RunAnalysis
from .proof_tree import build_tree_from_claims, format_proof_tree
from .retention import RunRetentionStats, run_retention_gc
from .store import RunStore
from .validator import ClaimValidator, parse_claim

__all__ = [
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MAX_RUNS",
    "DEFAULT_RUN_TTL_SECS",
    "HIERARCHY_DOCUMENT_SCHEMA",
    "Claim",
    "ClaimValidator",
    "CycleError",
    "DocumentError",
    "HierarchyDocument",
    "HierarchyRegistry",
    "HierarchyViolation",
    "Orphan",
    "PredicateDeclaration",
    "ProofEngine",
    "ProofTreeNode",
    "ProoflineConfig",
    "ProoflineError",
    "ProoflineErrorDetail",
    "RegistrationError",
    "RunAnalysis",
    "RunRetentionStats",
    "RunStore",
    "SchemaError",
    "analyze_claims",
    "build_tree_from_claims",
    "dump_claim",
    "error_envelope",
    "export_claims_ndjson",
    "find_orphans",
    "format_proof_tree",
    "load_claims_ndjson",
    "load_hierarchy_document",
    "parse_claim",
    "run_retention_gc",
    "validate_hierarchy_document",
]

__version__ = "0.1.0"
