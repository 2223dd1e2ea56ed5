from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from .config import ProoflineConfig
from .documents import load_hierarchy_document
from .engine import ProofEngine
from .errors import HierarchyViolation, SchemaError
from .export import LoadIssue, canonical_json, load_claims_ndjson, read_ndjson
from .hierarchy import HierarchyRegistry
from .models import RunAnalysis


def _engine_for(hierarchy_path: Path, *, config: ProoflineConfig) -> ProofEngine:
    registry = load_hierarchy_document(hierarchy_path).apply(HierarchyRegistry())
    return ProofEngine(registry=registry, config=config)


def _first_issue_error(issues: list[LoadIssue]) -> ValueError:
    first = sorted(issues, key=lambda item: (item.line, item.code, item.message))[0]
    return ValueError(f"{first.code} at line {first.line}: {first.message}")


def validate_claims(
    path: Path,
    *,
    hierarchy_path: Path,
    config: ProoflineConfig | None = None,
) -> dict[str, Any]:
    engine = _engine_for(hierarchy_path, config=config or ProoflineConfig())
    parsed, issues = read_ndjson(path)
    accepted = 0
    for item in parsed:
        try:
            engine.log(item.payload)
        except SchemaError as exc:
            issues.append(LoadIssue(line=item.line, code="SCHEMA_ERROR", message=str(exc)))
            continue
        except HierarchyViolation as exc:
            issues.append(LoadIssue(line=item.line, code="HIERARCHY_VIOLATION", message=str(exc)))
            continue
        accepted += 1
    issues_sorted = sorted(issues, key=lambda item: (item.line, item.code, item.message))
    return {
        "schema": "proofline-claims-validate@1",
        "input": str(path),
        "valid": len(issues_sorted) == 0,
        "claim_count": accepted,
        "run_count": engine.store.run_count(),
        "issues": [issue.as_json() for issue in issues_sorted],
    }


def _load_engine(
    path: Path,
    *,
    hierarchy_path: Path,
    config: ProoflineConfig,
) -> ProofEngine:
    engine = _engine_for(hierarchy_path, config=config)
    claims, issues = load_claims_ndjson(path)
    if issues:
        raise _first_issue_error(issues)
    engine.ingest(claims)
    return engine


def analyze_claims_file(
    path: Path,
    *,
    hierarchy_path: Path,
    config: ProoflineConfig | None = None,
) -> dict[str, Any]:
    engine = _load_engine(path, hierarchy_path=hierarchy_path, config=config or ProoflineConfig())
    analyses = [engine.analyze_run(run_id) for run_id in engine.store.correlation_ids()]
    return {
        "schema": "proofline-claims-analysis@1",
        "input": str(path),
        "run_count": len(analyses),
        "healthy": all(analysis.healthy for analysis in analyses),
        "runs": [analysis.model_dump(mode="json") for analysis in analyses],
    }


def render_claims_tree(
    path: Path,
    *,
    hierarchy_path: Path,
    correlation_id: str,
    config: ProoflineConfig | None = None,
) -> str:
    engine = _load_engine(path, hierarchy_path=hierarchy_path, config=config or ProoflineConfig())
    return engine.render_proof_tree(correlation_id)


def _code_list(values: list[str]) -> str:
    if not values:
        return "`none`"
    return ", ".join(f"`{value}`" for value in values)


def analysis_markdown(report: dict[str, Any]) -> str:
    lines: list[str] = []
    lines.append("# Proofline Run Analysis")
    lines.append("")
    lines.append(f"- Input: `{report['input']}`")
    lines.append(f"- Run count: `{report['run_count']}`")
    lines.append(f"- Healthy: `{str(report['healthy']).lower()}`")
    for raw in report["runs"]:
        analysis = RunAnalysis.model_validate(raw)
        lines.append("")
        lines.append(f"## Run `{analysis.correlation_id}`")
        lines.append("")
        lines.append(f"- total logs: `{analysis.total_logs}`")
        lines.append(f"- passed: {_code_list(analysis.passed_predicates)}")
        lines.append(f"- failed: {_code_list(analysis.failed_predicates)}")
        if analysis.orphans:
            for orphan in analysis.orphans:
                lines.append(f"- orphan: `{orphan}`")
        else:
            lines.append("- orphans: `none`")
    lines.append("")
    return "\n".join(lines)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="proofline",
        description="Proofline claim tooling: validate, analyze, and render NDJSON claim logs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser(
        "validate", help="Replay claims through the validator in file order."
    )
    validate_parser.add_argument("--hierarchy", dest="hierarchy_path", type=Path, required=True)
    validate_parser.add_argument("--in", dest="input_path", type=Path, required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze every run in a claim export.")
    analyze_parser.add_argument("--hierarchy", dest="hierarchy_path", type=Path, required=True)
    analyze_parser.add_argument("--in", dest="input_path", type=Path, required=True)
    analyze_parser.add_argument("--out-json", dest="out_json_path", type=Path, required=False)
    analyze_parser.add_argument("--out-md", dest="out_md_path", type=Path, required=False)

    tree_parser = subparsers.add_parser("tree", help="Render the proof tree of one run.")
    tree_parser.add_argument("--hierarchy", dest="hierarchy_path", type=Path, required=True)
    tree_parser.add_argument("--in", dest="input_path", type=Path, required=True)
    tree_parser.add_argument("--run", dest="correlation_id", required=True)

    return parser.parse_args(argv)


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        config = ProoflineConfig.from_env()
        logging.basicConfig(level=config.log_level)

        if args.command == "validate":
            report = validate_claims(
                args.input_path,
                hierarchy_path=args.hierarchy_path,
                config=config,
            )
            print(canonical_json(report))
            return 0 if report["valid"] else 1

        if args.command == "analyze":
            report = analyze_claims_file(
                args.input_path,
                hierarchy_path=args.hierarchy_path,
                config=config,
            )
            report_json = canonical_json(report)
            if args.out_json_path is not None:
                _write_text(args.out_json_path, report_json + "\n")
            else:
                print(report_json)
            if args.out_md_path is not None:
                _write_text(args.out_md_path, analysis_markdown(report))
            return 0 if report["healthy"] else 1

        if args.command == "tree":
            print(
                render_claims_tree(
                    args.input_path,
                    hierarchy_path=args.hierarchy_path,
                    correlation_id=args.correlation_id,
                    config=config,
                )
            )
            return 0
    except Exception as exc:  # noqa: BLE001
        print(str(exc), file=sys.stderr)
        return 1

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
