#!/usr/bin/env python3
"""Check GitHub Actions workflows for floating, stale or deprecated action pins."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Sequence

from n00pin.core import (
    IssueKind,
    PolicyError,
    PolicyLoader,
    Settings,
    VersionClassifier,
    WorkflowValidationResult,
    WorkflowValidator,
    batch_fix,
    collect_file_updates,
    diff,
    fix_command,
    suggest_reference,
)
from n00pin.core.validator import Issue, validate_files
from n00pin.observability import record_validation

LOG_ENV = "N00PIN_LOG"
ISSUE_TAGS = {
    IssueKind.DEPRECATED_VERSION: "[DEPRECATED]",
    IssueKind.MISSING_VERSION: "[MISSING VERSION]",
    IssueKind.INVALID_VERSION: "[INVALID VERSION]",
    IssueKind.DOCUMENT_SYNTAX: "[YAML SYNTAX]",
    IssueKind.MISSING_PROPERTY: "[MISSING PROPERTY]",
}

logger = logging.getLogger("n00pin.cli")


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        name = os.environ.get(LOG_ENV, "WARNING").upper()
        level = getattr(logging, name, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def format_issue(issue: Issue) -> str:
    tag = ISSUE_TAGS.get(issue.kind, "[ERROR]")
    location = f" (line {issue.location})" if issue.location > 0 else ""
    context = ""
    if issue.job and issue.line_number > 0:
        context = f"job '{issue.job}' step {issue.line_number}: "
    return f"  {tag}{location} {context}{issue.message}"


def format_warning(issue: Issue) -> str:
    location = f" (line {issue.location})" if issue.location > 0 else ""
    return f"  [WARNING]{location} {issue.message}"


def discover_workflows(workflows_dir: Path) -> List[Path]:
    if not workflows_dir.is_dir():
        return []
    found = list(workflows_dir.glob("*.yml")) + list(workflows_dir.glob("*.yaml"))
    return sorted(found)


def run_validation(
    validator: WorkflowValidator, paths: Sequence[Path], jobs: int
) -> List[WorkflowValidationResult]:
    if jobs <= 1 or len(paths) <= 1:
        return validate_files(validator, paths)
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        # map keeps argument order for the report.
        return list(pool.map(validator.validate_file, paths))


def print_report(
    results: Iterable[WorkflowValidationResult], show_warnings: bool
) -> None:
    for result in results:
        print(f"Validating {result.filename}...")
        if show_warnings:
            for warning in result.warnings:
                print(format_warning(warning))
        if not result.has_issues():
            print(f"✓ {result.filename} validation passed")
            continue
        print(f"✗ Issues found in {result.filename}:", file=sys.stderr)
        for issue in result.issues:
            print(format_issue(issue), file=sys.stderr)
            if (
                issue.kind is IssueKind.DEPRECATED_VERSION
                and issue.reference
                and issue.suggested_fix
            ):
                replacement = suggest_reference(issue.reference, issue.suggested_fix)
                if replacement == issue.reference:
                    continue
                print(
                    f"  -> Suggested fix: {issue.reference} -> {replacement}",
                    file=sys.stderr,
                )
                print(
                    "  -> Fix command: "
                    + fix_command(result.filename, issue.reference, replacement),
                    file=sys.stderr,
                )
        print(file=sys.stderr)


def write_batch_fix(script: str, target: str) -> None:
    if target == "-":
        sys.stdout.write(script)
        return
    path = Path(target)
    path.write_text(script, encoding="utf-8")
    path.chmod(0o755)
    print(f"[n00pin] Batch fix script written to {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="n00pin", description=__doc__)
    parser.add_argument(
        "files",
        nargs="*",
        help="Workflow files to check (defaults to .github/workflows/*.y*ml)",
    )
    parser.add_argument("--policy", help="Path to an action policy YAML file")
    parser.add_argument(
        "--cache-ttl-ms",
        type=int,
        help="Version cache TTL in milliseconds (default 24h)",
    )
    parser.add_argument(
        "--workflows-dir",
        help="Directory scanned when no files are given",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        help="Validate files concurrently with this many threads",
    )
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Print a unified diff of suggested reference updates",
    )
    parser.add_argument(
        "--batch-fix",
        metavar="PATH",
        help="Write a shell script applying all suggested fixes ('-' for stdout)",
    )
    parser.add_argument(
        "--json", action="store_true", help="Emit a JSON report instead of text"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail on warnings (outdated tags, SHA pins, unmaintained actions)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = Settings.from_env().with_overrides(
            policy_path=Path(args.policy) if args.policy else None,
            cache_ttl_ms=args.cache_ttl_ms,
            workflows_dir=Path(args.workflows_dir) if args.workflows_dir else None,
            jobs=args.jobs,
            strict=args.strict,
        )
    except ValueError as exc:
        print(f"[n00pin] Invalid settings: {exc}", file=sys.stderr)
        return 2

    try:
        policy = PolicyLoader().load(settings.policy_path)
    except PolicyError as exc:
        print(f"[n00pin] {exc}", file=sys.stderr)
        return 2

    paths = [Path(name) for name in args.files] or discover_workflows(
        settings.workflows_dir
    )
    if not paths:
        print(f"[n00pin] No workflow files found under {settings.workflows_dir}.")
        return 0
    logger.info(
        "Checking %d workflow file(s) with %d job(s)", len(paths), settings.jobs
    )

    classifier = VersionClassifier(policy, cache_ttl_ms=settings.cache_ttl_ms)
    validator = WorkflowValidator(classifier)
    results = run_validation(validator, paths, settings.jobs)
    for result in results:
        record_validation(
            result.filename,
            issues=len(result.issues),
            warnings=len(result.warnings),
            issue_kinds=[issue.kind.value for issue in result.issues],
        )

    failed = any(result.has_issues() for result in results)
    if settings.strict:
        failed = failed or any(result.warnings for result in results)
    file_updates = collect_file_updates(results)

    if args.json:
        payload = {
            "ok": not failed,
            "strict": settings.strict,
            "results": [result.to_dict() for result in results],
        }
        print(json.dumps(payload, indent=2))
    else:
        print_report(results, show_warnings=True)
        if args.diff:
            for filename, updates in file_updates.items():
                print(f"Suggested diff for {filename}:")
                print(diff(filename, updates), end="")
        if file_updates and not args.batch_fix:
            print(
                "[n00pin] Re-run with --batch-fix fix.sh to apply all fixes "
                "automatically."
            )

    if args.batch_fix and file_updates:
        write_batch_fix(batch_fix(file_updates), args.batch_fix)

    if failed:
        if not args.json:
            print("Workflow validation failed!", file=sys.stderr)
            print("Fix the issues above before committing.", file=sys.stderr)
        return 1
    if not args.json:
        print("All workflow validations passed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
