"""Validate GitHub Actions workflow documents against the version policy."""

from __future__ import annotations

import logging
import re
from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Deque, Dict, Iterable, Mapping, Sequence

from .classifier import VersionClassifier
from .document import DocumentSyntaxError, FileAccessError, load_document, read_document
from .reference import ReferenceKind, is_local_reference, parse_reference
from .verdict import Deprecated, Invalid, Outdated, Valid

REQUIRED_KEYS = ("name", "on", "jobs")
USES_LINE = re.compile(r"""^\s*(?:-\s*)?uses:\s*["']?([^"'\s#]+)""")

logger = logging.getLogger("n00pin.validator")


class IssueKind(str, Enum):
    DOCUMENT_SYNTAX = "document-syntax"
    MISSING_PROPERTY = "missing-property"
    INVALID_VERSION = "invalid-version"
    MISSING_VERSION = "missing-version"
    DEPRECATED_VERSION = "deprecated-version"
    FILE_ERROR = "file-error"
    # Advisory kinds; only ever reported as warnings.
    OUTDATED_VERSION = "outdated-version"
    SHA_PINNED = "sha-pinned"
    UNMAINTAINED_ACTION = "unmaintained-action"


@dataclass(frozen=True)
class Issue:
    """One reportable problem, located well enough to act on."""

    kind: IssueKind
    message: str
    line_number: int = 0
    reference: str | None = None
    suggested_fix: str | None = None
    job: str | None = None
    source_line: int | None = None

    @property
    def location(self) -> int:
        """Best line to show a reader: the file line when known."""
        return self.source_line or self.line_number

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
            "line_number": self.line_number,
        }
        for key in ("reference", "suggested_fix", "job", "source_line"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class WorkflowValidationResult:
    filename: str
    issues: list[Issue] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def has_issues(self) -> bool:
        return bool(self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "ok": self.ok,
            "issues": [issue.to_dict() for issue in self.issues],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


def locate_uses_lines(text: str) -> Dict[str, Deque[int]]:
    """Map each ``uses:`` value to the 1-based lines it appears on, in order."""
    located: Dict[str, Deque[int]] = defaultdict(deque)
    for idx, line in enumerate(text.splitlines(), start=1):
        match = USES_LINE.match(line)
        if match:
            located[match.group(1)].append(idx)
    return located


class WorkflowValidator:
    """Walk a workflow and classify every external ``uses:`` reference.

    Only a document-level parse failure stops the walk; malformed jobs or
    steps are skipped and the rest of the file is still checked.
    """

    def __init__(
        self,
        classifier: VersionClassifier,
        required_keys: Sequence[str] = REQUIRED_KEYS,
    ) -> None:
        self.classifier = classifier
        self.required_keys = tuple(required_keys)

    def validate_file(self, path: Path) -> WorkflowValidationResult:
        try:
            text = read_document(path)
        except FileAccessError as exc:
            logger.warning("%s", exc)
            result = WorkflowValidationResult(str(path))
            result.issues.append(Issue(IssueKind.FILE_ERROR, str(exc)))
            return result
        return self.validate(text, str(path))

    def validate(self, text: str, filename: str) -> WorkflowValidationResult:
        try:
            document = load_document(text)
        except DocumentSyntaxError as exc:
            result = WorkflowValidationResult(filename)
            result.issues.append(
                Issue(IssueKind.DOCUMENT_SYNTAX, str(exc), line_number=exc.line)
            )
            return result
        return self.validate_document(document, filename, text=text)

    def validate_document(
        self, document: Any, filename: str, text: str | None = None
    ) -> WorkflowValidationResult:
        result = WorkflowValidationResult(filename)
        if not document:
            result.issues.append(
                Issue(IssueKind.DOCUMENT_SYNTAX, "Empty workflow file", line_number=1)
            )
            return result
        if not isinstance(document, Mapping):
            result.issues.append(
                Issue(
                    IssueKind.DOCUMENT_SYNTAX,
                    "Workflow must be a mapping at the top level, got "
                    f"{type(document).__name__}",
                    line_number=1,
                )
            )
            return result

        for key in self.required_keys:
            if not _has_key(document, key):
                result.issues.append(
                    Issue(
                        IssueKind.MISSING_PROPERTY,
                        f"Missing required property '{key}'",
                        line_number=1,
                    )
                )

        lines = locate_uses_lines(text) if text else {}
        jobs = document.get("jobs")
        if isinstance(jobs, Mapping):
            for job_name, job in jobs.items():
                self._validate_job(str(job_name), job, result, lines)
        elif jobs is not None:
            logger.debug("%s: 'jobs' is not a mapping; skipping step checks", filename)
        return result

    def _validate_job(
        self,
        job_name: str,
        job: Any,
        result: WorkflowValidationResult,
        lines: Mapping[str, Deque[int]],
    ) -> None:
        if not isinstance(job, Mapping):
            logger.debug("job %s is not a mapping; skipped", job_name)
            return
        # Reusable workflow call at job level.
        if isinstance(job.get("uses"), str):
            self._check_reference(job["uses"], 0, job_name, result, lines)
        steps = job.get("steps")
        if not isinstance(steps, list):
            return
        for index, step in enumerate(steps, start=1):
            if not isinstance(step, Mapping):
                logger.debug("job %s step %d is not a mapping", job_name, index)
                continue
            uses = step.get("uses")
            if uses is None:
                continue
            if not isinstance(uses, str):
                result.issues.append(
                    Issue(
                        IssueKind.INVALID_VERSION,
                        f"'uses' must be a string, got {type(uses).__name__}",
                        line_number=index,
                        job=job_name,
                    )
                )
                continue
            self._check_reference(uses, index, job_name, result, lines)

    def _check_reference(
        self,
        uses: str,
        index: int,
        job_name: str,
        result: WorkflowValidationResult,
        lines: Mapping[str, Deque[int]],
    ) -> None:
        raw = uses.strip()
        if is_local_reference(raw):
            return
        queue = lines.get(raw)
        source_line = queue.popleft() if queue else None
        ref = parse_reference(raw)
        verdict = self.classifier.classify(ref)

        def issue(kind: IssueKind, message: str, fix: str | None = None) -> Issue:
            return Issue(
                kind,
                message,
                line_number=index,
                reference=raw,
                suggested_fix=fix,
                job=job_name,
                source_line=source_line,
            )

        if isinstance(verdict, Deprecated):
            result.issues.append(
                issue(
                    IssueKind.DEPRECATED_VERSION,
                    verdict.message,
                    verdict.suggested_version,
                )
            )
        elif isinstance(verdict, Invalid):
            kind = (
                IssueKind.MISSING_VERSION
                if verdict.missing_version
                else IssueKind.INVALID_VERSION
            )
            result.issues.append(issue(kind, verdict.message))
        elif isinstance(verdict, Outdated):
            result.warnings.append(issue(IssueKind.OUTDATED_VERSION, verdict.message))
        elif isinstance(verdict, Valid) and verdict.advisory:
            result.warnings.append(issue(IssueKind.SHA_PINNED, verdict.advisory))

        if not isinstance(ref, Invalid) and ref.kind is not ReferenceKind.DOCKER_IMAGE:
            maintenance = self.classifier.check_maintenance(ref)
            if isinstance(maintenance, Outdated):
                result.warnings.append(
                    issue(IssueKind.UNMAINTAINED_ACTION, maintenance.message)
                )


def _has_key(document: Mapping[Any, Any], key: str) -> bool:
    if key in document:
        return True
    # PyYAML resolves a bare `on:` key to the boolean True (YAML 1.1).
    return key == "on" and True in document


def validate_files(
    validator: WorkflowValidator, paths: Iterable[Path]
) -> list[WorkflowValidationResult]:
    return [validator.validate_file(path) for path in paths]
