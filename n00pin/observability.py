"""Optional tracing hooks for n00pin runs."""

from __future__ import annotations

import os

from .core.settings import as_bool

try:
    from opentelemetry import trace
except Exception:  # pragma: no cover - optional dependency
    trace = None


def _get_span():
    if trace is None or as_bool(os.environ.get("N00_DISABLE_TRACING")):
        return None
    tracer = trace.get_tracer("n00pin.observability")
    return tracer.start_as_current_span if tracer else None


def record_validation(
    filename: str,
    issues: int,
    warnings: int = 0,
    issue_kinds: list[str] | None = None,
) -> None:
    """Emit a span summarising one workflow file's validation outcome."""
    starter = _get_span()
    if starter is None:
        return
    with starter("n00pin.validation") as span:  # type: ignore[func-returns-value]
        span.set_attribute("workflow.file", filename)
        span.set_attribute("workflow.issues", issues)
        span.set_attribute("workflow.warnings", warnings)
        if issue_kinds:
            span.set_attribute("workflow.issue_kinds", sorted(set(issue_kinds)))
