"""Workflow document loading: raw text to nested mappings and sequences."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-not-found]

LINE_PATTERN = re.compile(r"line (\d+)")


class DocumentSyntaxError(ValueError):
    """Raised when a workflow document cannot be parsed."""

    def __init__(self, message: str, line: int = 0) -> None:
        super().__init__(message)
        self.line = line


class FileAccessError(OSError):
    """Raised when a workflow file cannot be read."""


def _error_line(exc: yaml.YAMLError) -> int:
    mark = getattr(exc, "problem_mark", None) or getattr(exc, "context_mark", None)
    if mark is not None:
        return int(mark.line) + 1
    match = LINE_PATTERN.search(str(exc))
    return int(match.group(1)) if match else 0


def load_document(text: str) -> Any:
    """Parse YAML text, raising ``DocumentSyntaxError`` with a best-effort line."""
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        summary = " ".join(str(exc).split())
        raise DocumentSyntaxError(
            f"Invalid YAML syntax: {summary}", line=_error_line(exc)
        ) from exc


def read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileAccessError(f"Failed to read workflow file {path}: {exc}") from exc
