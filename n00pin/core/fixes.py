"""Generate sed commands, diffs and batch scripts for reference updates."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .validator import IssueKind, WorkflowValidationResult

# Characters special in a basic sed regex or replacement, plus the `|` delimiter.
_SED_PATTERN_SPECIAL = "\\|.*[^$"
_SED_REPLACEMENT_SPECIAL = "\\|&"
DIFF_INDENT = "        "


@dataclass(frozen=True)
class ActionUpdate:
    old_reference: str
    new_reference: str
    line_number: int


def _escape(text: str, special: str) -> str:
    return "".join(f"\\{ch}" if ch in special else ch for ch in text)


def _single_quoted(text: str) -> str:
    return text.replace("'", "'\\''")


def fix_command(filename: str, old: str, new: str) -> str:
    """Return a ``sed`` substitution replacing ``old`` with ``new`` in ``filename``.

    The command is only built, never executed.
    """
    pattern = _single_quoted(_escape(old, _SED_PATTERN_SPECIAL))
    replacement = _single_quoted(_escape(new, _SED_REPLACEMENT_SPECIAL))
    return f"sed -i.bak 's|{pattern}|{replacement}|g' {shlex.quote(filename)}"


def diff(filename: str, updates: Sequence[ActionUpdate]) -> str:
    lines = [f"--- a/{filename}", f"+++ b/{filename}"]
    for update in updates:
        lines.append(f"@@ -{update.line_number},1 +{update.line_number},1 @@")
        lines.append(f"-{DIFF_INDENT}uses: {update.old_reference}")
        lines.append(f"+{DIFF_INDENT}uses: {update.new_reference}")
    return "\n".join(lines) + "\n"


def batch_fix(file_updates: Mapping[str, Sequence[ActionUpdate]]) -> str:
    """Build a POSIX shell script applying every update, file by file."""
    script = [
        "#!/bin/sh",
        "# Batch fix script for GitHub Actions version updates (generated by n00pin)",
        "set -e",
        "",
    ]
    for filename, updates in file_updates.items():
        script.append(f"echo {shlex.quote(f'Updating {filename}...')}")
        for update in updates:
            script.append(
                fix_command(filename, update.old_reference, update.new_reference)
            )
        script.append("")
    script.append("echo 'Apply all fixes: done. Review the changes with git diff.'")
    return "\n".join(script) + "\n"


def suggest_reference(reference: str, version: str) -> str:
    """Swap the version after the last ``@`` for ``version``."""
    head, sep, _ = reference.rpartition("@")
    if not sep:
        return f"{reference}@{version}"
    return f"{head}@{version}"


def collect_updates(result: WorkflowValidationResult) -> list[ActionUpdate]:
    updates: list[ActionUpdate] = []
    for issue in result.issues:
        if issue.kind is not IssueKind.DEPRECATED_VERSION:
            continue
        if not issue.reference or not issue.suggested_fix:
            continue
        replacement = suggest_reference(issue.reference, issue.suggested_fix)
        # Latest release can sit in a deprecated major; nothing to rewrite then.
        if replacement == issue.reference:
            continue
        updates.append(
            ActionUpdate(
                old_reference=issue.reference,
                new_reference=replacement,
                line_number=issue.location,
            )
        )
    return updates


def collect_file_updates(
    results: Iterable[WorkflowValidationResult],
) -> dict[str, list[ActionUpdate]]:
    """Group updates per filename, keeping the order results arrive in."""
    grouped: dict[str, list[ActionUpdate]] = {}
    for result in results:
        updates = collect_updates(result)
        if updates:
            grouped.setdefault(result.filename, []).extend(updates)
    return grouped
