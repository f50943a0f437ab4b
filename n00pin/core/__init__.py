"""n00pin core package - action version policy checks."""

from .cache import VersionCache, VersionCacheEntry
from .classifier import VersionClassifier
from .document import DocumentSyntaxError, FileAccessError, load_document
from .fixes import (
    ActionUpdate,
    batch_fix,
    collect_file_updates,
    collect_updates,
    diff,
    fix_command,
    suggest_reference,
)
from .policy import ActionPolicy, PolicyError, PolicyLoader, load_policy
from .reference import ActionReference, ReferenceKind, parse_reference
from .settings import Settings
from .validator import Issue, IssueKind, WorkflowValidationResult, WorkflowValidator
from .verdict import Deprecated, Invalid, Outdated, Valid, Verdict

__all__ = [
    "ActionPolicy",
    "ActionReference",
    "ActionUpdate",
    "Deprecated",
    "DocumentSyntaxError",
    "FileAccessError",
    "Invalid",
    "Issue",
    "IssueKind",
    "Outdated",
    "PolicyError",
    "PolicyLoader",
    "ReferenceKind",
    "Settings",
    "Valid",
    "Verdict",
    "VersionCache",
    "VersionCacheEntry",
    "VersionClassifier",
    "WorkflowValidationResult",
    "WorkflowValidator",
    "batch_fix",
    "collect_file_updates",
    "collect_updates",
    "diff",
    "fix_command",
    "load_document",
    "load_policy",
    "parse_reference",
    "suggest_reference",
]
