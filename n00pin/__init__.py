"""n00pin package root exposing the workflow pin checker."""

from .core import (  # isort: skip
    ActionPolicy,
    VersionCache,
    VersionClassifier,
    WorkflowValidator,
    load_policy,
)

__all__ = [
    "ActionPolicy",
    "VersionCache",
    "VersionClassifier",
    "WorkflowValidator",
    "load_policy",
]
