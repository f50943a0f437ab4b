"""Shared fixtures for n00pin tests."""

from __future__ import annotations

from datetime import date

import pytest

from n00pin.core import ActionPolicy, VersionClassifier, WorkflowValidator


@pytest.fixture
def policy() -> ActionPolicy:
    return ActionPolicy(
        latest_versions={
            "actions/checkout": "v4",
            "actions/setup-java": "v4",
            "actions/upload-artifact": "v4",
            "docker/setup-buildx-action": "v3",
        },
        deprecations={"v2": date(2023, 1, 1), "v3": date(2023, 9, 1)},
        unmaintained={"old-org/unmaintained-action": "new-org/maintained-action"},
    )


@pytest.fixture
def classifier(policy: ActionPolicy) -> VersionClassifier:
    return VersionClassifier(policy)


@pytest.fixture
def validator(classifier: VersionClassifier) -> WorkflowValidator:
    return WorkflowValidator(classifier)


def workflow_text(*references: str, name: str = "CI") -> str:
    """Render a minimal workflow with one build job using ``references``."""
    lines = [
        f"name: {name}",
        "on:",
        "  push:",
        "    branches: [main]",
        "jobs:",
        "  build:",
        "    runs-on: ubuntu-latest",
        "    steps:",
    ]
    for ref in references:
        lines.append(f"      - name: Step using {ref}")
        lines.append(f"        uses: {ref}")
    return "\n".join(lines) + "\n"
