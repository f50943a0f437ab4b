"""End-to-end tests for the n00pin command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import workflow_text
from n00pin.cli.main import format_issue, main
from n00pin.core import Issue, IssueKind


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "N00PIN_POLICY",
        "N00PIN_CACHE_TTL_MS",
        "N00PIN_WORKFLOWS_DIR",
        "N00PIN_JOBS",
        "N00PIN_STRICT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("N00_DISABLE_TRACING", "1")


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_clean_workflow_exits_zero(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(tmp_path / "ci.yml", workflow_text("actions/checkout@v4"))

    assert main([str(workflow)]) == 0
    out = capsys.readouterr().out
    assert "validation passed" in out
    assert "All workflow validations passed!" in out


def test_deprecated_workflow_fails_with_fix_command(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(tmp_path / "ci.yml", workflow_text("actions/checkout@v3"))

    assert main([str(workflow)]) == 1
    err = capsys.readouterr().err
    assert "[DEPRECATED] (line 10)" in err
    assert "Suggested fix: actions/checkout@v3 -> actions/checkout@v4" in err
    assert "Fix command: sed" in err
    assert "Workflow validation failed!" in err


def test_any_failing_file_fails_the_run(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    good = _write(tmp_path / "valid-workflow.yml", workflow_text("actions/checkout@v4"))
    bad = _write(
        tmp_path / "deprecated-workflow.yml", workflow_text("actions/setup-java@v3")
    )

    assert main([str(good), str(bad), "--jobs", "2"]) == 1
    captured = capsys.readouterr()
    assert "valid-workflow.yml validation passed" in captured.out
    assert "Issues found in" in captured.err
    assert "deprecated-workflow.yml" in captured.err


def test_missing_file_is_reported_not_raised(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main([str(tmp_path / "nope.yml")]) == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_discovers_workflows_directory(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _write(tmp_path / ".github" / "workflows" / "a.yml", workflow_text("a/b@v1"))
    _write(tmp_path / ".github" / "workflows" / "b.yaml", workflow_text("c/d@v2"))
    monkeypatch.chdir(tmp_path)

    assert main([]) == 0
    out = capsys.readouterr().out
    assert "a.yml" in out
    assert "b.yaml" in out


def test_no_workflows_found_passes(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)

    assert main([]) == 0
    assert "No workflow files found" in capsys.readouterr().out


def test_sha_pins_pass_unless_strict(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(
        tmp_path / "ci.yml",
        workflow_text("actions/checkout@8e5e7e5ab8b370d6c329ec480221332ada57f0ab"),
    )

    assert main([str(workflow)]) == 0
    assert "[WARNING]" in capsys.readouterr().out
    assert main([str(workflow), "--strict"]) == 1


def test_diff_and_batch_fix_outputs(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(tmp_path / "ci.yml", workflow_text("actions/checkout@v3"))
    script = tmp_path / "fix.sh"

    assert main([str(workflow), "--diff", "--batch-fix", str(script)]) == 1
    out = capsys.readouterr().out
    assert f"--- a/{workflow}" in out
    assert "+        uses: actions/checkout@v4" in out
    body = script.read_text(encoding="utf-8")
    assert body.startswith("#!/bin/sh")
    assert "actions/checkout@v4" in body


def test_json_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    workflow = _write(tmp_path / "ci.yml", workflow_text("actions/checkout@main"))

    assert main([str(workflow), "--json"]) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is False
    assert payload["results"][0]["issues"][0]["kind"] == "invalid-version"


def test_custom_policy_and_env(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    policy = _write(
        tmp_path / "policy.yml",
        "schema_version: '1.0'\nactions:\n  acme/deploy: v2\n"
        "deprecations:\n  v1: '2024-01-01'\n",
    )
    workflow = _write(tmp_path / "ci.yml", workflow_text("acme/deploy@v1"))
    monkeypatch.setenv("N00PIN_POLICY", str(policy))

    assert main([str(workflow)]) == 1
    assert "acme/deploy@v2" in capsys.readouterr().err


def test_bad_policy_exits_two(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(tmp_path / "ci.yml", workflow_text("actions/checkout@v4"))

    assert main([str(workflow), "--policy", str(tmp_path / "absent.yml")]) == 2
    assert "missing" in capsys.readouterr().err


def test_bad_settings_exit_two(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(tmp_path / "ci.yml", workflow_text("actions/checkout@v4"))

    assert main([str(workflow), "--jobs", "0"]) == 2
    assert "Invalid settings" in capsys.readouterr().err


@pytest.mark.parametrize(
    ("kind", "tag"),
    [
        (IssueKind.DEPRECATED_VERSION, "[DEPRECATED]"),
        (IssueKind.MISSING_VERSION, "[MISSING VERSION]"),
        (IssueKind.INVALID_VERSION, "[INVALID VERSION]"),
        (IssueKind.DOCUMENT_SYNTAX, "[YAML SYNTAX]"),
        (IssueKind.MISSING_PROPERTY, "[MISSING PROPERTY]"),
        (IssueKind.FILE_ERROR, "[ERROR]"),
    ],
)
def test_format_issue_tags(kind: IssueKind, tag: str) -> None:
    assert format_issue(Issue(kind, "boom")).startswith(f"  {tag} boom")


def test_format_issue_line_suffix() -> None:
    issue = Issue(IssueKind.INVALID_VERSION, "bad", line_number=2, job="build")

    assert format_issue(issue) == "  [INVALID VERSION] (line 2) job 'build' step 2: bad"


def test_no_fix_offered_when_latest_is_deprecated(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(
        tmp_path / "ci.yml", workflow_text("docker/setup-buildx-action@v3")
    )
    script = tmp_path / "fix.sh"

    assert main([str(workflow), "--diff", "--batch-fix", str(script)]) == 1
    captured = capsys.readouterr()
    assert "[DEPRECATED]" in captured.err
    assert "Fix command" not in captured.err
    assert "Suggested diff" not in captured.out
    assert not script.exists()


def test_missing_version_tag_in_report(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    workflow = _write(tmp_path / "ci.yml", workflow_text("actions/checkout"))

    assert main([str(workflow)]) == 1
    assert "[MISSING VERSION] (line 10)" in capsys.readouterr().err
