"""Action version policy: known releases, deprecation calendar, unmaintained list."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml  # type: ignore[import-not-found]
from jsonschema import Draft202012Validator  # type: ignore[import-not-found]
from jsonschema.exceptions import ValidationError  # type: ignore[import-not-found]

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_POLICY = PACKAGE_ROOT / "policy" / "action-versions.yml"
DEFAULT_SCHEMA = PACKAGE_ROOT / "schemas" / "action-policy.schema.json"

logger = logging.getLogger("n00pin.policy")


class PolicyError(RuntimeError):
    """Raised when the action policy file is missing or malformed."""


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ActionPolicy:
    """Read-only registry of latest action versions and deprecated majors."""

    latest_versions: Mapping[str, str] = field(default_factory=dict)
    deprecations: Mapping[str, date] = field(default_factory=dict)
    unmaintained: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "latest_versions", _frozen(self.latest_versions))
        object.__setattr__(self, "deprecations", _frozen(self.deprecations))
        object.__setattr__(self, "unmaintained", _frozen(self.unmaintained))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ActionPolicy":
        deprecations: dict[str, date] = {}
        for tag, raw in (data.get("deprecations") or {}).items():
            try:
                deprecations[str(tag)] = (
                    raw if isinstance(raw, date) else date.fromisoformat(str(raw))
                )
            except ValueError as exc:
                raise PolicyError(
                    f"deprecations.{tag}: '{raw}' is not an ISO date"
                ) from exc
        return cls(
            latest_versions={
                str(name): str(version)
                for name, version in (data.get("actions") or {}).items()
            },
            deprecations=deprecations,
            unmaintained={
                str(name): str(hint or "")
                for name, hint in (data.get("unmaintained") or {}).items()
            },
        )

    def latest_for(self, path: str) -> str | None:
        return self.latest_versions.get(path)

    def is_known(self, path: str) -> bool:
        return path in self.latest_versions

    def is_deprecated(self, major: str | None) -> bool:
        return major is not None and major in self.deprecations

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": "1.0",
            "actions": dict(self.latest_versions),
            "deprecations": {
                tag: when.isoformat() for tag, when in self.deprecations.items()
            },
            "unmaintained": dict(self.unmaintained),
        }


class PolicyLoader:
    """Load a YAML policy file and check it against the JSON Schema."""

    def __init__(self, schema_path: Path | None = None) -> None:
        self.schema_path = schema_path or DEFAULT_SCHEMA
        self.validator = self._build_validator()

    def _build_validator(self) -> Draft202012Validator:
        if not self.schema_path.exists():
            raise PolicyError(f"Action policy schema missing at {self.schema_path}.")
        schema = json.loads(self.schema_path.read_text(encoding="utf-8"))
        return Draft202012Validator(schema)

    def load(self, policy_path: Path | None = None) -> ActionPolicy:
        path = policy_path or DEFAULT_POLICY
        if not path.exists():
            raise PolicyError(f"Action policy file missing at {path}.")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise PolicyError(f"Unable to parse {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PolicyError(f"{path} must contain a mapping at the top level.")
        # YAML may hand back date objects for unquoted dates; the schema wants
        # strings.
        deprecations = data.get("deprecations")
        if isinstance(deprecations, dict):
            for tag, when in list(deprecations.items()):
                if isinstance(when, date):
                    deprecations[tag] = when.isoformat()
        errors = list(self.iter_error_messages(data))
        if errors:
            raise PolicyError(f"{path} failed validation:\n" + "\n".join(errors))
        policy = ActionPolicy.from_mapping(data)
        logger.debug(
            "Loaded %d known actions and %d deprecated majors from %s",
            len(policy.latest_versions),
            len(policy.deprecations),
            path,
        )
        return policy

    def iter_error_messages(self, payload: dict[str, Any]) -> Iterable[str]:
        for error in self.validator.iter_errors(payload):
            path = ".".join(str(idx) for idx in error.path) or "policy"
            if isinstance(error, ValidationError):
                yield f"{path}: {error.message}"
            else:
                yield f"{path}: {error}"


def load_policy(policy_path: Path | None = None) -> ActionPolicy:
    """Convenience wrapper around ``PolicyLoader().load``."""
    return PolicyLoader().load(policy_path)
