"""Runtime settings resolved from the environment and CLI flags."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from .cache import DEFAULT_TTL_MS
from .policy import DEFAULT_POLICY

DEFAULT_WORKFLOWS_DIR = Path(".github") / "workflows"


def as_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    policy_path: Path = DEFAULT_POLICY
    cache_ttl_ms: int = Field(DEFAULT_TTL_MS, ge=0)
    workflows_dir: Path = DEFAULT_WORKFLOWS_DIR
    jobs: int = Field(1, ge=1, le=32)
    strict: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get("N00PIN_POLICY"):
            values["policy_path"] = Path(env["N00PIN_POLICY"]).expanduser()
        if env.get("N00PIN_CACHE_TTL_MS"):
            values["cache_ttl_ms"] = env["N00PIN_CACHE_TTL_MS"]
        if env.get("N00PIN_WORKFLOWS_DIR"):
            values["workflows_dir"] = Path(env["N00PIN_WORKFLOWS_DIR"])
        if env.get("N00PIN_JOBS"):
            values["jobs"] = env["N00PIN_JOBS"]
        if "N00PIN_STRICT" in env:
            values["strict"] = as_bool(env.get("N00PIN_STRICT"))
        return cls.model_validate(values)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with the non-``None`` overrides applied and validated."""
        data = self.model_dump()
        data.update(
            {key: value for key, value in overrides.items() if value is not None}
        )
        return type(self).model_validate(data)
