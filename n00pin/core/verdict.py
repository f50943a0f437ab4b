"""Classification outcomes for a single action reference."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Valid:
    """Reference passes policy. SHA pins carry a readability advisory."""

    advisory: str | None = None

    blocking = False

    @property
    def message(self) -> str | None:
        return self.advisory


@dataclass(frozen=True)
class Outdated:
    """Reference is usable but not the newest known release."""

    message: str
    latest_version: str | None = None

    blocking = False


@dataclass(frozen=True)
class Deprecated:
    """Reference targets a major version past its deprecation date."""

    message: str
    suggested_version: str

    blocking = True


@dataclass(frozen=True)
class Invalid:
    """Reference is malformed or floating."""

    message: str
    missing_version: bool = False

    blocking = True


Verdict = Union[Valid, Outdated, Deprecated, Invalid]
