"""Classify action references against the version policy."""

from __future__ import annotations

import re
from datetime import date

from .cache import DEFAULT_TTL_MS, VersionCache
from .policy import ActionPolicy
from .reference import ActionReference, ReferenceKind, parse_reference
from .verdict import Deprecated, Invalid, Outdated, Valid, Verdict

VERSION_PATTERN = re.compile(r"^v\d+(\.\d+)?(\.\d+)?$")
UNKNOWN_VERSION = "unknown"


def _as_reference(
    reference: str | ActionReference | Invalid,
) -> ActionReference | Invalid:
    # Already-parsed references, failed parses included, pass through.
    if isinstance(reference, (ActionReference, Invalid)):
        return reference
    return parse_reference(reference)


class VersionClassifier:
    """Apply format and policy rules to ``uses:`` references.

    Format checks always run before registry lookups, and a deprecated major
    outranks a plain "not latest" finding.
    """

    def __init__(
        self,
        policy: ActionPolicy,
        cache: VersionCache | None = None,
        *,
        cache_ttl_ms: int = DEFAULT_TTL_MS,
    ) -> None:
        self.policy = policy
        self.cache = (
            cache
            if cache is not None
            else VersionCache(self._resolve, ttl_ms=cache_ttl_ms)
        )

    def _resolve(self, path: str) -> str:
        return self.policy.latest_for(path) or UNKNOWN_VERSION

    def is_known_action(self, path: str) -> bool:
        return self.policy.is_known(path)

    def latest_version(self, path: str) -> str:
        return self.cache.get(path)

    def deprecation_dates(self) -> dict[str, date]:
        return dict(self.policy.deprecations)

    def classify(self, reference: str | ActionReference | Invalid) -> Verdict:
        ref = _as_reference(reference)
        if isinstance(ref, Invalid):
            return ref
        if ref.is_docker:
            return self._classify_image(ref)

        version = ref.version or ""
        if ref.kind is ReferenceKind.SHA:
            return Valid(
                advisory=(
                    f"Using commit SHA in {ref.raw}. Consider using a version tag "
                    "for readability; keep the SHA in a trailing comment if needed"
                )
            )
        if ref.kind is ReferenceKind.BRANCH:
            return Invalid(
                f"Using floating branch reference '{version}' in {ref.raw} is "
                "forbidden. Use a version tag instead (e.g., @v4)"
            )
        if not VERSION_PATTERN.match(version):
            return Invalid(
                f"Unsupported version format '{version}' in {ref.raw}. Use a "
                "semantic version tag (e.g., v1, v1.0, v1.0.0)"
            )

        if not self.is_known_action(ref.path):
            return Valid()
        latest = self.latest_version(ref.path)
        if self.policy.is_deprecated(ref.major):
            since = self.policy.deprecations[ref.major or ""]
            return Deprecated(
                f"Action {ref.raw} uses deprecated version {version} "
                f"(deprecated since {since.isoformat()}). Latest version is {latest}",
                suggested_version=latest,
            )
        if version != latest:
            return Outdated(
                f"Action {ref.raw} is not using the latest version. A newer "
                f"version exists: {latest}",
                latest_version=latest,
            )
        return Valid()

    def classify_docker(self, reference: str | ActionReference | Invalid) -> Verdict:
        ref = _as_reference(reference)
        if isinstance(ref, Invalid):
            return ref
        if not ref.is_docker:
            return Invalid(f"{ref.raw} is not a docker:// reference")
        return self._classify_image(ref)

    def _classify_image(self, ref: ActionReference) -> Verdict:
        if ref.digest:
            return Valid()
        if ref.version == "latest":
            return Invalid(
                f"{ref.raw} uses the latest tag, which is not reproducible. "
                "Use a specific version tag (e.g., alpine:3.18)"
            )
        if not ref.version:
            return Invalid(
                f"Docker image {ref.raw} must include a specific tag "
                "(e.g., alpine:3.18)"
            )
        return Valid()

    def check_maintenance(self, reference: str | ActionReference | Invalid) -> Verdict:
        """Flag actions the policy lists as no longer maintained."""
        ref = _as_reference(reference)
        if isinstance(ref, Invalid) or ref.is_docker:
            return Valid()
        if ref.path not in self.policy.unmaintained:
            return Valid()
        hint = self.policy.unmaintained[ref.path]
        alternative = f": {hint}" if hint else ""
        return Outdated(
            f"Action {ref.path} appears unmaintained; consider alternative"
            f"{alternative}"
        )
