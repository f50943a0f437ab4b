"""Parse raw ``uses:`` values into structured action references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .verdict import Invalid

DOCKER_PREFIX = "docker://"
LOCAL_PREFIXES = ("./", "../")
FLOATING_BRANCHES = frozenset({"main", "master", "develop"})

ACTION_PATTERN = re.compile(r"^([^/@\s]+/[^@\s]+)@([^@\s]+)$")
SHA_PATTERN = re.compile(r"^[a-f0-9]{40}$")


class ReferenceKind(str, Enum):
    TAG = "tag"
    SHA = "sha"
    BRANCH = "branch"
    DOCKER_IMAGE = "docker-image"


@dataclass(frozen=True)
class ActionReference:
    """A ``uses:`` value split into path and version.

    For docker references ``path`` is the image name (registry included) and
    ``version`` the tag, or ``None`` when the image carries no tag.
    """

    raw: str
    path: str
    version: str | None
    kind: ReferenceKind
    digest: str | None = None

    @property
    def is_docker(self) -> bool:
        return self.kind is ReferenceKind.DOCKER_IMAGE

    @property
    def major(self) -> str | None:
        """Major tag of a ``v1.2.3`` style version (``v1``)."""
        if self.kind is not ReferenceKind.TAG or not self.version:
            return None
        return self.version.split(".", 1)[0]


def is_local_reference(raw: str) -> bool:
    return raw.strip().startswith(LOCAL_PREFIXES)


def _kind_for(version: str) -> ReferenceKind:
    if SHA_PATTERN.match(version):
        return ReferenceKind.SHA
    if version in FLOATING_BRANCHES:
        return ReferenceKind.BRANCH
    return ReferenceKind.TAG


def parse_docker_reference(raw: str) -> ActionReference | Invalid:
    image_ref = raw.strip()[len(DOCKER_PREFIX) :]
    if not image_ref or any(ch.isspace() for ch in image_ref):
        return Invalid(f"Docker action {raw} has invalid format")
    digest = None
    if "@" in image_ref:
        image_ref, digest = image_ref.split("@", 1)
        if not digest:
            return Invalid(f"Docker action {raw} has invalid format")
    # Only a colon after the last slash separates the tag; earlier ones are
    # registry ports (localhost:5000/app).
    name, sep, tag = image_ref.rpartition(":")
    if not sep or "/" in tag:
        name, tag = image_ref, ""
    if not name:
        return Invalid(f"Docker action {raw} has invalid format")
    return ActionReference(
        raw=raw,
        path=name,
        version=tag or None,
        kind=ReferenceKind.DOCKER_IMAGE,
        digest=digest,
    )


def parse_reference(raw: str) -> ActionReference | Invalid:
    """Return the structured reference, or an ``Invalid`` verdict."""
    if raw is None or not str(raw).strip():
        return Invalid("Action reference is empty", missing_version=True)
    text = str(raw).strip()
    if text.startswith(DOCKER_PREFIX):
        return parse_docker_reference(text)
    if "@" not in text:
        return Invalid(
            f"Action {text} is missing version: add @version (e.g., @v4)",
            missing_version=True,
        )
    if text.endswith("@"):
        return Invalid(
            f"Action {text} is missing version after '@' (e.g., @v4)",
            missing_version=True,
        )
    match = ACTION_PATTERN.match(text)
    if not match:
        return Invalid(
            f"Action {text} has invalid format; expected owner/repo@version"
        )
    path, version = match.groups()
    return ActionReference(
        raw=text, path=path, version=version, kind=_kind_for(version)
    )
