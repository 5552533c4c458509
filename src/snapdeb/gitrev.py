"""Revision resolution: tag/commit normalization, timestamps, and versions."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from urllib.parse import urlparse

from snapdeb.errors import ExternalToolFailure, NoVersionInfo, SnapdebError, UnresolvableRevision
from snapdeb.models import ResolvedRevision
from snapdeb.tools import cmd_succeeds, run_cmd

logger = logging.getLogger(__name__)

TZ_OFFSET_RE = re.compile(r"^[+-]\d{4}$")
UPSTREAM_VERSION_RE = re.compile(r"^[0-9][A-Za-z0-9.+~-]*$")


def _run_git(repo_path: Path, args: list[str]) -> str:
    return run_cmd(["git", "-C", str(repo_path), *args])


def _git_succeeds(repo_path: Path, args: list[str]) -> bool:
    return cmd_succeeds(["git", "-C", str(repo_path), *args])


def is_tag(repo_path: Path, ref: str) -> bool:
    """Return ``True`` when ``ref`` exactly names an existing tag."""
    return _git_succeeds(repo_path, ["show-ref", "--verify", "--quiet", f"refs/tags/{ref}"])


def normalize(repo_path: Path, ref: str) -> str:
    """Normalize ``ref`` to a tag name when one applies, else a full commit id.

    Raises:
        UnresolvableRevision: If ``ref`` does not name a commit.
    """
    if is_tag(repo_path, ref):
        return ref

    try:
        return _run_git(repo_path, ["describe", "--tags", "--exact-match", ref]).strip()
    except ExternalToolFailure:
        logger.debug("%s is not exactly described by a tag", ref)

    try:
        return _run_git(repo_path, ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"]).strip()
    except ExternalToolFailure as exc:
        raise UnresolvableRevision(ref) from exc


def parse_tagger_timestamp(tag_object: str) -> int | None:
    """Extract epoch seconds from the ``tagger`` header of a raw tag object.

    The header ends with ``<epoch> <offset>``, e.g. ``1700003600 -0700``. The
    offset is split off and checked first so it is never read as the number.
    Returns ``None`` when the object has no tagger header.
    """
    for line in tag_object.splitlines():
        if not line:
            break  # headers end at the first blank line
        if not line.startswith("tagger "):
            continue
        parts = line.rsplit(" ", 2)
        if len(parts) != 3 or not TZ_OFFSET_RE.match(parts[2]):
            raise SnapdebError(f"Malformed tagger header: {line!r}")
        return int(parts[1])
    return None


def _commit_timestamp(repo_path: Path, ref: str) -> int:
    return int(_run_git(repo_path, ["show", "-s", "--format=%ct", f"{ref}^{{commit}}"]).strip())


def authorship_timestamp(repo_path: Path, normalized: str) -> int:
    """Return the tagger time for annotated tags, else the committer time."""
    if is_tag(repo_path, normalized):
        object_type = _run_git(repo_path, ["cat-file", "-t", f"refs/tags/{normalized}"]).strip()
        if object_type == "tag":
            tag_object = _run_git(repo_path, ["cat-file", "tag", f"refs/tags/{normalized}"])
            timestamp = parse_tagger_timestamp(tag_object)
            if timestamp is not None:
                return timestamp
    return _commit_timestamp(repo_path, normalized)


def strip_version_prefix(descriptor: str) -> str:
    """Drop a single leading ``v`` from a tag descriptor."""
    return descriptor[1:] if descriptor.startswith("v") else descriptor


def describe_version(repo_path: Path, ref: str) -> str:
    """Derive the package version from the nearest reachable tag.

    Raises:
        NoVersionInfo: If no tag is reachable from ``ref``, or the tag does
            not yield a Debian upstream version (``release/1.0``, ``latest``).
    """
    if is_tag(repo_path, ref):
        descriptor = ref
    else:
        try:
            descriptor = _run_git(repo_path, ["describe", "--tags", ref]).strip()
        except ExternalToolFailure as exc:
            raise NoVersionInfo(ref) from exc
    version = strip_version_prefix(descriptor)
    if not UPSTREAM_VERSION_RE.match(version):
        raise NoVersionInfo(ref, f"Tag descriptor {descriptor!r} is not a valid upstream version")
    return version


def resolve_revision(repo_path: Path, ref: str, tag_only: bool = False) -> ResolvedRevision | None:
    """Resolve ``ref`` into the values every metadata document embeds.

    With ``tag_only`` set, returns ``None`` as soon as the revision turns out
    not to be a tag or tagged commit, before any version lookup.
    """
    normalized = normalize(repo_path, ref)
    tagged = is_tag(repo_path, normalized)
    if tag_only and not tagged:
        logger.debug("%s resolved to untagged %s", ref, normalized)
        return None
    return ResolvedRevision(
        reference=ref,
        normalized=normalized,
        is_tag=tagged,
        version=describe_version(repo_path, normalized),
        timestamp=authorship_timestamp(repo_path, normalized),
    )


def remote_to_homepage(remote_url: str) -> str | None:
    """Convert a git remote URL into an ``https://`` project page URL."""
    remote_url = remote_url.strip()
    if not remote_url:
        return None
    if "://" not in remote_url:
        if ":" not in remote_url:
            return None
        # scp-like syntax: git@host:org/repo.git
        remote_url = f"ssh://{remote_url.replace(':', '/', 1)}"
    parsed = urlparse(remote_url)
    if not parsed.hostname:
        return None
    path = parsed.path.rstrip("/")
    if path.endswith(".git"):
        path = path[:-4]
    if not path.strip("/"):
        return None
    return f"https://{parsed.hostname}{path}"


def project_homepage(repo_path: Path) -> str | None:
    """Derive the project web page from the ``origin`` remote, if any."""
    try:
        remote_url = _run_git(repo_path, ["remote", "get-url", "origin"])
    except ExternalToolFailure:
        logger.debug("no origin remote configured in %s", repo_path)
        return None
    return remote_to_homepage(remote_url)
