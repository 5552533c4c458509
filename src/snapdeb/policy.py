"""Standards-Version lookup against the locally installed debian-policy package."""

from __future__ import annotations

import re

from snapdeb.errors import ExternalToolFailure, MissingPolicyVersion
from snapdeb.tools import run_cmd

POLICY_PACKAGE = "debian-policy"
POLICY_VERSION_RE = re.compile(r"^(\d+\.\d+\.\d+)(?:\.\d+)*$")


def parse_policy_version(raw: str) -> str:
    """Reduce a debian-policy package version to a Standards-Version.

    ``4.6.2.0`` becomes ``4.6.2``; the trailing component only tracks
    editorial releases of the policy document.
    """
    match = POLICY_VERSION_RE.match(raw.strip())
    if not match:
        raise MissingPolicyVersion(f"Unparseable {POLICY_PACKAGE} version: {raw.strip()!r}")
    return match.group(1)


def standards_version() -> str:
    """Query dpkg for the installed policy version.

    Raises:
        MissingPolicyVersion: If the package is not installed or its version
            does not parse.
        ExternalToolFailure: If ``dpkg-query`` itself is unavailable.
    """
    cmd = ["dpkg-query", "--show", "--showformat=${Version}", POLICY_PACKAGE]
    try:
        raw = run_cmd(cmd)
    except ExternalToolFailure as exc:
        if exc.returncode is None:
            raise
        raise MissingPolicyVersion(f"{POLICY_PACKAGE} is not installed ({exc.stderr or 'no version'})") from exc
    if not raw.strip():
        raise MissingPolicyVersion(f"{POLICY_PACKAGE} is not installed")
    return parse_policy_version(raw)
