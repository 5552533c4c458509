"""Exception types raised by the packaging pipeline."""

from __future__ import annotations


class SnapdebError(RuntimeError):
    """Base class for every failure that aborts a packaging run."""


class UnresolvableRevision(SnapdebError):
    """The revision reference does not name a commit in the repository."""

    def __init__(self, reference: str):
        super().__init__(f"Cannot resolve revision: {reference}")
        self.reference = reference


class NoVersionInfo(SnapdebError):
    """No usable tag is reachable from the revision, so no version can be derived."""

    def __init__(self, reference: str, detail: str | None = None):
        reason = detail or f"No tag reachable from {reference}"
        super().__init__(f"{reason}; cannot derive a package version")
        self.reference = reference


class MissingPolicyVersion(SnapdebError):
    """The local package index has no usable debian-policy version."""


class ExternalToolFailure(SnapdebError):
    """An external command exited nonzero or could not be started."""

    def __init__(self, cmd: list[str], returncode: int | None, stderr: str = ""):
        detail = f": {stderr}" if stderr else ""
        status = f"exit {returncode}" if returncode is not None else "not found"
        super().__init__(f"Command failed ({' '.join(cmd)}, {status}){detail}")
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
