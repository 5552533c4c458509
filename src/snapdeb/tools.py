"""Thin wrappers around ``subprocess`` for the external tools the build drives."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from snapdeb.errors import ExternalToolFailure

logger = logging.getLogger(__name__)


def _spawn(cmd: list[str], cwd: Path | None, capture: bool) -> subprocess.CompletedProcess:
    logger.debug("running %s (cwd=%s)", " ".join(cmd), cwd or ".")
    try:
        return subprocess.run(cmd, cwd=cwd, capture_output=capture, text=True, check=False)
    except FileNotFoundError as exc:
        raise ExternalToolFailure(cmd, None, str(exc)) from exc


def run_cmd(cmd: list[str], cwd: Path | None = None) -> str:
    """Run a command and return stdout, raising on failure."""
    proc = _spawn(cmd, cwd, capture=True)
    if proc.returncode != 0:
        raise ExternalToolFailure(cmd, proc.returncode, proc.stderr.strip())
    return proc.stdout


def cmd_succeeds(cmd: list[str], cwd: Path | None = None) -> bool:
    """Run a command for its exit status only."""
    proc = _spawn(cmd, cwd, capture=True)
    logger.debug("exit %s", proc.returncode)
    return proc.returncode == 0


def run_streaming(cmd: list[str], cwd: Path | None = None) -> None:
    """Run a command with output going straight to the terminal."""
    proc = _spawn(cmd, cwd, capture=False)
    if proc.returncode != 0:
        raise ExternalToolFailure(cmd, proc.returncode)
