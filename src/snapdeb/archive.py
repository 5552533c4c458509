"""Upstream tarball export and unpacking."""

from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path

from snapdeb.errors import SnapdebError
from snapdeb.tools import run_cmd

logger = logging.getLogger(__name__)


def tarball_name(package: str, version: str) -> str:
    return f"{package}_{version}.orig.tar.gz"


def source_dir_name(package: str, version: str) -> str:
    return f"{package}-{version}"


def export_tarball(repo_path: Path, revision: str, tarball: Path, prefix: str) -> Path:
    """Export ``revision`` as a gzipped tarball rooted at ``prefix/``.

    ``git archive`` only ever sees tracked content, so ``.git`` never ends up
    in the snapshot.
    """
    tarball.parent.mkdir(parents=True, exist_ok=True)
    run_cmd(
        [
            "git",
            "-C",
            str(repo_path),
            "archive",
            "--format=tar.gz",
            f"--prefix={prefix}/",
            f"--output={tarball.resolve()}",
            revision,
        ]
    )
    return tarball


def unpack_tarball(tarball: Path, build_root: Path, source_dir: Path) -> Path:
    """Unpack ``tarball`` into ``build_root``, replacing ``source_dir`` first."""
    if source_dir.exists():
        logger.debug("removing stale build directory %s", source_dir)
        shutil.rmtree(source_dir)
    try:
        with tarfile.open(tarball, "r:gz") as tar:
            # "tar" keeps tracked symlinks (absolute ones too) but blocks path traversal.
            tar.extractall(build_root, filter="tar")
    except tarfile.TarError as exc:
        raise SnapdebError(f"Cannot unpack {tarball}: {exc}") from exc
    if not source_dir.is_dir():
        raise SnapdebError(f"Tarball {tarball} did not unpack into {source_dir}")
    return source_dir
