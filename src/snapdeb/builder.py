"""The packaging pipeline: resolve, export, synthesize, build, publish."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path

from snapdeb.archive import export_tarball, source_dir_name, tarball_name, unpack_tarball
from snapdeb.errors import ExternalToolFailure
from snapdeb.gitrev import project_homepage, resolve_revision
from snapdeb.metadata import render_metadata, write_metadata
from snapdeb.models import BuildConfig, BuildResult
from snapdeb.policy import standards_version
from snapdeb.tools import run_streaming

logger = logging.getLogger(__name__)

BUILD_COMMAND = ["dpkg-buildpackage", "-us", "-uc", "-b"]
TOTAL_STEPS = 6


def deb_name(package: str, version: str, debian_revision: str) -> str:
    return f"{package}_{version}-{debian_revision}_all.deb"


def invoke_builder(source_dir: Path) -> None:
    """Run the unsigned binary-only package build inside ``source_dir``."""
    run_streaming(BUILD_COMMAND, cwd=source_dir)


def publish(build_root: Path, dist_root: Path, package: str, version: str, debian_revision: str) -> Path:
    """Copy the built ``.deb`` from ``build_root`` into ``dist_root``."""
    built = build_root / deb_name(package, version, debian_revision)
    if not built.is_file():
        raise ExternalToolFailure(BUILD_COMMAND, 0, f"expected artifact {built} was not produced")
    dist_root.mkdir(parents=True, exist_ok=True)
    target = dist_root / built.name
    shutil.copy2(built, target)
    return target


def run_build(
    config: BuildConfig,
    reference: str = "HEAD",
    tag_only: bool = False,
    progress: Callable[[int, int, str], None] | None = None,
) -> BuildResult | None:
    """Build and publish a ``.deb`` for ``reference``.

    Returns ``None`` without touching the filesystem when ``tag_only`` is set
    and the revision is not a tag or tagged commit. Any failure propagates.
    """

    def step(index: int, message: str) -> None:
        if progress:
            progress(index, TOTAL_STEPS, message)

    step(1, f"Resolving revision {reference}")
    revision = resolve_revision(config.repo_path, reference, tag_only=tag_only)
    if revision is None:
        logger.info("%s is not a tagged revision; skipping", reference)
        return None

    if config.homepage is None:
        config = config.model_copy(update={"homepage": project_homepage(config.repo_path)})

    step(2, "Querying Standards-Version")
    policy = standards_version()

    step(3, "Exporting upstream tarball")
    tarball = config.build_root / tarball_name(config.package, revision.version)
    source_dir = config.build_root / source_dir_name(config.package, revision.version)
    export_tarball(config.repo_path, revision.normalized, tarball, prefix=source_dir.name)
    unpack_tarball(tarball, config.build_root, source_dir)

    step(4, "Writing packaging metadata")
    metadata = render_metadata(revision, config, policy)
    write_metadata(source_dir / "debian", metadata)

    step(5, "Building package")
    invoke_builder(source_dir)

    step(6, "Publishing package")
    built_deb = config.build_root / deb_name(config.package, revision.version, config.debian_revision)
    published = publish(
        config.build_root,
        config.dist_root,
        config.package,
        revision.version,
        config.debian_revision,
    )

    return BuildResult(
        revision=revision,
        tarball=tarball,
        source_dir=source_dir,
        built_deb=built_deb,
        published_deb=published,
    )
