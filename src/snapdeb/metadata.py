"""Render and write the ``debian/`` packaging documents for a snapshot build."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone, tzinfo
from email.utils import format_datetime
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from debian.changelog import Changelog
from debian.deb822 import Deb822

from snapdeb.models import BuildConfig, PackageMetadata, ResolvedRevision

logger = logging.getLogger(__name__)

COMPAT_LEVEL = "10"
DISTRIBUTION = "unstable"
URGENCY = "low"
SECTION = "misc"
PRIORITY = "optional"
ARCHITECTURE = "all"
BUILD_DEPENDS = ("debhelper (>= 10)",)
DEPENDS = ("${misc:Depends}",)

RULES_MODE = 0o755
DOCUMENT_MODE = 0o644


def resolve_timezone(name: str) -> tzinfo:
    """Map a ``TZ`` style name to a ``tzinfo``; raises ``ValueError`` if unknown."""
    if name in {"UTC", "Etc/UTC", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc


def format_changelog_date(timestamp: int, tz_name: str) -> str:
    """Format epoch seconds as an RFC 2822 date in the named timezone."""
    return format_datetime(datetime.fromtimestamp(timestamp, resolve_timezone(tz_name)))


def full_version(revision: ResolvedRevision, config: BuildConfig) -> str:
    return f"{revision.version}-{config.debian_revision}"


def _change_entry(revision: ResolvedRevision, homepage: str | None) -> str:
    if revision.is_tag:
        entry = f"Release {revision.normalized}"
        link = f"{homepage}/releases/tag/{revision.normalized}" if homepage else None
    else:
        entry = f"Snapshot of commit {revision.normalized}"
        link = f"{homepage}/commits/{revision.normalized}" if homepage else None
    return f"  * {entry}: {link}" if link else f"  * {entry}"


def render_changelog(revision: ResolvedRevision, config: BuildConfig) -> str:
    """Render a single-block changelog for the resolved revision."""
    changelog = Changelog()
    changelog.new_block(
        package=config.package,
        version=full_version(revision, config),
        distributions=DISTRIBUTION,
        urgency=URGENCY,
        urgency_comment="",
        changes=["", _change_entry(revision, config.homepage), ""],
        author=config.maintainer_identity,
        date=format_changelog_date(revision.timestamp, config.timezone),
        other_pairs={},
    )
    return str(changelog)


def render_control(config: BuildConfig, standards_version: str) -> str:
    """Render the source and binary paragraphs of ``debian/control``."""
    source = Deb822()
    source["Source"] = config.package
    source["Section"] = SECTION
    source["Priority"] = PRIORITY
    source["Maintainer"] = config.maintainer_identity
    source["Build-Depends"] = ", ".join(BUILD_DEPENDS)
    source["Standards-Version"] = standards_version
    if config.homepage:
        source["Homepage"] = config.homepage

    binary = Deb822()
    binary["Package"] = config.package
    binary["Architecture"] = ARCHITECTURE
    binary["Depends"] = ", ".join(DEPENDS)
    binary["Description"] = (
        f"snapshot build of {config.package}\n"
        f" Binary package of {config.package} built from a git revision."
    )

    return source.dump() + "\n" + binary.dump()


def render_copyright(revision: ResolvedRevision, config: BuildConfig) -> str:
    """Render the DEP-5 copyright notice with the maintainer as holder."""
    year = datetime.fromtimestamp(revision.timestamp, resolve_timezone(config.timezone)).year
    replacements = {
        "PACKAGE": config.package,
        "HOLDER": config.maintainer_identity,
        "YEAR": str(year),
        "SOURCE_FIELD": f"Source: {config.homepage}\n" if config.homepage else "",
    }
    return _render_template(_load_template("copyright"), replacements)


def render_rules(config: BuildConfig) -> str:
    """Render the debhelper build recipe."""
    return _render_template(_load_template("rules"), {"PACKAGE": config.package})


def render_metadata(
    revision: ResolvedRevision,
    config: BuildConfig,
    standards_version: str,
) -> PackageMetadata:
    """Render all five documents as a pure function of their inputs."""
    return PackageMetadata(
        changelog=render_changelog(revision, config),
        compat=f"{COMPAT_LEVEL}\n",
        control=render_control(config, standards_version),
        copyright=render_copyright(revision, config),
        rules=render_rules(config),
    )


def write_metadata(debian_dir: Path, metadata: PackageMetadata) -> list[Path]:
    """Write the five documents into ``debian_dir`` and return their paths.

    Any existing ``debian_dir`` (an upstream snapshot may ship one) is removed
    first, and every file is written atomically.
    """
    if debian_dir.is_symlink() or debian_dir.is_file():
        debian_dir.unlink()
    elif debian_dir.exists():
        logger.debug("removing existing %s", debian_dir)
        shutil.rmtree(debian_dir)
    debian_dir.mkdir(parents=True)
    written: list[Path] = []
    for name in ("changelog", "compat", "control", "copyright", "rules"):
        mode = RULES_MODE if name == "rules" else DOCUMENT_MODE
        target = debian_dir / name
        write_atomic(target, getattr(metadata, name), mode=mode)
        logger.debug("wrote %s", target)
        written.append(target)
    return written


def write_atomic(target: Path, content: str, mode: int = DOCUMENT_MODE) -> None:
    """Write ``content`` to a sibling temp file, then rename it over ``target``."""
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        tmp_path.chmod(mode)
        os.replace(tmp_path, target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _render_template(template: str, replacements: dict[str, str]) -> str:
    """Replace ``{{TOKEN}}`` placeholders in a template string."""
    rendered = template
    for token, value in replacements.items():
        rendered = rendered.replace(f"{{{{{token}}}}}", value)
    return rendered


@lru_cache(maxsize=None)
def _load_template(filename: str) -> str:
    """Load and cache packaging templates from ``templates/``."""
    template_path = Path(__file__).with_name("templates") / filename
    return template_path.read_text(encoding="utf-8")
