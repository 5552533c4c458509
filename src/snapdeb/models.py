"""Pydantic models shared across revision resolution, metadata, and the build."""

from __future__ import annotations

import os
import re
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_MAINTAINER = "Snapshot Builder"
DEFAULT_EMAIL = "snapshots@localhost"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_BUILD_ROOT = Path("build")
DEFAULT_DIST_ROOT = Path("dist")
DEFAULT_DEBIAN_REVISION = "1"

PACKAGE_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9.+-]+$")


def package_name_from_directory(repo_path: Path) -> str:
    """Derive a Debian source package name from a repository directory name."""
    name = re.sub(r"[^a-z0-9.+-]+", "-", repo_path.resolve().name.lower()).strip("-.+")
    return name or "snapshot"


class BuildConfig(BaseModel):
    """Run configuration populated once at startup."""

    maintainer: str = DEFAULT_MAINTAINER
    email: str = DEFAULT_EMAIL
    timezone: str = DEFAULT_TIMEZONE
    package: str
    homepage: str | None = None
    repo_path: Path = Path(".")
    build_root: Path = DEFAULT_BUILD_ROOT
    dist_root: Path = DEFAULT_DIST_ROOT
    debian_revision: str = Field(default=DEFAULT_DEBIAN_REVISION, pattern=r"^[A-Za-z0-9+.~]+$")

    @field_validator("package")
    @classmethod
    def _check_package(cls, value: str) -> str:
        if not PACKAGE_NAME_RE.match(value):
            raise ValueError(f"invalid Debian package name: {value!r}")
        return value

    @field_validator("homepage")
    @classmethod
    def _strip_homepage(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().rstrip("/") or None

    @property
    def maintainer_identity(self) -> str:
        return f"{self.maintainer} <{self.email}>"

    @classmethod
    def from_env(cls, repo_path: Path = Path("."), **overrides) -> "BuildConfig":
        """Build a config from the environment, with explicit overrides winning.

        Resolution order per field:
        1. A non-``None`` keyword in ``overrides``.
        2. ``DEBFULLNAME``, ``DEBEMAIL``, ``TZ``, ``SNAPDEB_PACKAGE`` or
           ``SNAPDEB_HOMEPAGE``.
        3. The documented default.
        """
        values = {
            "maintainer": (os.getenv("DEBFULLNAME") or "").strip() or DEFAULT_MAINTAINER,
            "email": (os.getenv("DEBEMAIL") or "").strip() or DEFAULT_EMAIL,
            "timezone": (os.getenv("TZ") or "").strip() or DEFAULT_TIMEZONE,
            "package": (os.getenv("SNAPDEB_PACKAGE") or "").strip() or package_name_from_directory(repo_path),
            "homepage": (os.getenv("SNAPDEB_HOMEPAGE") or "").strip() or None,
            "repo_path": repo_path,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)


class ResolvedRevision(BaseModel):
    """A revision reference with everything derived from it."""

    reference: str
    normalized: str
    is_tag: bool
    version: str
    timestamp: int


class PackageMetadata(BaseModel):
    """The five rendered ``debian/`` documents."""

    changelog: str
    compat: str
    control: str
    copyright: str
    rules: str


class BuildResult(BaseModel):
    """Filesystem outputs of a completed build."""

    revision: ResolvedRevision
    tarball: Path
    source_dir: Path
    built_deb: Path
    published_deb: Path
