"""Typer-based CLI that builds a Debian package from a git revision."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from snapdeb.builder import run_build
from snapdeb.errors import SnapdebError
from snapdeb.metadata import resolve_timezone
from snapdeb.models import DEFAULT_BUILD_ROOT, DEFAULT_DEBIAN_REVISION, DEFAULT_DIST_ROOT, BuildConfig

app = typer.Typer(
    add_completion=False,
    help="snapdeb: build a Debian binary package from a git commit or tag",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _echo_step(step: int, total: int, message: str) -> None:
    """Print a normalized progress step line."""
    typer.echo(f"[{step}/{total}] {message}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: Exception) -> typer.Exit:
    typer.secho(f"snapdeb: error: {exc}", err=True, fg=typer.colors.RED)
    return typer.Exit(code=1)


@app.command()
def build(
    revision: str = typer.Argument("HEAD", help="Commit, branch, or tag to package"),
    tag_only: bool = typer.Option(
        False, "--tag-only", help="Skip the build (exit 0) unless the revision is a tag or tagged commit"
    ),
    repo: Path = typer.Option(Path("."), "--repo", help="Path to the git repository"),
    package: str | None = typer.Option(
        None, "--package", help="Package name [env: SNAPDEB_PACKAGE, default: repo directory name]"
    ),
    maintainer: str | None = typer.Option(None, "--maintainer", help="Maintainer name [env: DEBFULLNAME]"),
    email: str | None = typer.Option(None, "--email", help="Maintainer email [env: DEBEMAIL]"),
    timezone_name: str | None = typer.Option(
        None, "--timezone", help="Timezone for the changelog date [env: TZ, default: UTC]"
    ),
    homepage: str | None = typer.Option(
        None, "--homepage", help="Project web page [env: SNAPDEB_HOMEPAGE, default: from origin remote]"
    ),
    build_root: Path = typer.Option(DEFAULT_BUILD_ROOT, "--build-root", help="Working directory for the build"),
    dist_root: Path = typer.Option(DEFAULT_DIST_ROOT, "--dist-root", help="Where the finished .deb is copied"),
    debian_revision: str = typer.Option(DEFAULT_DEBIAN_REVISION, "--debian-revision", help="Debian revision suffix"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every external command"),
) -> None:
    """Export REVISION, synthesize debian/ metadata, and build an unsigned .deb."""
    _configure_logging(verbose)

    try:
        config = BuildConfig.from_env(
            repo_path=repo,
            package=package,
            maintainer=maintainer,
            email=email,
            timezone=timezone_name,
            homepage=homepage,
            build_root=build_root,
            dist_root=dist_root,
            debian_revision=debian_revision,
        )
        resolve_timezone(config.timezone)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        result = run_build(config, reference=revision, tag_only=tag_only, progress=_echo_step)
    except SnapdebError as exc:
        raise _fail(exc) from exc

    if result is None:
        typer.echo(f"{revision} is not a tagged revision; nothing to build (--tag-only).")
        return

    typer.echo(
        "Build complete. "
        f"version={result.revision.version} revision={result.revision.normalized} path={result.published_deb}"
    )


if __name__ == "__main__":
    app()
