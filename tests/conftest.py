from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from snapdeb.models import BuildConfig, ResolvedRevision

FIRST_COMMIT_TIME = 1600000000
ANNOTATED_TAG_TIME = 1600003600
SECOND_COMMIT_TIME = 1600100000
THIRD_COMMIT_TIME = 1600200000


def run_git(repo: Path, env: dict[str, str], *args: str) -> str:
    proc = subprocess.run(
        ["git", "-C", str(repo), *args],
        env=env,
        check=True,
        capture_output=True,
        text=True,
    )
    return proc.stdout.strip()


def commit_all(repo: Path, env: dict[str, str], when: int, message: str = "update") -> str:
    """Commit everything in the work tree with fixed author and committer dates."""
    dated = {**env, "GIT_AUTHOR_DATE": f"{when} +0000", "GIT_COMMITTER_DATE": f"{when} +0000"}
    run_git(repo, dated, "add", "-A")
    run_git(repo, dated, "commit", "-q", "-m", message)
    return run_git(repo, dated, "rev-parse", "HEAD")


def _commit(repo: Path, env: dict[str, str], filename: str, content: str, when: int) -> str:
    target = repo / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return commit_all(repo, env, when, message=f"update {filename}")


@pytest.fixture
def git_env(tmp_path) -> dict[str, str]:
    """Environment isolating git from user config, with a fixed identity."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return {
        **os.environ,
        "HOME": str(tmp_path),
        "GIT_CONFIG_NOSYSTEM": "1",
        "GIT_AUTHOR_NAME": "Alice",
        "GIT_AUTHOR_EMAIL": "alice@example.com",
        "GIT_COMMITTER_NAME": "Alice",
        "GIT_COMMITTER_EMAIL": "alice@example.com",
    }


@pytest.fixture
def untagged_repo(tmp_path, git_env) -> Path:
    """A single-commit repo with no tags at all."""
    repo = tmp_path / "no-tags"
    repo.mkdir()
    run_git(repo, git_env, "init", "-q")
    _commit(repo, git_env, "README", "only\n", FIRST_COMMIT_TIME)
    return repo


@pytest.fixture
def git_repo(tmp_path, git_env) -> dict[str, object]:
    """A three-commit repo: annotated ``v1.0.0``, lightweight ``v1.1.0``, untagged HEAD."""
    repo = tmp_path / "demo-pkg"
    repo.mkdir()
    env = git_env
    run_git(repo, env, "init", "-q")

    first = _commit(repo, env, "README", "first\n", FIRST_COMMIT_TIME)
    tag_env = {**env, "GIT_COMMITTER_DATE": f"{ANNOTATED_TAG_TIME} -0700"}
    run_git(repo, tag_env, "tag", "-a", "v1.0.0", "-m", "release 1.0.0")

    second = _commit(repo, env, "main.sh", "echo hello\n", SECOND_COMMIT_TIME)
    run_git(repo, env, "tag", "v1.1.0")

    third = _commit(repo, env, "NEWS", "unreleased\n", THIRD_COMMIT_TIME)

    return {
        "path": repo,
        "env": env,
        "first": first,
        "second": second,
        "third": third,
    }


@pytest.fixture
def tag_revision() -> ResolvedRevision:
    return ResolvedRevision(
        reference="v2.1.0",
        normalized="v2.1.0",
        is_tag=True,
        version="2.1.0",
        timestamp=ANNOTATED_TAG_TIME,
    )


@pytest.fixture
def commit_revision() -> ResolvedRevision:
    return ResolvedRevision(
        reference="HEAD",
        normalized="c" * 40,
        is_tag=False,
        version="2.1.0-3-gccccccc",
        timestamp=THIRD_COMMIT_TIME,
    )


@pytest.fixture
def build_config(tmp_path) -> BuildConfig:
    return BuildConfig(
        maintainer="Alice Example",
        email="alice@example.com",
        timezone="UTC",
        package="demo-pkg",
        homepage="https://github.com/example/demo-pkg",
        repo_path=tmp_path / "demo-pkg",
        build_root=tmp_path / "build",
        dist_root=tmp_path / "dist",
    )
