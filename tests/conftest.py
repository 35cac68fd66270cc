"""Shared test fixtures for subrecon.

Integration fixtures build real repositories with the git binary in
tmp_path. The environment pins the identity, the default branch and
allows file:// submodule URLs, which git refuses by default.
"""

import io
import subprocess
from pathlib import Path

import pytest

from subrecon.config import Settings
from subrecon.console import Console
from subrecon.git.context import GitContext


def git(cwd: Path, *args: str) -> str:
    """Run git in ``cwd`` and return its stripped stdout."""
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True,
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    env = {
        "HOME": str(home),
        "GIT_CONFIG_NOSYSTEM": "1",
        "GIT_AUTHOR_NAME": "test",
        "GIT_AUTHOR_EMAIL": "t@t",
        "GIT_COMMITTER_NAME": "test",
        "GIT_COMMITTER_EMAIL": "t@t",
        "GIT_CONFIG_COUNT": "2",
        "GIT_CONFIG_KEY_0": "protocol.file.allow",
        "GIT_CONFIG_VALUE_0": "always",
        "GIT_CONFIG_KEY_1": "init.defaultBranch",
        "GIT_CONFIG_VALUE_1": "main",
        "SUBRECON_CONFIG": str(home / "no-such-config.yaml"),
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("SUBRECON_DIR", raising=False)
    return env


@pytest.fixture
def upstream(tmp_path, git_env):
    """A repository to use as submodule URL, with one commit."""
    repo = tmp_path / "upstream"
    repo.mkdir()
    git(repo, "init", "-q")
    commit_file(repo, "README", "upstream\n", "init upstream")
    return repo


@pytest.fixture
def superproject(tmp_path, git_env):
    """An empty superproject with one commit."""
    repo = tmp_path / "super"
    repo.mkdir()
    git(repo, "init", "-q")
    commit_file(repo, "README", "super\n", "init super")
    return repo


@pytest.fixture
def with_submodule(superproject, upstream):
    """The superproject with `upstream` added and committed as `lib`."""
    git(superproject, "submodule", "add", "-q", str(upstream), "lib")
    git(superproject, "commit", "-q", "-m", "add lib")
    return superproject


@pytest.fixture
def context(superproject):
    return GitContext(superproject)


@pytest.fixture
def settings():
    return Settings(lock_poll_interval=0.05)


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def console(out):
    return Console(out=out, err=out)
