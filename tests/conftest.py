"""Shared test fixtures for PunchTrunk tests."""

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from punchtrunk.config import Phase
from punchtrunk.exceptions import StageTimeout, ToolFailure

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

_GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
}


class GitRepo:
    """Small helper for building throwaway repositories."""

    def __init__(self, root: Path):
        self.root = root
        self.env = {**os.environ, **_GIT_ENV, "HOME": str(root.parent)}

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.root), *args],
            capture_output=True,
            text=True,
            env=self.env,
            check=True,
        )
        return result.stdout

    def write(self, rel: str, content: str) -> Path:
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def commit(self, message: str = "change") -> str:
        self.git("add", "-A")
        self.git("commit", "-q", "--no-gpg-sign", "-m", message)
        return self.git("rev-parse", "HEAD").strip()

    def shallow_clone(self, dest: Path, depth: int = 1) -> "GitRepo":
        self.git("clone", "-q", "--depth", str(depth), self.root.resolve().as_uri(), str(dest))
        return GitRepo(dest)


@pytest.fixture
def shallow_repo(populated_repo, tmp_path):
    """Depth-1 clone of ``populated_repo``; its boundary commit is recent."""
    return populated_repo.shallow_clone(tmp_path / "shallow")


@pytest.fixture
def git_repo(tmp_path):
    """An initialised, empty repository on branch main."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    root = tmp_path / "repo"
    root.mkdir()
    repo = GitRepo(root)
    repo.git("init", "-q", "-b", "main")
    return repo


@pytest.fixture
def populated_repo(git_repo):
    """Two commits touching three files; ``b.py`` is changed by the last one."""
    git_repo.write("a.py", "def a():\n    return 1\n")
    git_repo.write("b.py", "x = 1\n")
    git_repo.write("docs/readme.md", "# title\n\nsome words here\n")
    git_repo.commit("initial")
    git_repo.write("b.py", "x = 1\ny = x + 2 * 3\nz = [y for y in range(10)]\n")
    git_repo.commit("grow b")
    return git_repo


@dataclass
class FakeRunner:
    """Stand-in for TrunkRunner recording which phases ran."""

    failures: dict = field(default_factory=dict)
    timeouts: set = field(default_factory=set)
    calls: list = field(default_factory=list)

    def run(self, phase: Phase, token):
        self.calls.append(phase)
        if phase in self.timeouts:
            token.cancel()
            raise StageTimeout(f"trunk {phase.value}", timeout_seconds=1)
        if phase in self.failures:
            raise ToolFailure(f"trunk {phase.value}", self.failures[phase])


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep user config and PUNCHTRUNK_* variables out of every test."""
    for key in list(os.environ):
        if key.startswith("PUNCHTRUNK_") or key == "TRUNK_CONFIG_DIR":
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
