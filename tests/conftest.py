"""
Shared fixtures for rigswarm tests
"""

import subprocess
from pathlib import Path

import pytest

from rigswarm.config import SwarmConfig
from rigswarm.git import GitError, VersionControl
from rigswarm.polecat.manager import PolecatManager
from rigswarm.rig import Rig


class FakeWorkspace(VersionControl):
    """In-memory VersionControl that records calls on its factory."""

    def __init__(self, work_dir: Path, factory: "FakeGit"):
        super().__init__(work_dir)
        self.factory = factory

    def _record(self, op: str, *args):
        self.factory.calls.append((op, self.work_dir) + args)
        if op in self.factory.fail_on:
            raise GitError(f"simulated {op} failure")

    def clone(self, url, dest):
        # Leave a partial workspace behind even when failing
        Path(dest).mkdir(parents=True)
        (Path(dest) / "README.md").write_text("# cloned\n")
        self._record("clone", url, Path(dest))

    def create_branch(self, name):
        self._record("create_branch", name)

    def checkout(self, name):
        self._record("checkout", name)

    def has_uncommitted_changes(self):
        self._record("has_uncommitted_changes")
        return self.factory.dirty

    def exclude(self, patterns):
        self._record("exclude", list(patterns))


class FakeGit:
    """Factory of FakeWorkspace objects with failure injection."""

    def __init__(self):
        self.calls = []
        self.fail_on = set()
        self.dirty = False

    def __call__(self, work_dir):
        return FakeWorkspace(work_dir, self)

    def ops(self):
        return [call[0] for call in self.calls]


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """Never read the developer's ~/.rigswarm/config.yaml."""
    monkeypatch.setattr(SwarmConfig, "CONFIG_PATH", tmp_path / "user-config.yaml")


@pytest.fixture
def config():
    return SwarmConfig(SwarmConfig.get_default())


@pytest.fixture
def rig(tmp_path):
    rig_path = tmp_path / "test-rig"
    rig_path.mkdir()
    return Rig(name="test-rig", path=rig_path, git_url="file:///srv/test-rig.git")


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def manager(rig, fake_git, config):
    """PolecatManager over a fake version-control collaborator"""
    return PolecatManager(rig, git_factory=fake_git, config=config)


@pytest.fixture
def git_repo(tmp_path):
    """Create a temporary git repository for testing"""
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()

    # Initialize git repo
    subprocess.run(["git", "init"], cwd=repo_path, check=True, capture_output=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=repo_path, check=True, capture_output=True
    )
    subprocess.run(
        ["git", "config", "user.name", "Test User"],
        cwd=repo_path, check=True, capture_output=True
    )

    # Create initial commit; polecats live inside the rig but are not part of it
    (repo_path / "README.md").write_text("# Test Repo")
    (repo_path / ".gitignore").write_text("polecats/\n")
    subprocess.run(["git", "add", "."], cwd=repo_path, check=True, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", "Initial commit"],
        cwd=repo_path, check=True, capture_output=True
    )

    return repo_path


@pytest.fixture
def git_rig(git_repo):
    """Rig backed by a real git repository"""
    return Rig(name="git-rig", path=git_repo, git_url=str(git_repo))
