"""Pytest configuration and fixtures for git_autosync tests."""

import os
import tempfile
from pathlib import Path

import pytest
from git import Repo


def configure_user(repo: Repo) -> None:
    """Give a repository a local identity so commits, stashes and rebases work."""
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("commit", "gpgsign", "false")


def commit_file(repo_path: Path, name: str, content: str, message: str | None = None) -> str:
    """Write a file, commit it and return the new commit hash."""
    repo = Repo(repo_path)
    (repo_path / name).parent.mkdir(parents=True, exist_ok=True)
    (repo_path / name).write_text(content)
    repo.git.add("--", name)
    repo.git.commit("-m", message or f"Update {name}")
    return repo.head.commit.hexsha


def push(repo_path: Path) -> None:
    """Push the clone's HEAD to origin/master."""
    Repo(repo_path).git.push("origin", "HEAD:master")


def add_submodule(repo_path: Path, source: Path, name: str) -> Path:
    """Add source as a submodule at name, commit it and push."""
    repo = Repo(repo_path)
    repo.git.execute(
        ["git", "-c", "protocol.file.allow=always", "submodule", "add", str(source), name]
    )
    repo.git.commit("-m", f"Add submodule {name}")
    push(repo_path)
    return repo_path / name


def install_hook(git_dir: Path, name: str, script: str) -> None:
    """Write an executable git hook."""
    hooks = Path(git_dir) / "hooks"
    hooks.mkdir(exist_ok=True)
    hook = hooks / name
    hook.write_text(script)
    os.chmod(hook, 0o755)


def history(repo_path: Path, rev: str = "HEAD") -> list[str]:
    """All commit hashes reachable from rev, newest first."""
    return [c.hexsha for c in Repo(repo_path).iter_commits(rev)]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def upstream_repo(temp_dir: Path):
    """Create a bare repository with one commit on master to act as origin."""
    seed_path = temp_dir / "seed"
    seed_path.mkdir()

    # Initialize a non-bare seed and commit, then clone it bare
    seed = Repo.init(seed_path, initial_branch="master")
    configure_user(seed)
    (seed_path / "README.md").write_text("# Test Repo\n")
    seed.git.add("README.md")
    seed.git.commit("-m", "Initial commit")

    upstream_path = temp_dir / "upstream.git"
    Repo.clone_from(str(seed_path), str(upstream_path), bare=True)

    yield upstream_path


@pytest.fixture
def make_clone(temp_dir: Path, upstream_repo: Path):
    """Factory for working clones of the upstream repository."""

    def _make_clone(name: str) -> Path:
        clone_path = temp_dir / name
        repo = Repo.clone_from(str(upstream_repo), str(clone_path))
        configure_user(repo)
        return clone_path

    return _make_clone


@pytest.fixture
def local_repo(make_clone):
    """The working copy under test."""
    return make_clone("local")


@pytest.fixture
def other_repo(make_clone):
    """A second clone used to move upstream forward."""
    return make_clone("other")
