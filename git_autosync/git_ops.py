"""
Git operations for the autosync session.

Provides a wrapper around git operations using GitPython, handling
working-copy inspection, stashing, fetch/rebase/push and diff classification.
Git failures are translated into the session's error taxonomy here.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .errors import (
    AutosyncError,
    CaptureFailure,
    CommitFailure,
    FetchFailure,
    NotARepository,
    PublishFailure,
    RebaseConflict,
    ReintegrationConflict,
)


def _git_stderr(error: GitCommandError) -> str:
    """Extract a readable message from a failed git command."""
    text = (error.stderr or error.stdout or "").strip()
    # GitPython wraps output as "stderr: '...'"
    for prefix in ("stderr: ", "stdout: "):
        if text.startswith(prefix):
            text = text[len(prefix):].strip("'").strip()
    return text or str(error)


@dataclass
class FileChange:
    """Represents a single file change."""

    path: str
    change_type: str  # 'A' (added), 'M' (modified), 'D' (deleted), 'T', 'U', ...


@dataclass
class WorkingCopyState:
    """Pending edits observed at one instant."""

    untracked: list[str] = field(default_factory=list)
    tracked: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.untracked and not self.tracked


@dataclass(frozen=True)
class ChangeSnapshot:
    """A stash entry holding tracked changes captured during a session."""

    sha: str
    label: str
    created_at: datetime


class GitRepository:
    """Wrapper around a git repository for sync operations."""

    def __init__(self, path: Path):
        """Open the repository containing path (searching parent directories)."""
        self.path = Path(path).resolve()
        try:
            self.repo = Repo(self.path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NotARepository(f"Not in a git repository: {self.path}") from e
        if self.repo.bare:
            raise NotARepository(f"Repository has no working copy: {self.path}")

    @property
    def root(self) -> Path:
        """Top level of the working copy."""
        return Path(self.repo.working_tree_dir)

    @property
    def git_dir(self) -> Path:
        """The repository's metadata directory."""
        return Path(self.repo.git_dir)

    # Inspection

    def has_remote(self, name: str) -> bool:
        """Check if a remote with the given name is configured."""
        return name in [r.name for r in self.repo.remotes]

    def get_current_branch(self) -> str | None:
        """Get the current branch name, or None on a detached HEAD."""
        if self.repo.head.is_detached:
            return None
        return self.repo.active_branch.name

    def get_working_copy_state(self) -> WorkingCopyState:
        """Observe untracked paths and tracked paths that differ from HEAD."""
        try:
            tracked = {d.a_path or d.b_path for d in self.repo.index.diff(None)}
            if self.repo.head.is_valid():
                tracked |= {d.a_path or d.b_path for d in self.repo.index.diff("HEAD")}
            untracked = self.repo.untracked_files
        except GitCommandError as e:
            raise CaptureFailure(f"Failed to inspect the working copy: {_git_stderr(e)}") from e
        return WorkingCopyState(untracked=sorted(untracked), tracked=sorted(tracked))

    def has_uncommitted_changes(
        self, failure: type[AutosyncError] = CaptureFailure
    ) -> bool:
        """
        Check if the index or tracked files differ from HEAD.

        Submodule changes are ignored because stash cannot save them. Errors
        are raised as failure.
        """
        try:
            return self.repo.is_dirty(
                index=True, working_tree=True, untracked_files=False, submodules=False
            )
        except GitCommandError as e:
            raise failure(f"Failed to compare the working copy with HEAD: {_git_stderr(e)}") from e

    def get_conflicted_files(self) -> list[str]:
        """Return the list of files with unresolved merge conflicts."""
        try:
            output = self.repo.git.diff("--name-only", "--diff-filter=U")
        except GitCommandError as e:
            raise ReintegrationConflict(
                f"Failed to list conflicted files: {_git_stderr(e)}"
            ) from e
        return [line for line in output.splitlines() if line]

    def get_staged_changes(self) -> list[FileChange]:
        """List staged changes relative to HEAD, with renames split into D + A."""
        try:
            output = self.repo.git.diff("--cached", "--name-status", "--no-renames")
        except GitCommandError as e:
            raise CommitFailure(f"Failed to list staged changes: {_git_stderr(e)}") from e
        changes = []
        for line in output.splitlines():
            if not line.strip():
                continue
            status, _, path = line.partition("\t")
            changes.append(FileChange(path=path, change_type=status[:1]))
        return changes

    def remote_branch_exists(self, remote: str, branch: str) -> bool:
        """Check if the remote-tracking ref remote/branch exists locally."""
        try:
            self.repo.git.show_ref("--verify", "--quiet", f"refs/remotes/{remote}/{branch}")
            return True
        except GitCommandError:
            return False

    def count_commits_ahead(self, upstream_ref: str) -> int:
        """Count commits reachable from HEAD but not from upstream_ref."""
        try:
            return int(self.repo.git.rev_list("--count", "HEAD", f"^{upstream_ref}"))
        except GitCommandError as e:
            raise PublishFailure(
                f"Failed to count commits ahead of {upstream_ref}: {_git_stderr(e)}"
            ) from e

    # Capture

    def stage_files(self, file_paths: list[str]) -> None:
        """Stage multiple files for commit."""
        if not file_paths:
            return
        try:
            self.repo.git.add("--", *file_paths)
        except GitCommandError as e:
            raise CaptureFailure(f"Failed to stage untracked files: {_git_stderr(e)}") from e

    def stage_all(self) -> None:
        """Stage every difference in the working copy, including deletions."""
        try:
            self.repo.git.add("-A")
        except GitCommandError as e:
            raise CommitFailure(f"Failed to stage changes: {_git_stderr(e)}") from e

    def _latest_stash(self) -> str | None:
        """Hash of the newest stash entry, or None if the stash is empty."""
        output = self.repo.git.stash("list", "--max-count=1", "--format=%H")
        return output.strip() or None

    def create_snapshot(self, label: str | None = None) -> ChangeSnapshot | None:
        """
        Move all changes relative to HEAD into a new stash entry.

        The working copy is clean afterwards. Returns None when git saved
        nothing (e.g. only submodule changes), so an older stash entry is
        never mistaken for this session's snapshot.

        Raises:
            CaptureFailure: if git refuses to create the stash
        """
        created_at = datetime.now(timezone.utc)
        label = label or f"git-autosync: temporary stash {created_at.isoformat(timespec='seconds')}"
        try:
            before = self._latest_stash()
            self.repo.git.stash("push", "-m", label)
            after = self._latest_stash()
        except GitCommandError as e:
            raise CaptureFailure(f"Failed to stash tracked changes: {_git_stderr(e)}") from e
        if after is None or after == before:
            return None
        return ChangeSnapshot(sha=after, label=label, created_at=created_at)

    def _stash_ref(self, snapshot: ChangeSnapshot) -> str | None:
        """Find the stash@{n} reference that currently holds snapshot."""
        try:
            output = self.repo.git.stash("list", "--format=%H")
        except GitCommandError as e:
            raise ReintegrationConflict(f"Failed to read the stash list: {_git_stderr(e)}") from e
        for index, sha in enumerate(output.splitlines()):
            if sha.strip() == snapshot.sha:
                return f"stash@{{{index}}}"
        return None

    def restore_snapshot(self, snapshot: ChangeSnapshot) -> None:
        """
        Pop snapshot back onto the working copy.

        On a conflict git keeps the stash entry and leaves conflict markers in
        the affected files; nothing is rolled back.

        Raises:
            ReintegrationConflict: if the snapshot is missing or does not apply cleanly
        """
        ref = self._stash_ref(snapshot)
        if ref is None:
            raise ReintegrationConflict(
                f"Stash entry {snapshot.sha[:8]} ('{snapshot.label}') no longer exists"
            )
        try:
            self.repo.git.stash("pop", ref)
        except GitCommandError as e:
            conflicted = self.get_conflicted_files()
            detail = f" Conflicted files: {', '.join(conflicted)}." if conflicted else ""
            raise ReintegrationConflict(
                "Failed to apply stashed changes; manual resolution required."
                f"{detail} The stash entry '{snapshot.label}' was kept by git. "
                f"({_git_stderr(e)})"
            ) from e

    # Upstream

    def fetch(self, remote: str = "origin") -> None:
        """Fetch from remote."""
        try:
            self.repo.git.fetch(remote)
        except GitCommandError as e:
            raise FetchFailure(f"Failed to fetch from {remote}: {_git_stderr(e)}") from e

    def rebase(self, onto: str) -> None:
        """
        Replay local commits on top of onto.

        A failed rebase is aborted before raising, so HEAD and the branch are
        left where they were.

        Raises:
            RebaseConflict: if the rebase stops on a conflict or otherwise fails
        """
        try:
            self.repo.git.rebase(onto)
        except GitCommandError as e:
            self.abort_rebase()
            raise RebaseConflict(
                f"Rebase onto {onto} failed and was aborted. Manual intervention required. "
                f"({_git_stderr(e)})"
            ) from e

    def abort_rebase(self) -> bool:
        """Abort an in-progress rebase. Returns False if there was nothing to abort."""
        try:
            self.repo.git.rebase("--abort")
            return True
        except GitCommandError:
            return False

    # Publish

    def commit(self, message: str) -> str:
        """Create a commit with the staged changes."""
        try:
            self.repo.git.commit("-m", message)
        except GitCommandError as e:
            raise CommitFailure(f"Failed to commit changes: {_git_stderr(e)}") from e

        # Return the new commit hash
        return self.repo.head.commit.hexsha

    def push(self, remote: str, branch: str) -> None:
        """Push HEAD to branch on remote."""
        try:
            self.repo.git.push(remote, f"HEAD:{branch}")
        except GitCommandError as e:
            raise PublishFailure(
                f"Failed to push to {remote}/{branch}: {_git_stderr(e)}"
            ) from e
