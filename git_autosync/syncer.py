"""
Main autosync logic.

This module runs one sync session: validate the repository, capture pending
edits, rebase onto upstream, reapply the captured edits, commit them and
push. Each step receives the session context explicitly and the first
failure ends the session.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .config import AutosyncConfig
from .errors import AutosyncError, CommitFailure, NoUpstreamBranch, NoUpstreamRemote
from .git_ops import ChangeSnapshot, GitRepository
from .lock import session_lock
from .message import ChangeCounts, classify_changes, format_commit_message

console = Console()
err_console = Console(stderr=True)

TAG = escape("[git-autosync]")
WARN_TAG = escape("[git-autosync WARN]")
ERROR_TAG = escape("[git-autosync ERROR]")


def log(message: str) -> None:
    console.print(f"[green]{TAG}[/green] {escape(message)}", highlight=False)


def warn(message: str) -> None:
    console.print(f"[yellow]{WARN_TAG}[/yellow] {escape(message)}", highlight=False)


def error(message: str) -> None:
    err_console.print(f"[red]{ERROR_TAG}[/red] {escape(message)}", highlight=False)


class SessionState(str, Enum):
    """Progress of a sync session. FAILED and DONE are terminal."""

    START = "start"
    VALIDATED = "validated"
    CAPTURED = "captured"
    SYNCED = "synced"
    REINTEGRATED = "reintegrated"
    COMMITTED = "committed"
    PUBLISHED = "published"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SyncSession:
    """Run-scoped context threaded through each step of a session."""

    state: SessionState = SessionState.START
    branch: str | None = None
    snapshot: ChangeSnapshot | None = None
    captured: bool = False
    counts: ChangeCounts = field(default_factory=ChangeCounts)
    commit_message: str | None = None
    commit_hash: str | None = None
    commits_ahead: int = 0
    failure: AutosyncError | None = None

    @property
    def success(self) -> bool:
        return self.state == SessionState.DONE

    @property
    def failure_kind(self) -> str | None:
        return self.failure.kind if self.failure else None


class AutoSyncer:
    """Synchronizes one working copy with its upstream branch."""

    def __init__(self, config: AutosyncConfig | None = None, path: Path | None = None):
        """Initialize the syncer with configuration and a working directory."""
        self.config = config or AutosyncConfig()
        self.path = Path(path) if path is not None else Path.cwd()

    def run(self) -> SyncSession:
        """
        Run a full session.

        Never raises AutosyncError; a failure is recorded on the returned
        session with state FAILED.
        """
        session = SyncSession()
        try:
            repo = self.validate(session)
            lock_path = repo.git_dir / self.config.lock_file
            with session_lock(lock_path):
                log("Starting git-autosync process...")
                self.capture(repo, session)
                self.synchronize(repo, session)
                self.reintegrate(repo, session)
                self.compose(repo, session)
                self.publish(repo, session)
        except AutosyncError as e:
            session.state = SessionState.FAILED
            session.failure = e
            error(f"{e.kind}: {e.explanation}")
            return session

        session.state = SessionState.DONE
        log("git-autosync completed successfully!")
        self._print_summary(session)
        return session

    def validate(self, session: SyncSession) -> GitRepository:
        """Open the repository and check that the upstream remote is configured."""
        repo = GitRepository(self.path)
        if not repo.has_remote(self.config.remote):
            raise NoUpstreamRemote(f"No '{self.config.remote}' remote found")
        session.branch = repo.get_current_branch()
        session.state = SessionState.VALIDATED
        return repo

    def capture(self, repo: GitRepository, session: SyncSession) -> None:
        """Stage untracked files, then move all changes against HEAD into a snapshot."""
        log("Checking for untracked files...")
        state = repo.get_working_copy_state()
        if state.untracked:
            log(f"Adding {len(state.untracked)} untracked file(s) to git...")
            repo.stage_files(state.untracked)
            log("Untracked files added")
        else:
            log("No untracked files found")

        log("Checking for tracked changes...")
        if repo.has_uncommitted_changes():
            log("Stashing tracked changes...")
            session.snapshot = repo.create_snapshot()
            if session.snapshot is None:
                warn("Git saved nothing to stash; continuing without a snapshot")
            else:
                session.captured = True
                log(f"Changes stashed ({session.snapshot.label})")
        else:
            log("No tracked changes to stash")
        session.state = SessionState.CAPTURED

    def synchronize(self, repo: GitRepository, session: SyncSession) -> None:
        """
        Fetch upstream and rebase local history onto the upstream branch.

        Any failure here leaves HEAD untouched (a conflicting rebase is
        aborted), so the snapshot is put back before the error propagates.
        """
        remote = self.config.remote
        branch = self.config.upstream_branch

        try:
            log(f"Fetching from {remote}...")
            repo.fetch(remote)
            log("Fetch completed")

            if not repo.remote_branch_exists(remote, branch):
                raise NoUpstreamBranch(
                    f"{self.config.upstream_ref} not found. "
                    f"Please ensure the upstream has a {branch} branch."
                )

            log(f"Rebasing to {self.config.upstream_ref}...")
            repo.rebase(self.config.upstream_ref)
        except AutosyncError:
            self._restore_after_sync_failure(repo, session)
            raise
        log("Rebase completed successfully")
        session.state = SessionState.SYNCED

    def _restore_after_sync_failure(self, repo: GitRepository, session: SyncSession) -> None:
        """Put captured changes back on the untouched HEAD."""
        if session.snapshot is None:
            return
        snapshot, session.snapshot = session.snapshot, None
        try:
            repo.restore_snapshot(snapshot)
            log("Restored stashed changes onto the original HEAD")
        except AutosyncError as e:
            warn(f"Could not restore stashed changes: {e.explanation}")

    def reintegrate(self, repo: GitRepository, session: SyncSession) -> None:
        """Pop the snapshot, if any, onto the rebased history."""
        if session.snapshot is None:
            log("No stashed changes to apply")
            session.state = SessionState.REINTEGRATED
            return

        log("Applying stashed changes...")
        # Consumed even if the pop fails; conflicts are left for manual resolution
        snapshot, session.snapshot = session.snapshot, None
        repo.restore_snapshot(snapshot)
        session.state = SessionState.REINTEGRATED

    def compose(self, repo: GitRepository, session: SyncSession) -> None:
        """Commit reintegrated changes with a synthesized message."""
        if not session.captured or not repo.has_uncommitted_changes(failure=CommitFailure):
            log("No changes to commit")
            return

        log("Preparing commit message...")
        repo.stage_all()
        session.counts = classify_changes(repo.get_staged_changes())
        session.commit_message = format_commit_message(
            session.counts,
            hostname=self.config.resolved_hostname(),
            prefix=self.config.message_prefix,
        )

        log(f"Committing changes: {session.commit_message}")
        session.commit_hash = repo.commit(session.commit_message)
        log("Changes committed")
        session.state = SessionState.COMMITTED

    def publish(self, repo: GitRepository, session: SyncSession) -> None:
        """Push HEAD to the upstream branch."""
        remote = self.config.remote
        branch = self.config.upstream_branch

        if session.branch is None:
            warn("HEAD is detached; publishing it anyway")

        session.commits_ahead = repo.count_commits_ahead(self.config.upstream_ref)
        log(f"Pushing to {self.config.upstream_ref}...")
        repo.push(remote, branch)
        log("Push completed successfully")
        session.state = SessionState.PUBLISHED

    def _print_summary(self, session: SyncSession) -> None:
        """Print session summary."""
        if session.commits_ahead > 0:
            log(f"Synchronized {session.commits_ahead} commit(s) with upstream")
        else:
            log("Repository is up to date with upstream")
