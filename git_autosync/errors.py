"""
Error taxonomy for git_autosync.

Every failure that ends a sync session is raised as a subclass of
AutosyncError. The class name doubles as the failure kind reported to the
user.
"""


class AutosyncError(Exception):
    """Base class for all fatal session failures."""

    def __init__(self, explanation: str):
        super().__init__(explanation)
        self.explanation = explanation

    @property
    def kind(self) -> str:
        """Name of the failure kind (e.g. 'FetchFailure')."""
        return type(self).__name__


# Precondition failures, raised before anything is mutated


class NotARepository(AutosyncError):
    """No repository metadata found from the working directory upward."""


class NoUpstreamRemote(AutosyncError):
    """The configured upstream remote is missing."""


class NoUpstreamBranch(AutosyncError):
    """The upstream branch does not exist on the remote after fetching."""


class SessionLocked(AutosyncError):
    """Another session holds the repository lock."""


# Failures during the session


class CaptureFailure(AutosyncError):
    """Staging untracked files or snapshotting tracked changes failed."""


class FetchFailure(AutosyncError):
    """The remote was unreachable or rejected the fetch."""


class RebaseConflict(AutosyncError):
    """Replaying local history onto upstream hit a conflict and was aborted."""


class ReintegrationConflict(AutosyncError):
    """Reapplying the captured snapshot left unresolved conflicts."""


class CommitFailure(AutosyncError):
    """The synthesized commit could not be created."""


class PublishFailure(AutosyncError):
    """The remote rejected the push."""
