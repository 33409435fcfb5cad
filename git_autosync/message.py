"""
Commit message synthesis.

Turns a list of staged file changes into added/modified/deleted counts and
renders them as a one-line commit summary.
"""

from dataclasses import dataclass

from .git_ops import FileChange


@dataclass(frozen=True)
class ChangeCounts:
    """Number of changed paths per kind."""

    added: int = 0
    modified: int = 0
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.added + self.modified + self.deleted


def classify_changes(changes: list[FileChange]) -> ChangeCounts:
    """Count changes by kind. Kinds other than A, M and D are not counted."""
    added = sum(1 for c in changes if c.change_type == "A")
    modified = sum(1 for c in changes if c.change_type == "M")
    deleted = sum(1 for c in changes if c.change_type == "D")
    return ChangeCounts(added=added, modified=modified, deleted=deleted)


def format_commit_message(
    counts: ChangeCounts, hostname: str, prefix: str = "git-autosync"
) -> str:
    """
    Render the commit message for a set of counts.

    Zero counts are left out. When every count is zero the summary falls back
    to 'changes detected'.

    Example:
        >>> format_commit_message(ChangeCounts(added=2, modified=1), "box")
        'git-autosync: 2 file(s) added, 1 file(s) modified from box'
    """
    parts = []
    if counts.added > 0:
        parts.append(f"{counts.added} file(s) added")
    if counts.modified > 0:
        parts.append(f"{counts.modified} file(s) modified")
    if counts.deleted > 0:
        parts.append(f"{counts.deleted} file(s) deleted")

    summary = ", ".join(parts) if parts else "changes detected"
    return f"{prefix}: {summary} from {hostname}"
