"""Tests for commit message synthesis."""

import pytest

from git_autosync.git_ops import FileChange
from git_autosync.message import ChangeCounts, classify_changes, format_commit_message


class TestClassifyChanges:
    """Tests for classify_changes."""

    def test_counts_by_kind(self):
        changes = [
            FileChange("a.txt", "A"),
            FileChange("b.txt", "A"),
            FileChange("c.txt", "M"),
            FileChange("d.txt", "D"),
        ]
        assert classify_changes(changes) == ChangeCounts(added=2, modified=1, deleted=1)

    def test_other_kinds_not_counted(self):
        """Test that type changes are not counted as any kind."""
        counts = classify_changes([FileChange("link", "T")])
        assert counts.total == 0

    def test_empty(self):
        assert classify_changes([]) == ChangeCounts()


class TestFormatCommitMessage:
    """Tests for format_commit_message."""

    def test_added_and_modified(self):
        """Test that zero categories are left out."""
        message = format_commit_message(ChangeCounts(added=2, modified=1), "host1")
        assert message == "git-autosync: 2 file(s) added, 1 file(s) modified from host1"
        assert "deleted" not in message

    @pytest.mark.parametrize(
        "counts, summary",
        [
            (ChangeCounts(added=1), "1 file(s) added"),
            (ChangeCounts(modified=3), "3 file(s) modified"),
            (ChangeCounts(deleted=4), "4 file(s) deleted"),
            (ChangeCounts(modified=1, deleted=2), "1 file(s) modified, 2 file(s) deleted"),
            (
                ChangeCounts(added=1, modified=1, deleted=1),
                "1 file(s) added, 1 file(s) modified, 1 file(s) deleted",
            ),
        ],
    )
    def test_clauses(self, counts, summary):
        assert format_commit_message(counts, "h") == f"git-autosync: {summary} from h"

    def test_fallback(self):
        """Test the fallback when all counts are zero."""
        assert (
            format_commit_message(ChangeCounts(), "host1")
            == "git-autosync: changes detected from host1"
        )

    def test_custom_prefix(self):
        message = format_commit_message(ChangeCounts(deleted=1), "h", prefix="sync")
        assert message == "sync: 1 file(s) deleted from h"
