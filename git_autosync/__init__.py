"""
Git Autosync - Keep a working copy and its upstream in step.

This package captures pending edits in a local working copy, replays local
history on top of the upstream branch, reapplies the captured edits, commits
them with a descriptive message and publishes the result back upstream.
"""

__version__ = "1.0.0"
