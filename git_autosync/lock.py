"""
Advisory session lock.

Two sessions against the same repository would race on the working copy and
the git metadata, so each session holds an exclusive flock on a file inside
the git directory for its whole duration.
"""

import fcntl
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .errors import SessionLocked


@contextmanager
def session_lock(lock_path: Path) -> Iterator[Path]:
    """
    Hold an exclusive, non-blocking lock on lock_path.

    Raises:
        SessionLocked: if another process already holds the lock or the lock
            file cannot be opened
    """
    lock_path = Path(lock_path)
    try:
        fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as e:
        raise SessionLocked(f"Cannot open lock file {lock_path}: {e}") from e
    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            raise SessionLocked(
                f"Another git-autosync session is running (lock held on {lock_path})"
            ) from e

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        try:
            yield lock_path
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)
