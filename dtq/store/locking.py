"""
Lock management for the queue store.

Uses flock on a sidecar lock file for cross-process exclusion. The data file
itself is replaced atomically on every commit, so locking it directly would
leave later acquirers holding a lock on a stale inode.
"""

import fcntl
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path

from dtq.lib.errors import StorageError

logger = logging.getLogger(__name__)


class FileLock:
    """Exclusive advisory lock shared by every process using the same path.

    Acquisition blocks until the lock is free; there is no timeout.
    """

    def __init__(self, lock_file: Path):
        self.lock_file = lock_file

    @contextmanager
    def acquire(self):
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            # Never truncate or delete the lock file: a second process could
            # otherwise end up holding a lock on a different inode.
            fd = open(self.lock_file, 'a+')
        except OSError as e:
            raise StorageError(f"cannot open lock file: {e}", self.lock_file) from e

        try:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                logger.debug(f"[LOCK] {self.lock_file} busy, waiting")
                fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError as e:
            fd.close()
            raise StorageError(f"cannot lock: {e}", self.lock_file) from e

        try:
            fd.seek(0)
            fd.truncate()
            fd.write(f"{os.getpid()}\n")
            fd.flush()
            yield
        finally:
            try:
                fcntl.flock(fd, fcntl.LOCK_UN)
            finally:
                fd.close()


class ThreadLock:
    """In-process lock with the same interface as FileLock.

    Only serializes callers sharing this object; use for tests or when the
    store is embedded in a single process.
    """

    def __init__(self):
        self._lock = threading.Lock()

    @contextmanager
    def acquire(self):
        with self._lock:
            yield
