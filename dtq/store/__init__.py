"""Persistent queue store.

QueueStore owns the data file; the lock is injectable so tests and embedded
callers can swap flock for an in-process mutex.
"""

from dtq.store.locking import FileLock, ThreadLock
from dtq.store.queue_store import QueueStore, atomic_write_text

__all__ = ["QueueStore", "FileLock", "ThreadLock", "atomic_write_text"]
