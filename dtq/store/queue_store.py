"""
Transactional JSON store for the hand-off queue.

All state lives in one indented JSON file. Every operation runs inside
execute(): lock, load, mutate, atomically persist, unlock. A transaction
that raises leaves the file untouched.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, TypeVar

from dtq.lib.errors import StorageError
from dtq.lib.validate import SchemaError, validate_document
from dtq.models import WorkItem
from dtq.store.locking import FileLock

logger = logging.getLogger(__name__)

T = TypeVar("T")

Items = dict[str, WorkItem]


class QueueStore:
    """Durable task-id -> WorkItem mapping with an exclusive transaction boundary."""

    def __init__(self, path: Path, lock=None):
        """
        Args:
            path: JSON data file (created on first commit)
            lock: Object with an acquire() context manager. Defaults to a
                  FileLock on a sidecar file next to path.
        """
        self.path = Path(path)
        self.lock = lock or FileLock(self.path.with_suffix(".lock"))

    def execute(self, transaction: Callable[[Items], T], readonly: bool = False) -> T:
        """Run transaction against the current items under the store lock.

        The mapping passed in is mutable; when the transaction returns normally
        the resulting mapping is persisted (unless readonly). Exceptions from the
        transaction propagate unchanged and nothing is written.

        Returns:
            Whatever transaction returns

        Raises:
            StorageError: lock, read, parse or write failure
        """
        with self.lock.acquire():
            items = self._load()
            result = transaction(items)
            if not readonly:
                self._save(items)
            return result

    def _load(self) -> Items:
        """Read and validate the store. Missing or empty file means no items."""
        try:
            if not self.path.exists():
                return {}
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"cannot read queue file: {e}", self.path) from e

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"corrupt queue file: {e}", self.path) from e

        try:
            validate_document(data, "queue")
        except SchemaError as e:
            raise StorageError(f"corrupt queue file: {e}", self.path) from e

        items = {}
        for task_id, item_data in data["items"].items():
            if item_data["taskId"] != task_id:
                raise StorageError(
                    f"corrupt queue file: key '{task_id}' holds task '{item_data['taskId']}'",
                    self.path,
                )
            items[task_id] = WorkItem.from_dict(item_data)

        logger.debug(f"[STORE] Loaded {len(items)} items from {self.path}")
        return items

    def _save(self, items: Items) -> None:
        document = {"items": {task_id: item.to_dict() for task_id, item in items.items()}}
        content = json.dumps(document, indent=2) + "\n"
        atomic_write_text(self.path, content)
        logger.debug(f"[STORE] Committed {len(items)} items to {self.path}")


def atomic_write_text(path: Path, content: str) -> None:
    """Write content to path via a temp file in the same directory and os.replace.

    Readers see either the old file or the new one, never a partial write.

    Raises:
        StorageError: if any step fails; the temp file is removed
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
    except OSError as e:
        raise StorageError(f"cannot create temp file: {e}", path) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        _remove_quietly(tmp_path)
        raise StorageError(f"cannot write queue: {e}", path) from e
    except BaseException:
        _remove_quietly(tmp_path)
        raise


def _remove_quietly(tmp_path: str) -> None:
    try:
        os.unlink(tmp_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[STORE] Failed to remove temp file {tmp_path}: {e}")
