"""
Record persistence and rig-scoped locking.

State files are rewritten whole on every mutation: the new content goes to a
temporary sibling which is then renamed over the target, so a reader sees
either the old record or the new one, never a partial write.

Mutations across processes are serialized by RigLock, a file lock living in
the rig's agents root.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock, Timeout

from .errors import LockTimeoutError, PersistenceError

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".swarm.lock"


def temp_path_for(path: Path) -> Path:
    """Temporary sibling used while replacing path."""
    return path.with_name(f".{path.name}.{os.getpid()}.tmp")


def write_json_atomic(path: Path, data: dict) -> None:
    """
    Atomically replace path with pretty-printed JSON.

    Args:
        path: Target file
        data: JSON-serializable mapping

    Raises:
        PersistenceError: If serialization or any filesystem step fails
    """
    try:
        content = json.dumps(data, indent=2)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Cannot serialize record for {path}: {e}") from e

    temp_file = temp_path_for(path)
    try:
        with open(temp_file, "w", encoding="utf-8") as f:
            f.write(content + "\n")
            f.flush()
            os.fsync(f.fileno())
        temp_file.replace(path)
    except OSError as e:
        try:
            temp_file.unlink()
        except OSError:
            pass
        raise PersistenceError(f"Cannot write {path}: {e}") from e


def read_json(path: Path) -> Optional[dict]:
    """
    Read a JSON mapping.

    Returns:
        Parsed mapping, or None if the file does not exist

    Raises:
        PersistenceError: If the file is unreadable or not a JSON object
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        raise PersistenceError(f"Cannot decode {path}: {e}") from e
    except OSError as e:
        raise PersistenceError(f"Cannot read {path}: {e}") from e

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Malformed JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise PersistenceError(f"Expected a JSON object in {path}")
    return data


class RigLock:
    """
    Exclusive, re-entrant lock over one rig's agents root.

    Features:
    - Exclusive across processes and threads (filelock)
    - Re-entrant within one thread, so a locked operation can call others
    - Bounded wait, raising LockTimeoutError
    """

    def __init__(self, root: Path, timeout: float = 30):
        """
        Args:
            root: Agents root directory; created on first acquire
            timeout: Seconds to wait, -1 to wait forever
        """
        self.root = Path(root)
        self.path = self.root / LOCK_FILE_NAME
        self.timeout = timeout
        self._lock = FileLock(str(self.path), timeout=timeout, thread_local=True)

    @property
    def is_locked(self) -> bool:
        return self._lock.is_locked

    def acquire(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        try:
            self._lock.acquire()
        except Timeout as e:
            raise LockTimeoutError(
                f"Could not acquire rig lock {self.path} within {self.timeout}s"
            ) from e

    def release(self) -> None:
        self._lock.release()

    def __enter__(self) -> "RigLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
