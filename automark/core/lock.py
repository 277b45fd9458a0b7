"""Lock file preventing concurrent automark runs."""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional

from .config import DEFAULT_LOCK_FILE

logger = logging.getLogger(__name__)


class LockError(Exception):
    """Raised when another automark instance holds the lock."""

    def __init__(self, path: Path, holder_pid: Optional[int] = None):
        self.path = path
        self.holder_pid = holder_pid
        holder = f" (held by PID {holder_pid})" if holder_pid else ""
        super().__init__(f"Another automark instance is running: {path}{holder}")


class AutomarkLock:
    """Manages the automark lock file."""

    def __init__(self, path: Path = DEFAULT_LOCK_FILE):
        self.path = Path(path)
        self.lock_fd = None
        self.locked = False

    def acquire(self) -> bool:
        """Acquire the lock without waiting.

        Returns:
            True once the lock is held

        Raises:
            LockError: If another process holds the lock
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Append mode: don't clobber the holder's PID before we own the lock
        self.lock_fd = open(self.path, 'a+')
        try:
            fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            holder_pid = self._get_holder_pid()
            self.lock_fd.close()
            self.lock_fd = None
            raise LockError(self.path, holder_pid)

        # Got the lock - write our PID
        self.lock_fd.seek(0)
        self.lock_fd.truncate(0)
        self.lock_fd.write(str(os.getpid()))
        self.lock_fd.flush()
        self.locked = True
        logger.debug(f"Acquired lock {self.path}")
        return True

    def release(self):
        """Release the lock."""
        if self.lock_fd:
            if self.locked:
                try:
                    fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                except OSError as e:
                    logger.debug(f"Cannot unlock {self.path}: {e}")
            self.lock_fd.close()
            self.lock_fd = None
            self.locked = False
            logger.debug(f"Released lock {self.path}")

    def _get_holder_pid(self) -> Optional[int]:
        """Get PID of current lock holder."""
        try:
            with open(self.path, 'r') as f:
                return int(f.read().strip())
        except (OSError, ValueError):
            return None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
