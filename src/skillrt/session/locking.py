"""Exclusive advisory lock for a session file, with a bounded wait.

The lock lives in a sibling ``<session-file>.lock`` artifact and is taken with
``fcntl.flock``. The kernel drops a flock when its holder dies, so a crashed
writer never leaves a lock that blocks later writers; the acquisition timeout
bounds how long a live holder can make others wait. The holder unlinks the
artifact before unlocking, so no lock files accumulate, and a waiter that wins
a lock on an already-unlinked artifact detects it and retries.
"""

from __future__ import annotations

import fcntl
import logging
import os
import time
from pathlib import Path
from types import TracebackType

from skillrt.session.config import LOCK_POLL_INTERVAL_SEC, LOCK_SUFFIX, LOCK_TIMEOUT_SEC

logger = logging.getLogger(__name__)


class SessionLockTimeout(TimeoutError):
    """Raised when the session lock could not be acquired within the timeout."""


def lock_path_for(target: Path) -> Path:
    return target.with_name(target.name + LOCK_SUFFIX)


class SessionLock:
    def __init__(
        self,
        target: Path,
        *,
        timeout: float = LOCK_TIMEOUT_SEC,
        poll_interval: float = LOCK_POLL_INTERVAL_SEC,
    ) -> None:
        self.target = target
        self.lock_path = lock_path_for(target)
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._fd: int | None = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Block until the lock is held or the timeout expires.

        Raises FileNotFoundError if the target file does not exist once the lock
        is held, and SessionLockTimeout if the wait exceeds the timeout.
        """
        if self._fd is not None:
            return
        deadline = time.monotonic() + self._timeout
        while True:
            fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                os.close(fd)
                if time.monotonic() >= deadline:
                    raise SessionLockTimeout(
                        f"Timed out after {self._timeout}s waiting for {self.lock_path}"
                    ) from None
                time.sleep(self._poll_interval)
                continue
            except OSError:
                os.close(fd)
                raise

            if not self._is_current(fd):
                # Previous holder unlinked this artifact while we waited on it.
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)
                continue

            self._fd = fd
            break

        if not self.target.exists():
            self.release()
            raise FileNotFoundError(f"Session file disappeared before lock: {self.target}")

    def release(self) -> None:
        fd = self._fd
        if fd is None:
            return
        self._fd = None
        try:
            self.lock_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove lock artifact {self.lock_path}: {e}")
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

    def _is_current(self, fd: int) -> bool:
        held = os.fstat(fd)
        if held.st_nlink == 0:
            return False
        try:
            on_disk = os.stat(self.lock_path)
        except FileNotFoundError:
            return False
        return (held.st_dev, held.st_ino) == (on_disk.st_dev, on_disk.st_ino)

    def __enter__(self) -> SessionLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
