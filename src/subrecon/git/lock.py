"""Repository-scoped advisory lock.

Only one subrecon process may touch a repository's submodule state at a
time. The lock is a file inside the .git directory: its existence means
"taken", and the holder additionally keeps an exclusive fcntl lock on it.
Waiting is unbounded; a lock file left behind by a crashed process has to
be removed by hand, which is why the waiting message names it.
"""

from __future__ import annotations

import fcntl
import logging
import os
import time
from pathlib import Path
from typing import Callable

from subrecon.errors import LockFailedError

logger = logging.getLogger(__name__)


class RepoLock:
    """Scoped lock on one repository.

    Example:
        >>> with context.lock("subrecon.lock"):
        ...     status = read_status(context)
    """

    def __init__(
        self,
        path: Path | str,
        poll_interval: float = 1.0,
        notify: Callable[[str], None] | None = None,
    ):
        self.path = Path(path)
        self.poll_interval = poll_interval
        self.notify = notify
        self._fd: int | None = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Block until the lock file can be created and locked.

        Raises:
            LockFailedError: If the lock file cannot be created or locked.
        """
        if self.path.exists():
            message = (
                "Waiting on file lock. If you are sure no other subrecon processes "
                f"are running, you can remove the lock file `{self.path}`"
            )
            if self.notify is not None:
                self.notify(message)
            logger.warning(message)
        while True:
            try:
                fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_RDWR)
                break
            except FileExistsError:
                logger.debug("Waiting for lock file...")
                time.sleep(self.poll_interval)
            except OSError as e:
                raise LockFailedError(str(self.path), str(e)) from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            os.write(fd, f"{os.getpid()}\n".encode())
        except OSError as e:
            os.close(fd)
            self._remove_file()
            raise LockFailedError(str(self.path), str(e)) from e
        self._fd = fd
        logger.debug("Acquired lock file `%s`", self.path)

    def release(self) -> None:
        """Unlock and delete the lock file. Safe to call when not held."""
        if self._fd is None:
            return
        logger.debug("Releasing lock file `%s`", self.path)
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        except OSError:
            logger.debug("Failed to unlock file `%s`", self.path)
        finally:
            os.close(self._fd)
            self._fd = None
        self._remove_file()

    def _remove_file(self) -> None:
        try:
            self.path.unlink()
        except OSError:
            logger.debug("Failed to remove file `%s`", self.path)

    def __enter__(self) -> "RepoLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False
