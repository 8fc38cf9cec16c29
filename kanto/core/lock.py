"""Per-server deployment locking.

Two deployments against the same server race on the rendered environment
file, so ``kanto deploy`` holds an exclusive lock for the whole run.
"""
import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path

from kanto.core.errors import ConflictError
from kanto.core.logger import get_logger

logger = get_logger(__name__)


class LockError(ConflictError):
    """Raised when unable to acquire lock."""


class DeployLock:
    """File-based lock preventing concurrent deployments to one server."""

    def __init__(self, lock_file: Path, timeout: int = 0):
        """Initialize lock.

        Args:
            lock_file: Path to lock file (usually docker/env/<server>/.deploy.lock)
            timeout: Seconds to wait for lock (0 = fail immediately)
        """
        self.lock_file = Path(lock_file)
        self.timeout = timeout
        self.lock_fd = None

    def acquire(self) -> bool:
        """Acquire the lock.

        Returns:
            True if lock acquired successfully

        Raises:
            LockError: If unable to acquire lock
        """
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)

        # Append mode keeps the holder's PID readable until we own the lock
        self.lock_fd = open(self.lock_file, 'a+')

        start_time = time.time()
        while True:
            try:
                fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

                self.lock_fd.seek(0)
                self.lock_fd.truncate()
                self.lock_fd.write(f"{os.getpid()}\n")
                self.lock_fd.write(f"{time.strftime('%Y-%m-%d %H:%M:%S')}\n")
                self.lock_fd.flush()

                logger.debug(f"Acquired lock: {self.lock_file}")
                return True

            except OSError:
                if self.timeout == 0 or time.time() - start_time >= self.timeout:
                    lock_info = self._read_lock_info()
                    self.lock_fd.close()
                    self.lock_fd = None
                    if self.timeout == 0:
                        message = (
                            f"Another deployment is in progress.\n"
                            f"Lock held by PID {lock_info['pid']} since {lock_info['time']}"
                        )
                    else:
                        message = (
                            f"Timeout waiting for lock after {self.timeout}s.\n"
                            f"Lock held by PID {lock_info['pid']} since {lock_info['time']}"
                        )
                    raise LockError(
                        message,
                        remediation=(
                            f"Wait for the other deployment to finish, "
                            f"or remove {self.lock_file} if stale."
                        ),
                    )

                time.sleep(0.5)

    def release(self):
        """Release the lock."""
        if self.lock_fd is None:
            return

        try:
            fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_UN)
            self.lock_fd.close()
            logger.debug(f"Released lock: {self.lock_file}")
        finally:
            self.lock_fd = None

        self.lock_file.unlink(missing_ok=True)

    def _read_lock_info(self) -> dict:
        """Read info from lock file about who holds it."""
        try:
            lines = self.lock_file.read_text().splitlines()
        except OSError:
            lines = []

        if len(lines) >= 2:
            return {'pid': lines[0].strip(), 'time': lines[1].strip()}
        return {'pid': 'unknown', 'time': 'unknown'}

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


@contextmanager
def deploy_lock(lock_file: Path, timeout: int = 0):
    """Context manager for per-server deployment locking.

    Usage:
        with deploy_lock(config.lock_file("lugia")):
            ...

    Raises:
        LockError: If unable to acquire lock
    """
    lock = DeployLock(lock_file=lock_file, timeout=timeout)
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()

