"""Exclusive scope over a named file resource, shared across processes.

Two backends implement the same ``acquire``/``release`` pair:

- ``FlockLock`` takes an advisory ``fcntl.flock`` on ``<resource>.lock``.
- ``DirectoryLock`` spins on ``os.mkdir("<resource>.lock.dir")``, which is
  atomic on every platform, for systems without ``fcntl``. A lock directory
  outliving a few full retry rounds is treated as abandoned and removed.

Both retry a bounded number of times and raise ``LockTimeout`` when the
resource stays busy. ``exclusive()`` picks the backend once per call based on
platform capability and guarantees release on every exit path.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Protocol

try:
    import fcntl
except ImportError:  # Windows
    fcntl = None  # type: ignore[assignment]

from shellgen.errors import LockTimeout

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 30
DEFAULT_DELAY = 0.1
STALE_FACTOR = 3
MIN_STALE_AGE = 1.0


class ResourceLock(Protocol):
    def acquire(self) -> None: ...

    def release(self) -> None: ...


class FlockLock:
    """Native advisory lock on a sidecar lock file."""

    def __init__(self, resource: Path, attempts: int = DEFAULT_ATTEMPTS, delay: float = DEFAULT_DELAY) -> None:
        self.path = resource.with_name(resource.name + ".lock")
        self.attempts = attempts
        self.delay = delay
        self._handle: IO[str] | None = None

    def acquire(self) -> None:
        handle = open(self.path, "a")
        for attempt in range(1, self.attempts + 1):
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                logger.debug("Lock busy: %s (attempt %d)", self.path, attempt)
                time.sleep(self.delay)
                continue
            except BaseException:
                handle.close()
                raise
            self._handle = handle
            return
        handle.close()
        raise LockTimeout(str(self.path), self.attempts)

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None


class DirectoryLock:
    """Spin-lock on atomic directory creation.

    A lock directory older than ``stale_after`` seconds was left by a holder
    that died, and is removed so the next attempt can take it.
    """

    def __init__(
        self,
        resource: Path,
        attempts: int = DEFAULT_ATTEMPTS,
        delay: float = DEFAULT_DELAY,
        stale_after: float | None = None,
    ) -> None:
        self.path = resource.with_name(resource.name + ".lock.dir")
        self.attempts = attempts
        self.delay = delay
        if stale_after is None:
            stale_after = max(attempts * delay * STALE_FACTOR, MIN_STALE_AGE)
        self.stale_after = stale_after
        self._held = False

    def acquire(self) -> None:
        for attempt in range(1, self.attempts + 1):
            try:
                os.mkdir(self.path)
            except FileExistsError:
                if self._break_stale():
                    continue
                logger.debug("Lock busy: %s (attempt %d)", self.path, attempt)
                time.sleep(self.delay)
                continue
            self._held = True
            return
        raise LockTimeout(str(self.path), self.attempts)

    def _break_stale(self) -> bool:
        try:
            age = time.time() - os.stat(self.path).st_mtime
        except FileNotFoundError:
            return True
        if age < self.stale_after:
            return False
        logger.warning("Removing stale lock directory %s (%.1fs old)", self.path, age)
        try:
            os.rmdir(self.path)
        except FileNotFoundError:
            pass
        return True

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        try:
            os.rmdir(self.path)
        except FileNotFoundError:
            logger.warning("Lock directory vanished before release: %s", self.path)


def native_locking_available() -> bool:
    return fcntl is not None


def make_lock(resource: Path, attempts: int = DEFAULT_ATTEMPTS, delay: float = DEFAULT_DELAY) -> ResourceLock:
    if native_locking_available():
        return FlockLock(resource, attempts, delay)
    return DirectoryLock(resource, attempts, delay)


@contextmanager
def exclusive(
    resource: Path,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_DELAY,
    lock: ResourceLock | None = None,
) -> Iterator[None]:
    """Hold an exclusive lock over ``resource`` for the duration of the block."""
    if lock is None:
        lock = make_lock(resource, attempts, delay)
    lock.acquire()
    try:
        yield
    finally:
        lock.release()
