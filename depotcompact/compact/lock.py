"""Advisory lock serializing compactions that target the same depot.

The lock is a well-known file inside the depot root, held through
:mod:`filelock`. It only excludes other lock-aware compactions; ordinary
readers and writers of resources are never blocked.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock, Timeout

from depotcompact.depot import DepotPath, canonical_depot

log = logging.getLogger(__name__)

LOCK_FILENAME = "compacting.lock"
DEFAULT_POLL_INTERVAL = 0.1  # seconds


class LockTimeoutError(Exception):
    """Raised when a depot lock is not acquired within the configured timeout."""

    def __init__(self, lock_path: Path, timeout: float) -> None:
        super().__init__(
            f"Timed out after {timeout:g}s waiting for compaction lock {lock_path}"
        )
        self.lock_path = lock_path
        self.timeout = timeout


def lock_path_for(depot: DepotPath, filename: str = LOCK_FILENAME) -> Path:
    return canonical_depot(depot) / filename


@contextmanager
def depot_lock(
    depot: DepotPath,
    timeout: float | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    filename: str = LOCK_FILENAME,
) -> Iterator[Path]:
    """Hold the compaction lock of *depot* for the duration of the block.

    Parameters
    ----------
    depot:
        Depot whose lock to take. Created if missing.
    timeout:
        Seconds to wait for a contended lock. ``None`` waits forever.
    poll_interval:
        Seconds between acquisition attempts while contended.
    filename:
        Lock file name inside the depot root.

    Yields
    ------
    Path
        The lock file path.

    Raises
    ------
    LockTimeoutError
        If *timeout* expires before the lock is acquired.
    OSError
        If the lock file itself cannot be created or opened.
    """
    path = lock_path_for(depot, filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(path), timeout=-1 if timeout is None else timeout)

    started = time.monotonic()
    try:
        lock.acquire(poll_interval=poll_interval)
    except Timeout as exc:
        raise LockTimeoutError(path, timeout) from exc  # type: ignore[arg-type]

    waited = time.monotonic() - started
    if waited >= poll_interval:
        log.info("Acquired %s after waiting %.1fs", path, waited)
    else:
        log.debug("Acquired %s", path)
    try:
        yield path
    finally:
        lock.release()
        log.debug("Released %s", path)
