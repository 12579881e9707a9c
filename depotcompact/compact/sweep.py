"""Find and remove temporary directories left by interrupted relocations."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from depotcompact.compact.lock import DEFAULT_POLL_INTERVAL, LOCK_FILENAME, depot_lock
from depotcompact.compact.relocate import TEMP_PREFIX
from depotcompact.depot import ARTIFACTS_DIR, PACKAGES_DIR, DepotPath, canonical_depot

log = logging.getLogger(__name__)


def _temp_children(parent: Path) -> list[Path]:
    if not parent.is_dir():
        return []
    return [
        entry for entry in parent.iterdir()
        if entry.is_dir() and entry.name.startswith(TEMP_PREFIX)
    ]


def find_orphaned_temp_dirs(depot: DepotPath) -> list[Path]:
    """Return temporary relocation directories present in *depot*.

    Looks wherever a move or delete may create one: directly under
    ``packages/``, under each ``packages/<Name>/`` and under ``artifacts/``.
    """
    root = canonical_depot(depot)
    packages_dir = root / PACKAGES_DIR
    found = _temp_children(packages_dir) + _temp_children(root / ARTIFACTS_DIR)
    if packages_dir.is_dir():
        for name_dir in packages_dir.iterdir():
            if name_dir.is_dir() and not name_dir.name.startswith(TEMP_PREFIX):
                found.extend(_temp_children(name_dir))
    return sorted(found)


def sweep_depot(
    depot: DepotPath,
    lock_timeout: float | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    lock_filename: str = LOCK_FILENAME,
) -> list[Path]:
    """Remove orphaned temporary directories from *depot* under its lock.

    Holding the compaction lock guarantees no relocation into this depot is
    in flight. Returns the removed paths.
    """
    with depot_lock(depot, timeout=lock_timeout, poll_interval=poll_interval, filename=lock_filename):
        orphans = find_orphaned_temp_dirs(depot)
        for orphan in orphans:
            log.info("Removing orphaned temporary directory %s", orphan)
            shutil.rmtree(orphan)
    return orphans
