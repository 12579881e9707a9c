"""Compaction subsystem: relocation, locking and orchestration.

Moves resources shared between depots into one destination depot and
deletes the remaining duplicates, holding the destination's advisory lock.
"""

from depotcompact.compact.compactor import (
    CompactionAction,
    compact,
    plan_compaction,
)
from depotcompact.compact.lock import LockTimeoutError, depot_lock
from depotcompact.compact.relocate import (
    RelocationError,
    delete_resource,
    move_resource,
    try_atomic_rename,
)
from depotcompact.compact.sweep import find_orphaned_temp_dirs, sweep_depot

__all__ = [
    "CompactionAction",
    "LockTimeoutError",
    "RelocationError",
    "compact",
    "delete_resource",
    "depot_lock",
    "find_orphaned_temp_dirs",
    "move_resource",
    "plan_compaction",
    "sweep_depot",
    "try_atomic_rename",
]
