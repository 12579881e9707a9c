"""depotcompact: deduplicate package and artifact directories across depots.

The compaction entry point lives in the subpackage:
``from depotcompact.compact import compact``.
"""

from depotcompact.compact import (
    CompactionAction,
    LockTimeoutError,
    RelocationError,
    plan_compaction,
)
from depotcompact.depot import enumerate_depot_resources
from depotcompact.shared import shared_resources

__all__ = [
    "CompactionAction",
    "LockTimeoutError",
    "RelocationError",
    "enumerate_depot_resources",
    "plan_compaction",
    "shared_resources",
]
