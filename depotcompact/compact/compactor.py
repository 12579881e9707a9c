"""Compact duplicate resources into a shared destination depot.

For every resource shared among the source depots (and the destination,
and any extra reference depots), the source copy is either moved into the
destination or, if the destination already holds it, deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from depotcompact.compact.lock import DEFAULT_POLL_INTERVAL, LOCK_FILENAME, depot_lock
from depotcompact.compact.relocate import (
    RenameFunc,
    delete_resource,
    move_resource,
    try_atomic_rename,
)
from depotcompact.depot import DepotPath, canonical_depot, resource_path, unique_depots
from depotcompact.shared import shared_resources

log = logging.getLogger(__name__)

MOVE = "move"
DELETE = "delete"


@dataclass(frozen=True)
class CompactionAction:
    """One relocation of a resource out of a source depot."""
    kind: str
    resource: str
    source: Path
    destination: Path

    @property
    def source_path(self) -> Path:
        return resource_path(self.source, self.resource)

    @property
    def destination_path(self) -> Path:
        return resource_path(self.destination, self.resource)

    def describe(self) -> str:
        if self.kind == MOVE:
            return f"move {self.source_path} -> {self.destination_path}"
        return f"delete {self.source_path} (kept in {self.destination})"


def _resolve_depots(
    destination: DepotPath,
    sources: Iterable[DepotPath],
    references: Iterable[DepotPath] | None,
) -> tuple[Path, list[Path], list[str]]:
    """Canonicalize the depot lists and compute the shared resources.

    The destination always joins the reference set; the caller's lists are
    left untouched.
    """
    dest = canonical_depot(destination)
    source_list = unique_depots(sources)
    reference_list = unique_depots(
        [*(source_list if references is None else references), dest]
    )
    shared = shared_resources(source_list, reference_list)
    return dest, source_list, shared


def _next_action(dest: Path, source: Path, resource: str) -> CompactionAction | None:
    if source == dest:
        return None
    if not resource_path(source, resource).is_dir():
        return None
    kind = DELETE if resource_path(dest, resource).is_dir() else MOVE
    return CompactionAction(kind, resource, source, dest)


def plan_compaction(
    destination: DepotPath,
    sources: Iterable[DepotPath],
    references: Iterable[DepotPath] | None = None,
) -> list[CompactionAction]:
    """Return the actions :func:`compact` would perform, without touching anything.

    Sources are visited in the same order as :func:`compact`, so a resource
    moved out of an earlier source is planned as a delete for later ones.
    """
    dest, source_list, shared = _resolve_depots(destination, sources, references)
    planned: set[str] = set()
    actions = []
    for source in source_list:
        for resource in shared:
            action = _next_action(dest, source, resource)
            if action is None:
                continue
            # A resource moved by an earlier source is deleted from later ones
            if action.kind == MOVE and resource in planned:
                action = CompactionAction(DELETE, resource, source, dest)
            if action.kind == MOVE:
                planned.add(resource)
            actions.append(action)
    return actions


def compact(
    destination: DepotPath,
    sources: Iterable[DepotPath],
    references: Iterable[DepotPath] | None = None,
    *,
    lock_timeout: float | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    lock_filename: str = LOCK_FILENAME,
    rename: RenameFunc = try_atomic_rename,
) -> list[CompactionAction]:
    """Centralize resources shared among *sources* into *destination*.

    Parameters
    ----------
    destination:
        Shared depot that receives the canonical copy of each resource.
    sources:
        Depots to compact. Only these lose resources.
    references:
        Depots consulted when deciding what is shared. Defaults to
        *sources*; the destination is always added.
    lock_timeout:
        Seconds to wait for the destination lock; ``None`` waits forever.
    rename:
        Atomic rename capability, see :mod:`depotcompact.compact.relocate`.

    Returns
    -------
    list[CompactionAction]
        Actions performed, in order.

    Raises
    ------
    RelocationError
        On the first resource that cannot be moved or deleted. Resources
        already handled stay compacted; rerunning is safe.
    LockTimeoutError
        If the destination lock is not acquired within *lock_timeout*.
    """
    dest, source_list, shared = _resolve_depots(destination, sources, references)
    log.info(
        "Compacting %d shared resources from %d depots into %s",
        len(shared), len(source_list), dest,
    )

    performed: list[CompactionAction] = []
    with depot_lock(dest, timeout=lock_timeout, poll_interval=poll_interval, filename=lock_filename):
        for source in source_list:
            for resource in shared:
                # Re-checked under the lock; the shared set is only a snapshot
                action = _next_action(dest, source, resource)
                if action is None:
                    continue
                if action.kind == MOVE:
                    action.destination_path.parent.mkdir(parents=True, exist_ok=True)
                    move_resource(action.source_path, action.destination_path, rename=rename)
                else:
                    delete_resource(action.source_path, rename=rename)
                log.info("%s", action.describe())
                performed.append(action)

    log.info("Compaction of %s complete: %d actions", dest, len(performed))
    return performed
