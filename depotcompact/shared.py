"""Shared-resource discovery across depots.

Compares the resource sets of a *subject* depot list against a *reference*
depot list and reports every resource path found in two different depots.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from depotcompact.depot import DepotPath, enumerate_depot_resources, unique_depots

log = logging.getLogger(__name__)


def shared_resources(
    subject_depots: Iterable[DepotPath],
    reference_depots: Iterable[DepotPath] | None = None,
) -> list[str]:
    """Return the sorted resource paths shared between subject and reference depots.

    A resource is shared when it exists in some subject depot ``d1`` and in
    some reference depot ``d2`` with ``d1 != d2``. Both lists are
    canonicalized and de-duplicated first, so a depot listed twice (or under
    two spellings of the same path) is never compared against itself.

    Parameters
    ----------
    subject_depots:
        Depots whose resources are candidates.
    reference_depots:
        Depots to compare against. Defaults to *subject_depots*.

    Returns
    -------
    list[str]
        Sorted depot-relative resource paths. Empty for a single depot
        compared with itself.
    """
    subjects = unique_depots(subject_depots)
    references = subjects if reference_depots is None else unique_depots(reference_depots)

    # Enumerate each distinct depot exactly once
    resources: dict[Path, set[str]] = {}
    for depot in subjects + references:
        if depot not in resources:
            resources[depot] = set(enumerate_depot_resources(depot))
            log.debug("Enumerated %d resources in %s", len(resources[depot]), depot)

    shared: set[str] = set()
    for d1 in subjects:
        for d2 in references:
            if d1 == d2:
                continue
            shared |= resources[d1] & resources[d2]

    log.info(
        "Found %d shared resources across %d subject / %d reference depots",
        len(shared), len(subjects), len(references),
    )
    return sorted(shared)
