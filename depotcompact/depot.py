"""Depot paths and resource enumeration.

Foundation module used by the resolver and the compactor. A depot is a
directory root; a resource is a directory identified by its depot-relative
path (``packages/<Name>/<Slug>`` or ``artifacts/<Entry>``).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Union

DepotPath = Union[str, os.PathLike]

PACKAGES_DIR = "packages"
ARTIFACTS_DIR = "artifacts"


def canonical_depot(depot: DepotPath) -> Path:
    """Return the canonical absolute path of *depot*.

    Two depot references are the same depot iff their canonical paths
    compare equal.
    """
    return Path(os.path.abspath(os.path.expanduser(os.fspath(depot))))


def unique_depots(depots: Iterable[DepotPath]) -> list[Path]:
    """Canonicalize *depots* and drop duplicates, keeping first-seen order."""
    seen: set[Path] = set()
    result: list[Path] = []
    for depot in depots:
        path = canonical_depot(depot)
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result


def _child_dirs(parent: Path) -> list[str]:
    """Names of the immediate child directories of *parent* (none if absent)."""
    if not parent.is_dir():
        return []
    return sorted(entry.name for entry in parent.iterdir() if entry.is_dir())


def collect_depot_packages(depot: DepotPath) -> list[str]:
    """Depot-relative ``packages/<Name>/<Slug>`` paths."""
    packages_dir = canonical_depot(depot) / PACKAGES_DIR
    packages = []
    for name in _child_dirs(packages_dir):
        for slug in _child_dirs(packages_dir / name):
            packages.append(f"{PACKAGES_DIR}/{name}/{slug}")
    return packages


def collect_depot_artifacts(depot: DepotPath) -> list[str]:
    """Depot-relative ``artifacts/<Entry>`` paths."""
    artifacts_dir = canonical_depot(depot) / ARTIFACTS_DIR
    return [f"{ARTIFACTS_DIR}/{entry}" for entry in _child_dirs(artifacts_dir)]


def enumerate_depot_resources(depot: DepotPath) -> list[str]:
    """Return the sorted depot-relative paths of packages and artifacts in *depot*.

    A depot without ``packages/`` or ``artifacts/`` simply contributes no
    entries of that kind. Non-directory entries are ignored. The result is a
    point-in-time snapshot; concurrent mutation of the depot may or may not
    be reflected.
    """
    return sorted(collect_depot_packages(depot) + collect_depot_artifacts(depot))


def resource_path(depot: DepotPath, resource: str) -> Path:
    """Absolute path of *resource* (a ``/``-separated relative path) under *depot*."""
    return canonical_depot(depot).joinpath(*resource.split("/"))
