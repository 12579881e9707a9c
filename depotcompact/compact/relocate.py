"""Move and delete resource directories without exposing partial trees.

The only operation that makes a resource appear or disappear at a fixed
path is a single atomic rename. Renames go through a :data:`RenameFunc`
capability so the copy fallback can be exercised on any platform by
injecting a rename that always reports "unsupported".
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

log = logging.getLogger(__name__)

# Prefix of every temporary directory created next to a resource
TEMP_PREFIX = ".depotcompact-"

RenameFunc = Callable[[Path, Path], bool]


class RelocationError(OSError):
    """Raised when a resource cannot be atomically renamed into place."""

    def __init__(self, message: str, target: Path) -> None:
        super().__init__(message)
        self.target = target


def try_atomic_rename(src: Path, dest: Path) -> bool:
    """Rename *src* to *dest* in one filesystem operation.

    Returns False if the filesystem refuses (cross-device, permissions, ...).
    """
    try:
        src.rename(dest)
    except OSError as exc:
        log.debug("Atomic rename %s -> %s unsupported: %s", src, dest, exc)
        return False
    return True


def _make_temp_dir(parent: Path) -> Path:
    return Path(tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=parent))


def move_resource(src: Path, dest: Path, rename: RenameFunc = try_atomic_rename) -> None:
    """Move the resource directory *src* to *dest*.

    Tries a direct atomic rename first. Otherwise copies *src* into a
    temporary directory next to *dest* and renames that into place, so
    *dest* is never observed half-populated. The source copy is then
    removed with :func:`delete_resource`.

    ``dest.parent`` must exist and *dest* must not.

    Raises
    ------
    RelocationError
        If the copy or the final rename into *dest* fails.
    """
    if rename(src, dest):
        log.debug("Renamed %s -> %s", src, dest)
        return

    log.info("Rename unavailable, copying %s -> %s", src, dest)
    temp_dir = _make_temp_dir(dest.parent)
    try:
        try:
            shutil.copytree(src, temp_dir, symlinks=True, dirs_exist_ok=True)
        except OSError as exc:
            raise RelocationError(f"Unable to copy '{src}' to '{dest}'", dest) from exc
        if not rename(temp_dir, dest):
            raise RelocationError(f"Unable to rename to target '{dest}'", dest)
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    delete_resource(src, rename=rename)


def delete_resource(path: Path, rename: RenameFunc = try_atomic_rename) -> None:
    """Delete the resource directory at *path*.

    *path* is first renamed aside within its parent, then the renamed tree
    is removed, so *path* never exists with half of its contents deleted.
    If the renamed tree cannot be fully removed it is left in place under
    its temporary name (see :mod:`depotcompact.compact.sweep`) and a
    warning is logged; *path* itself is already gone.

    Raises
    ------
    RelocationError
        If *path* cannot be renamed aside.
    """
    # Reserve a unique name, then free it for the rename target
    temp_dir = _make_temp_dir(path.parent)
    temp_dir.rmdir()
    try:
        if not rename(path, temp_dir):
            raise RelocationError(f"Unable to rename to target '{temp_dir}'", temp_dir)
    except BaseException:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise
    log.debug("Renamed %s aside to %s", path, temp_dir.name)

    try:
        shutil.rmtree(temp_dir)
    except OSError as exc:
        log.warning("Could not remove %s (renamed aside from %s): %s", temp_dir, path, exc)
