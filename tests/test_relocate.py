"""Tests for depotcompact.compact.relocate: atomic move and delete."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest
from helpers import ZSTD, make_depot, pkg, refuse_cross_dir_rename, snapshot

from depotcompact.compact.relocate import (
    TEMP_PREFIX,
    RelocationError,
    delete_resource,
    move_resource,
    try_atomic_rename,
)


def _never_rename(src: Path, dest: Path) -> bool:
    return False


@pytest.fixture
def resource(tmp_path: Path) -> Path:
    depot = make_depot(tmp_path / "src_depot", [ZSTD])
    return depot / pkg(ZSTD)


@pytest.fixture
def dest_parent(tmp_path: Path) -> Path:
    parent = tmp_path / "dest_depot" / "packages" / ZSTD[0]
    parent.mkdir(parents=True)
    return parent


def _temp_dirs(parent: Path) -> list[Path]:
    return [p for p in parent.iterdir() if p.name.startswith(TEMP_PREFIX)]


class TestTryAtomicRename:
    def test_success(self, tmp_path: Path) -> None:
        (tmp_path / "a").mkdir()
        assert try_atomic_rename(tmp_path / "a", tmp_path / "b") is True
        assert (tmp_path / "b").is_dir()

    def test_missing_source_is_unsupported(self, tmp_path: Path) -> None:
        assert try_atomic_rename(tmp_path / "a", tmp_path / "b") is False


class TestMoveResource:
    def test_fast_path_rename(self, resource: Path, dest_parent: Path) -> None:
        before = snapshot(resource)
        dest = dest_parent / ZSTD[1]
        move_resource(resource, dest)
        assert not resource.exists()
        assert snapshot(dest) == before

    def test_copy_fallback(self, resource: Path, dest_parent: Path) -> None:
        before = snapshot(resource)
        dest = dest_parent / ZSTD[1]
        move_resource(resource, dest, rename=refuse_cross_dir_rename)
        assert snapshot(dest) == before
        assert not resource.exists()
        assert _temp_dirs(dest_parent) == []
        assert _temp_dirs(resource.parent) == []

    def test_fallback_uses_temp_dir_next_to_dest(self, resource: Path, dest_parent: Path) -> None:
        calls: list[tuple[Path, Path]] = []

        def recording(src: Path, dest: Path) -> bool:
            calls.append((src, dest))
            return refuse_cross_dir_rename(src, dest)

        dest = dest_parent / ZSTD[1]
        move_resource(resource, dest, rename=recording)
        assert calls[0] == (resource, dest)
        temp_src, final = calls[1]
        assert final == dest
        assert temp_src.parent == dest_parent
        assert temp_src.name.startswith(TEMP_PREFIX)

    def test_fallback_failure_raises_and_cleans_up(self, resource: Path, dest_parent: Path) -> None:
        dest = dest_parent / ZSTD[1]
        with pytest.raises(RelocationError, match="Unable to rename") as excinfo:
            move_resource(resource, dest, rename=_never_rename)
        assert excinfo.value.target == dest
        assert not dest.exists()
        assert _temp_dirs(dest_parent) == []
        # Source is left intact when the move fails
        assert resource.is_dir()

    def test_copy_failure_raises_relocation_error(self, resource: Path, dest_parent: Path) -> None:
        dest = dest_parent / ZSTD[1]
        copy_error = shutil.Error([(str(resource), str(dest), "copy failed")])
        with patch("depotcompact.compact.relocate.shutil.copytree", side_effect=copy_error):
            with pytest.raises(RelocationError, match="Unable to copy") as excinfo:
                move_resource(resource, dest, rename=_never_rename)
        assert excinfo.value.target == dest
        assert excinfo.value.__cause__ is copy_error
        assert not dest.exists()
        assert _temp_dirs(dest_parent) == []
        assert resource.is_dir()

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")
    def test_uncopyable_entry_raises_relocation_error(self, resource: Path, dest_parent: Path) -> None:
        os.mkfifo(resource / "pipe")
        dest = dest_parent / ZSTD[1]
        with pytest.raises(RelocationError):
            move_resource(resource, dest, rename=refuse_cross_dir_rename)
        assert not dest.exists()
        assert _temp_dirs(dest_parent) == []
        assert (resource / "pipe").exists()

    def test_preserves_symlinks_in_fallback(self, resource: Path, dest_parent: Path) -> None:
        (resource / "link").symlink_to("Project.toml")
        dest = dest_parent / ZSTD[1]
        move_resource(resource, dest, rename=refuse_cross_dir_rename)
        assert (dest / "link").is_symlink()
        assert (dest / "link").read_text() == (dest / "Project.toml").read_text()


class TestDeleteResource:
    def test_removes_tree(self, resource: Path) -> None:
        delete_resource(resource)
        assert not resource.exists()
        assert _temp_dirs(resource.parent) == []

    def test_renames_aside_within_parent(self, resource: Path) -> None:
        calls: list[tuple[Path, Path]] = []

        def recording(src: Path, dest: Path) -> bool:
            calls.append((src, dest))
            return try_atomic_rename(src, dest)

        delete_resource(resource, rename=recording)
        assert len(calls) == 1
        src, aside = calls[0]
        assert src == resource
        assert aside.parent == resource.parent
        assert aside.name.startswith(TEMP_PREFIX)
        assert not aside.exists()

    def test_rename_failure_raises(self, resource: Path) -> None:
        with pytest.raises(RelocationError):
            delete_resource(resource, rename=_never_rename)
        assert resource.is_dir()
        assert _temp_dirs(resource.parent) == []

    def test_siblings_untouched(self, tmp_path: Path) -> None:
        depot = make_depot(tmp_path / "d", [ZSTD, (ZSTD[0], "other")])
        delete_resource(depot / pkg(ZSTD))
        assert (depot / "packages" / ZSTD[0] / "other").is_dir()

    def test_cleanup_failure_is_logged(self, resource: Path, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="depotcompact.compact.relocate"):
            with patch(
                "depotcompact.compact.relocate.shutil.rmtree",
                side_effect=OSError("Directory not empty"),
            ):
                delete_resource(resource)
        assert not resource.exists()
        leftovers = _temp_dirs(resource.parent)
        assert len(leftovers) == 1
        assert "Could not remove" in caplog.text
        assert leftovers[0].name in caplog.text
