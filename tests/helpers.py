"""Test helpers: building on-disk depots and inspecting their contents."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from depotcompact.compact.lock import LOCK_FILENAME

# Package name -> slug, as laid out under packages/<Name>/<Slug>
ZSTD = ("Zstd_jll", "3hQpA")
NETTLE = ("Nettle", "fYEs1")
NETTLE_JLL = ("Nettle_jll", "K2mxq")
EXAMPLE = ("Example", "7Wv1e")
SCRATCH = ("Scratch", "ICI9M")

# Artifacts pulled in alongside the packages above
ZSTD_ART = "a1b2c3zstd"
NETTLE_ART = "d4e5f6nettle"


def make_depot(
    root: Path,
    packages: Iterable[tuple[str, str]] = (),
    artifacts: Iterable[str] = (),
) -> Path:
    """Create a depot at *root* holding the given packages and artifacts."""
    root.mkdir(parents=True, exist_ok=True)
    for name, slug in packages:
        pkg = root / "packages" / name / slug
        (pkg / "src").mkdir(parents=True, exist_ok=True)
        (pkg / "src" / f"{name}.jl").write_text(f"module {name}\nend\n")
        (pkg / "Project.toml").write_text(f'name = "{name}"\n')
    for entry in artifacts:
        art = root / "artifacts" / entry
        (art / "lib").mkdir(parents=True, exist_ok=True)
        (art / "lib" / "lib.so").write_bytes(entry.encode())
    return root


def snapshot(root: Path) -> dict[str, bytes | None]:
    """Map every path under *root* to its file contents (None for dirs).

    The compaction lock file is left out; its presence carries no state.
    """
    result: dict[str, bytes | None] = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        if rel == LOCK_FILENAME:
            continue
        result[rel] = None if path.is_dir() else path.read_bytes()
    return result


def pkg(name_slug: tuple[str, str]) -> str:
    return f"packages/{name_slug[0]}/{name_slug[1]}"


def refuse_cross_dir_rename(src: Path, dest: Path) -> bool:
    """Rename capability that behaves like a cross-device boundary.

    Renames within one directory succeed; any other rename is unsupported.
    """
    if src.parent != dest.parent:
        return False
    src.rename(dest)
    return True


# A temporary directory as left behind by an interrupted relocation
TEMP_DIR_NAME = ".depotcompact-k3j2_1x"
