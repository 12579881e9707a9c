"""Shared fixtures: on-disk depots with package and artifact directories."""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers import EXAMPLE, NETTLE, NETTLE_ART, NETTLE_JLL, SCRATCH, ZSTD, ZSTD_ART, make_depot


@pytest.fixture
def depots(tmp_path: Path) -> list[Path]:
    """Five depots; Nettle depends on Nettle_jll, depot5 is empty."""
    return [
        make_depot(tmp_path / "depot1", [ZSTD, NETTLE, NETTLE_JLL], [ZSTD_ART, NETTLE_ART]),
        make_depot(tmp_path / "depot2", [ZSTD, EXAMPLE], [ZSTD_ART]),
        make_depot(tmp_path / "depot3", [EXAMPLE, NETTLE_JLL], [NETTLE_ART]),
        make_depot(tmp_path / "depot4", [SCRATCH]),
        make_depot(tmp_path / "depot5"),
    ]
