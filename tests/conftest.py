"""Shared fixtures for coverage planning tests."""

from __future__ import annotations

import pytest

from tide_coverage.grid_discretizer import TileGeometry


@pytest.fixture
def geometry() -> TileGeometry:
    """0.3 m tiles with the grid origin at the world origin."""
    return TileGeometry(node_size=6, tile_size=0.3, origin_x=0.0, origin_y=0.0)
