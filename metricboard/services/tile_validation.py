"""Layout checks applied to dashboard tiles before they are persisted."""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Sequence

from metricboard.domain import TileConfig
from metricboard.errors import (
    DuplicateTileId,
    EmptyDashboard,
    InvalidTileGeometry,
    TileMissingMetric,
    TileOverlap,
    ValidationError,
)

logger = logging.getLogger(__name__)


def tiles_overlap(first: TileConfig, second: TileConfig) -> bool:
    """Return whether two tiles' half-open rectangles ``[x, x+w) x [y, y+h)`` intersect.

    Tiles that only share an edge do not overlap.
    """

    return (
        first.x < second.x + second.w
        and first.x + first.w > second.x
        and first.y < second.y + second.h
        and first.y + first.h > second.y
    )


def _check_tiles(tiles: Sequence[TileConfig]) -> None:
    seen: set[str] = set()
    for tile in tiles:
        if tile.id in seen:
            raise DuplicateTileId(tile.id)
        seen.add(tile.id)
        if tile.x < 0 or tile.y < 0 or tile.w <= 0 or tile.h <= 0:
            raise InvalidTileGeometry(tile.id)
        if not tile.metric_uuids:
            raise TileMissingMetric(tile.id)


def _check_overlaps(tiles: Sequence[TileConfig]) -> None:
    # Exhaustive pairwise scan; dashboards hold a handful of tiles.
    for first, second in combinations(tiles, 2):
        if tiles_overlap(first, second):
            raise TileOverlap(first.id, second.id)


def validate_tiles(tiles: Sequence[TileConfig]) -> None:
    """Validate a dashboard layout, raising the first rule violation found.

    The layout must be non-empty. Each tile, in list order, is then checked
    for a repeated id, its geometry bounds and its metric references; the
    pairwise overlap scan runs only once every tile passes.
    """

    try:
        if not tiles:
            raise EmptyDashboard()
        _check_tiles(tiles)
        _check_overlaps(tiles)
    except ValidationError as exc:
        logger.warning("Rejected dashboard layout: %s", exc.message)
        raise


__all__ = ["tiles_overlap", "validate_tiles"]
