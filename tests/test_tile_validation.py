from __future__ import annotations

import pytest

from metricboard.domain import TileConfig, TileType
from metricboard.errors import (
    DuplicateTileId,
    EmptyDashboard,
    InvalidTileGeometry,
    TileMissingMetric,
    TileOverlap,
    ValidationError,
)
from metricboard.services.tile_validation import tiles_overlap, validate_tiles


def tile(tile_id: str, x: int, y: int, w: int = 2, h: int = 2, metrics: list[str] | None = None) -> TileConfig:
    return TileConfig(
        id=tile_id,
        x=x,
        y=y,
        w=w,
        h=h,
        type=TileType.SINGLE_METRIC,
        metric_uuids=["m-1"] if metrics is None else metrics,
    )


def test_valid_layout_passes():
    validate_tiles([tile("a", 0, 0), tile("b", 2, 0), tile("c", 0, 2, w=4)])


def test_edge_sharing_tiles_do_not_overlap():
    left = tile("left", 0, 0, w=3, h=3)
    right = tile("right", 3, 0, w=3, h=3)
    below = tile("below", 0, 3, w=3, h=3)
    assert not tiles_overlap(left, right)
    assert not tiles_overlap(left, below)
    validate_tiles([left, right, below])


def test_overlap_is_symmetric():
    first = tile("a", 0, 0, w=3, h=3)
    second = tile("b", 2, 2, w=3, h=3)
    assert tiles_overlap(first, second)
    assert tiles_overlap(second, first)


def test_contained_tile_overlaps():
    outer = tile("outer", 0, 0, w=6, h=6)
    inner = tile("inner", 2, 2, w=1, h=1)
    assert tiles_overlap(outer, inner)
    assert tiles_overlap(inner, outer)


def test_empty_layout_rejected():
    with pytest.raises(EmptyDashboard):
        validate_tiles([])


def test_duplicate_tile_id_reported():
    with pytest.raises(DuplicateTileId) as excinfo:
        validate_tiles([tile("a", 0, 0), tile("b", 4, 0), tile("a", 8, 0)])
    assert excinfo.value.tile_id == "a"
    assert excinfo.value.details == {"tile_id": "a"}


@pytest.mark.parametrize(
    "bad",
    [
        tile("bad", -1, 0),
        tile("bad", 0, -1),
        tile("bad", 0, 0, w=0),
        tile("bad", 0, 0, h=0),
        tile("bad", 0, 0, w=-2),
    ],
)
def test_invalid_geometry_rejected(bad: TileConfig):
    with pytest.raises(InvalidTileGeometry) as excinfo:
        validate_tiles([tile("ok", 10, 10), bad])
    assert excinfo.value.tile_id == "bad"


def test_tile_without_metrics_rejected():
    with pytest.raises(TileMissingMetric) as excinfo:
        validate_tiles([tile("a", 0, 0), tile("empty", 4, 0, metrics=[])])
    assert excinfo.value.tile_id == "empty"


def test_overlap_names_both_tiles():
    with pytest.raises(TileOverlap) as excinfo:
        validate_tiles([tile("a", 0, 0, w=4, h=4), tile("b", 6, 0), tile("c", 3, 3)])
    assert excinfo.value.tile_ids == ("a", "c")
    assert "a" in excinfo.value.message and "c" in excinfo.value.message


def test_duplicate_id_checked_before_overlap():
    # Same id and same position: the id rule fires first.
    with pytest.raises(DuplicateTileId):
        validate_tiles([tile("a", 0, 0), tile("a", 0, 0)])


def test_geometry_checked_before_missing_metrics():
    with pytest.raises(InvalidTileGeometry):
        validate_tiles([tile("a", 0, 0, w=0, metrics=[])])


def test_validation_errors_are_value_errors():
    with pytest.raises(ValueError):
        validate_tiles([])
    assert issubclass(TileOverlap, ValidationError)


def test_tiles_checked_one_at_a_time_in_list_order():
    # The first tile's missing metric is reported before a later tile's geometry.
    with pytest.raises(TileMissingMetric) as excinfo:
        validate_tiles([tile("a", 0, 0, metrics=[]), tile("b", -1, 4)])
    assert excinfo.value.tile_id == "a"

    with pytest.raises(InvalidTileGeometry) as excinfo:
        validate_tiles([tile("a", 0, 0, w=0), tile("a", 4, 0)])
    assert excinfo.value.tile_id == "a"
