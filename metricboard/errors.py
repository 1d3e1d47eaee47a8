"""Domain exceptions and their HTTP translation."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from metricboard.core.telemetry import record_rejection

logger = logging.getLogger(__name__)


class MetricboardError(Exception):
    """Base class for errors raised by the tracker core."""

    code = "error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(MetricboardError):
    code = "not_found"

    def __init__(self, entity: str, uuid: str) -> None:
        super().__init__(f"{entity.capitalize()} with uuid {uuid} not found", entity=entity, uuid=uuid)
        self.entity = entity
        self.uuid = uuid


class ForbiddenError(MetricboardError):
    """Raised by the HTTP layer when an ownership or role check fails."""

    code = "forbidden"


class ValidationError(MetricboardError, ValueError):
    code = "validation_error"


class EmptyDashboard(ValidationError):
    code = "empty_dashboard"

    def __init__(self) -> None:
        super().__init__("Dashboard must have at least one tile")


class DuplicateTileId(ValidationError):
    code = "duplicate_tile_id"

    def __init__(self, tile_id: str) -> None:
        super().__init__(f"Duplicate tile ID: {tile_id}", tile_id=tile_id)
        self.tile_id = tile_id


class InvalidTileGeometry(ValidationError):
    code = "invalid_tile_geometry"

    def __init__(self, tile_id: str) -> None:
        super().__init__(f"Invalid tile dimensions for tile {tile_id}", tile_id=tile_id)
        self.tile_id = tile_id


class TileMissingMetric(ValidationError):
    code = "tile_missing_metric"

    def __init__(self, tile_id: str) -> None:
        super().__init__(f"Tile {tile_id} must reference at least one metric", tile_id=tile_id)
        self.tile_id = tile_id


class TileOverlap(ValidationError):
    code = "tile_overlap"

    def __init__(self, first_id: str, second_id: str) -> None:
        super().__init__(
            f"Tiles {first_id} and {second_id} overlap. Please adjust positions.",
            tile_ids=[first_id, second_id],
        )
        self.tile_ids = (first_id, second_id)


class EmptyTargets(ValidationError):
    code = "empty_targets"

    def __init__(self) -> None:
        super().__init__("At least one target is required")


class TargetsOutOfOrder(ValidationError):
    code = "targets_out_of_order"

    def __init__(self, index: int) -> None:
        super().__init__(
            f"Targets with dates must be in chronological order (target {index} is not after its predecessor)",
            index=index,
        )
        self.index = index


class InvalidMetricValue(ValidationError):
    code = "invalid_metric_value"

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Metric value {index} rejected: {reason}", index=index, reason=reason)
        self.index = index
        self.reason = reason


class UnknownMetricReference(ValidationError):
    code = "unknown_metric"

    def __init__(self, metric_uuid: str) -> None:
        super().__init__(f"Metric with uuid {metric_uuid} does not exist", metric_uuid=metric_uuid)
        self.metric_uuid = metric_uuid


def _error_payload(code: str, message: str, details: object) -> dict[str, Any]:
    return {"code": code, "message": message, "details": details}


_STATUS_BY_TYPE: tuple[tuple[type[MetricboardError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


def status_for(exc: MetricboardError) -> int:
    for exc_type, status_code in _STATUS_BY_TYPE:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MetricboardError)
    async def metricboard_error_handler(request: Request, exc: MetricboardError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
        else:
            record_rejection(exc.code, status_code)
        return JSONResponse(status_code=status_code, content=_error_payload(exc.code, exc.message, exc.details))


__all__ = [
    "MetricboardError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "EmptyDashboard",
    "DuplicateTileId",
    "InvalidTileGeometry",
    "TileMissingMetric",
    "TileOverlap",
    "EmptyTargets",
    "TargetsOutOfOrder",
    "InvalidMetricValue",
    "UnknownMetricReference",
    "register_error_handlers",
    "status_for",
]
