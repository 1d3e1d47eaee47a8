"""KPI target resolution and threshold evaluation.

All functions here are pure: they take a KPI (or its targets) and return a
result without touching any store.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Sequence

from metricboard.domain import Kpi, KpiStatus, KpiTarget, ensure_utc
from metricboard.errors import EmptyTargets, TargetsOutOfOrder

logger = logging.getLogger(__name__)


def resolve_current_target(kpi: Kpi, as_of: datetime | date | str) -> float | None:
    """Return the target value that applies on ``as_of``.

    Dated targets win over undated ones: the earliest target dated on or after
    ``as_of`` is returned, falling back to the latest dated target once every
    date has passed. Without dated targets the first target is a static goal.
    """

    if not kpi.targets:
        return None

    dated = sorted((target for target in kpi.targets if target.date is not None), key=lambda t: t.date)
    if dated:
        moment = ensure_utc(as_of)
        for target in dated:
            if target.date >= moment:
                return target.value
        return dated[-1].value

    return kpi.targets[0].value


def evaluate_status(kpi: Kpi, current_value: float) -> KpiStatus:
    """Classify a metric value against the KPI's lower-bound thresholds."""

    thresholds = kpi.thresholds
    if thresholds is None:
        return KpiStatus.ON_TRACK
    if thresholds.critical is not None and current_value < thresholds.critical:
        return KpiStatus.CRITICAL
    if thresholds.warning is not None and current_value < thresholds.warning:
        return KpiStatus.WARNING
    return KpiStatus.ON_TRACK


def validate_targets(targets: Sequence[KpiTarget]) -> None:
    """Require at least one target and strictly increasing dates among dated targets."""

    if not targets:
        logger.warning("Rejected KPI without targets")
        raise EmptyTargets()

    previous: datetime | None = None
    for index, target in enumerate(targets):
        if target.date is None:
            continue
        if previous is not None and target.date <= previous:
            logger.warning("Rejected KPI targets: target %d is out of chronological order", index)
            raise TargetsOutOfOrder(index)
        previous = target.date


__all__ = ["evaluate_status", "resolve_current_target", "validate_targets"]
