"""Kensyaku (dipstick gauge) <-> capacity lookups against per-tank calibration tables."""

# tank_id -> [(kensyaku, capacity), ...]
CapacityCurves = dict[str, list[tuple[float, float]]]


def capacity_from_gauge(curves: CapacityCurves, tank_id: str, gauge: float) -> float | None:
    """Return the calibrated capacity at exactly *gauge*, or None.

    No interpolation: a reading between two calibration points has no answer.
    """
    for kensyaku, capacity in curves.get(tank_id) or []:
        if kensyaku == gauge:
            return capacity
    return None


def gauge_from_capacity(curves: CapacityCurves, tank_id: str, target: float) -> float | None:
    """Return the kensyaku whose capacity is closest to *target*.

    Points are scanned in increasing kensyaku order. On equal distance the
    earlier point is kept, and the scan stops at the first point that covers
    the target once the best match so far falls short of it, even if a later
    point would be closer.
    """
    points = sorted(curves.get(tank_id) or [])
    if not points:
        return None

    best_gauge, best_capacity = points[0]
    min_diff = abs(best_capacity - target)

    for kensyaku, capacity in points:
        diff = abs(capacity - target)
        if diff < min_diff:
            min_diff = diff
            best_gauge, best_capacity = kensyaku, capacity
        if capacity >= target and best_capacity < target:
            break

    return best_gauge


def max_capacity(points: list[tuple[float, float]]) -> float:
    """Capacity at kensyaku 0 (a full tank), or 0 when not calibrated."""
    for kensyaku, capacity in points:
        if kensyaku == 0:
            return capacity
    return 0
