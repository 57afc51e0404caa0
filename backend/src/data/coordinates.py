"""
Pick the most plausible position for a restaurant whose coordinate columns may be swapped.

Some stored rows hold longitude in the "latitude" column, some only carry the
alternately named Latitud/Longitud pair. Every raw pair is tried in both
orientations; with a reference point the closest in-range orientation wins.
"""
import math
from typing import Any

from src.data.geo import UNUSABLE, GeoPoint, is_usable, is_valid_latitude, is_valid_longitude
from src.data.restaurants_repo import RestaurantCandidate

# Added to a candidate's score for each axis outside WGS84 range
OUT_OF_RANGE_PENALTY = 1000.0


class CoordinateMissing(LookupError):
    """A candidate has no parseable position."""


def to_number(value: Any) -> float | None:
    """Finite float from a number or numeric string; None otherwise."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        # OverflowError: ints too large for a float
        return None
    return f if math.isfinite(f) else None


def coordinate_candidates(candidate: RestaurantCandidate) -> list[GeoPoint]:
    """Each parseable raw pair as stored, followed by its swapped orientation, in discovery order."""
    points: list[GeoPoint] = []
    for pair in candidate.coordinates:
        lat = to_number(pair.latitude)
        lng = to_number(pair.longitude)
        if lat is None or lng is None:
            continue
        points.append(GeoPoint(lat, lng))
        points.append(GeoPoint(lng, lat))
    return points


def _score(point: GeoPoint, reference: GeoPoint) -> float:
    score = abs(point.latitude - reference.latitude) + abs(point.longitude - reference.longitude)
    if not is_valid_latitude(point.latitude):
        score += OUT_OF_RANGE_PENALTY
    if not is_valid_longitude(point.longitude):
        score += OUT_OF_RANGE_PENALTY
    return score


def resolve(candidate: RestaurantCandidate, reference: GeoPoint | None = None) -> GeoPoint:
    """
    Return the best (lat, lng) for candidate, or GeoPoint(nan, nan) when nothing parses.
    Without a reference the first in-range orientation wins (else the first found);
    with one, the lowest distance-plus-penalty score wins, ties in discovery order.
    """
    points = coordinate_candidates(candidate)
    if not points:
        return UNUSABLE

    if reference is None:
        return next((p for p in points if is_usable(p)), points[0])

    best = points[0]
    best_score = _score(best, reference)
    for point in points[1:]:
        score = _score(point, reference)
        if score < best_score:
            best, best_score = point, score
    return best


def require_position(candidate: RestaurantCandidate, reference: GeoPoint | None = None) -> GeoPoint:
    """resolve(), raising CoordinateMissing when the result can't be used for distance math."""
    point = resolve(candidate, reference)
    if not is_usable(point):
        raise CoordinateMissing(f"Restaurant {candidate.restaurant_id!r} has no usable coordinates.")
    return point
