"""
Nearby restaurant search: bounding-box prefilter, exact Haversine refine, sort, limit.

Same two-phase plan a spatially indexed store would run, so results match whether
candidates come from an unfiltered scan or from fetch_region_candidates().
"""
import logging
import math
from collections.abc import Iterable
from typing import NamedTuple

from src.data.coordinates import CoordinateMissing, require_position
from src.data.geo import GeoPoint, bounding_box, haversine_distance_m, validate_point
from src.data.restaurants_repo import RestaurantCandidate

logger = logging.getLogger(__name__)

# When the bbox collapses to a point only exact matches qualify
EXACT_MATCH_EPSILON_M = 1e-6
RATING_MIN, RATING_MAX = 0.0, 5.0


class NearbyQuery(NamedTuple):
    center: GeoPoint
    radius_m: float
    limit: int | None = None  # None or 0: unbounded
    cuisines: frozenset[str] | None = None
    rating_range: tuple[float, float] | None = None  # inclusive; unrated kept only when min is 0


class NearbyResult(NamedTuple):
    candidate: RestaurantCandidate
    position: GeoPoint
    distance_m: float


def _identifier_key(restaurant_id: str | int) -> tuple[bool, str | int]:
    # ints before strings; never compares an int with a str
    return (isinstance(restaurant_id, str), restaurant_id)


def _validate_query(query: NearbyQuery) -> None:
    validate_point(query.center, "center")
    radius = query.radius_m
    if isinstance(radius, bool) or not isinstance(radius, (int, float)) or not math.isfinite(radius) or radius <= 0:
        raise ValueError("radius_m must be a positive, finite number")
    if query.limit is not None and (isinstance(query.limit, bool) or not isinstance(query.limit, int) or query.limit < 0):
        raise ValueError("limit must be a positive integer, or 0/None for unbounded")
    if query.rating_range is not None:
        low, high = query.rating_range
        if not (RATING_MIN <= low <= high <= RATING_MAX):
            raise ValueError(f"rating range must satisfy {RATING_MIN} <= min <= max <= {RATING_MAX}")


def _matches_cuisines(candidate: RestaurantCandidate, wanted: frozenset[str]) -> bool:
    return any(c.casefold() in wanted for c in candidate.cuisines)


def _matches_rating(candidate: RestaurantCandidate, rating_range: tuple[float, float]) -> bool:
    low, high = rating_range
    if candidate.rating is None:
        return low == RATING_MIN
    return low <= candidate.rating <= high


def find_nearby(query: NearbyQuery, candidates: Iterable[RestaurantCandidate]) -> list[NearbyResult]:
    """
    Return candidates within query.radius_m of query.center, closest first, ties by id.
    Raises InvalidCoordinate for a bad center and ValueError for a bad radius, limit or rating range.
    Candidates without usable coordinates are dropped, never fatal.
    """
    _validate_query(query)
    center, radius_m = query.center, float(query.radius_m)
    bbox = bounding_box(center, radius_m)
    exact_only = bbox.lat_delta == 0.0 or bbox.lng_delta == 0.0
    max_distance_m = EXACT_MATCH_EPSILON_M if exact_only else radius_m
    wanted = frozenset(c.casefold() for c in query.cuisines) if query.cuisines else None

    scanned = missing = outside_bbox = outside_radius = cuisine_miss = rating_miss = 0
    results: list[NearbyResult] = []
    for candidate in candidates:
        scanned += 1
        try:
            position = require_position(candidate, reference=center)
        except CoordinateMissing:
            missing += 1
            continue
        if not exact_only and not bbox.contains(position):
            outside_bbox += 1
            continue
        distance_m = haversine_distance_m(center, position)
        if distance_m > max_distance_m:
            outside_radius += 1
            continue
        if wanted is not None and not _matches_cuisines(candidate, wanted):
            cuisine_miss += 1
            continue
        if query.rating_range is not None and not _matches_rating(candidate, query.rating_range):
            rating_miss += 1
            continue
        results.append(NearbyResult(candidate=candidate, position=position, distance_m=distance_m))

    results.sort(key=lambda r: (r.distance_m, _identifier_key(r.candidate.restaurant_id)))
    if query.limit:
        results = results[: query.limit]

    logger.debug(
        "nearby scanned=%d missing=%d outside_bbox=%d outside_radius=%d cuisine_miss=%d rating_miss=%d returned=%d",
        scanned, missing, outside_bbox, outside_radius, cuisine_miss, rating_miss, len(results),
    )
    return results
