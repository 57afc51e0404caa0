"""
Great-circle distance, bounding boxes and distance formatting for nearby queries.
"""
import math
from typing import NamedTuple

# Earth radius in meters (WGS84 mean radius)
EARTH_RADIUS_M = 6_371_000.0
# 1 deg lat ~ 111 km
METERS_PER_DEGREE = 111_000.0
# Floor for cos(lat) so longitude deltas stay finite near the poles
MIN_COS_LAT = 0.1

LAT_MIN, LAT_MAX = -90.0, 90.0
LNG_MIN, LNG_MAX = -180.0, 180.0

METERS_PER_MILE = 1609.344
FEET_PER_METER = 3.28084
# Below this many miles imperial distances are shown in feet
IMPERIAL_FEET_THRESHOLD_MI = 0.1

UNITS = ("metric", "imperial")


class InvalidCoordinate(ValueError):
    """A required input point is non-finite or out of range."""


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


UNUSABLE = GeoPoint(math.nan, math.nan)


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @property
    def lat_delta(self) -> float:
        return (self.max_lat - self.min_lat) / 2.0

    @property
    def lng_delta(self) -> float:
        return (self.max_lng - self.min_lng) / 2.0

    def contains(self, point: GeoPoint) -> bool:
        """Cheap rectangular test. Longitudes past +/-180 are also checked wrapped."""
        lat, lng = point
        if not (self.min_lat <= lat <= self.max_lat):
            return False
        if self.min_lng <= lng <= self.max_lng:
            return True
        if self.min_lng < LNG_MIN and self.min_lng <= lng - 360.0 <= self.max_lng:
            return True
        if self.max_lng > LNG_MAX and self.min_lng <= lng + 360.0 <= self.max_lng:
            return True
        return False


def is_valid_latitude(value: float) -> bool:
    return math.isfinite(value) and LAT_MIN <= value <= LAT_MAX


def is_valid_longitude(value: float) -> bool:
    return math.isfinite(value) and LNG_MIN <= value <= LNG_MAX


def is_usable(point: GeoPoint) -> bool:
    """True when both axes are finite and inside WGS84 ranges."""
    return is_valid_latitude(point.latitude) and is_valid_longitude(point.longitude)


def validate_point(point: GeoPoint, label: str = "point") -> GeoPoint:
    """Reject (never clamp) a non-finite or out-of-range point."""
    lat, lng = point
    if not is_valid_latitude(lat):
        raise InvalidCoordinate(f"{label} latitude must be a finite number between {LAT_MIN} and {LAT_MAX}")
    if not is_valid_longitude(lng):
        raise InvalidCoordinate(f"{label} longitude must be a finite number between {LNG_MIN} and {LNG_MAX}")
    return point


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """
    Return great-circle distance between two points in meters.
    Arguments in degrees.
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlng = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    # sqrt(h) can overshoot 1 by an ulp for antipodal points
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(max(0.0, h))))


def haversine_distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Return great-circle distance in kilometers."""
    return haversine_distance_m(a, b) / 1000.0


def spherical_law_of_cosines_m(a: GeoPoint, b: GeoPoint) -> float:
    """Cheaper approximation of haversine_distance_m; loses precision below ~1 km."""
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlng = math.radians(b.longitude - a.longitude)
    x = math.sin(lat1_rad) * math.sin(lat2_rad) + math.cos(lat1_rad) * math.cos(lat2_rad) * math.cos(dlng)
    return EARTH_RADIUS_M * math.acos(max(-1.0, min(1.0, x)))


def bounding_box(center: GeoPoint, radius_m: float) -> BoundingBox:
    """Lat/lng rectangle around center that contains every point within radius_m."""
    lat_delta = radius_m / METERS_PER_DEGREE
    lng_delta = radius_m / (METERS_PER_DEGREE * max(math.cos(math.radians(center.latitude)), MIN_COS_LAT))
    return BoundingBox(
        min_lat=center.latitude - lat_delta,
        max_lat=center.latitude + lat_delta,
        min_lng=center.longitude - lng_delta,
        max_lng=center.longitude + lng_delta,
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_distance(meters: float, unit: str = "metric") -> str:
    """
    Human-readable distance.
    metric: "50 m" below 1 km, else "1.2 km". imperial: "300 ft" below 0.1 mi, else "0.3 mi".
    """
    if unit not in UNITS:
        raise ValueError(f"unit must be one of {', '.join(UNITS)}")
    if not math.isfinite(meters) or meters < 0:
        raise ValueError("meters must be a finite, non-negative number")

    if unit == "imperial":
        miles = meters / METERS_PER_MILE
        if miles < IMPERIAL_FEET_THRESHOLD_MI:
            return f"{_round_half_up(meters * FEET_PER_METER)} ft"
        return f"{miles:.1f} mi"

    if meters < 1000:
        return f"{_round_half_up(meters)} m"
    return f"{meters / 1000.0:.1f} km"
