"""Tests for coordinate resolution on records with swapped or duplicated lat/lng columns."""
import math

import pytest

from src.data.coordinates import (
    CoordinateMissing,
    coordinate_candidates,
    require_position,
    resolve,
    to_number,
)
from src.data.geo import GeoPoint
from src.data.restaurants_repo import CoordinatePair, RestaurantCandidate, candidate_from_row

MALMO = GeoPoint(55.604981, 13.003822)


def _candidate(*pairs, restaurant_id="r1") -> RestaurantCandidate:
    return RestaurantCandidate(
        restaurant_id=restaurant_id,
        name="Test",
        coordinates=tuple(CoordinatePair(lat, lng) for lat, lng in pairs),
    )


@pytest.mark.parametrize(
    "value,expected",
    [(1, 1.0), (55.6, 55.6), ("13.0", 13.0), (" 55.6 ", 55.6), (None, None), ("", None),
     ("abc", None), ("nan", None), (math.inf, None), (True, None), ([1.0], None),
     (10**400, None), ("1e400", None)],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_coordinate_candidates_discovery_order():
    c = _candidate((55.6, 13.0), ("55.5", "12.9"))
    assert coordinate_candidates(c) == [
        GeoPoint(55.6, 13.0),
        GeoPoint(13.0, 55.6),
        GeoPoint(55.5, 12.9),
        GeoPoint(12.9, 55.5),
    ]


def test_coordinate_candidates_skips_half_pairs():
    c = _candidate((55.6, None), ("x", 13.0))
    assert coordinate_candidates(c) == []


def test_resolve_no_coordinates_is_unusable():
    point = resolve(_candidate())
    assert math.isnan(point.latitude) and math.isnan(point.longitude)
    with pytest.raises(CoordinateMissing):
        require_position(_candidate())


def test_resolve_without_reference_prefers_first_valid():
    assert resolve(_candidate((55.6, 13.0))) == GeoPoint(55.6, 13.0)


def test_resolve_without_reference_skips_out_of_range_orientation():
    # 120 can't be a latitude, so the swapped orientation is the first valid one
    assert resolve(_candidate((120.0, 45.0))) == GeoPoint(45.0, 120.0)


def test_resolve_without_reference_falls_back_to_first_when_none_valid():
    assert resolve(_candidate((200.0, 300.0))) == GeoPoint(200.0, 300.0)


def test_resolve_swapped_columns_with_reference():
    # "latitude" holds a longitude-magnitude value, "longitude" holds the real latitude
    point = resolve(_candidate((13.0, 55.6)), reference=MALMO)
    assert point.latitude == pytest.approx(55.6)
    assert point.longitude == pytest.approx(13.0)


def test_resolve_correct_columns_with_reference_unchanged():
    point = resolve(_candidate((55.6, 13.0)), reference=MALMO)
    assert point == GeoPoint(55.6, 13.0)


def test_resolve_picks_closest_of_several_pairs():
    # Primary pair is garbage for this area; alternate pair is right next to the reference
    c = _candidate((0.0, 0.0), (55.61, 13.01))
    assert resolve(c, reference=MALMO) == GeoPoint(55.61, 13.01)


def test_resolve_penalizes_out_of_range_even_when_closer():
    reference = GeoPoint(89.0, 10.0)
    c = _candidate((91.0, 10.0))
    # (91, 10) is 2 degrees away but 91 is not a latitude; (10, 91) scores 160
    assert resolve(c, reference=reference) == GeoPoint(10.0, 91.0)


def test_resolve_ties_keep_discovery_order():
    # Same value in both columns: both orientations score equally
    reference = GeoPoint(10.0, 10.0)
    c = _candidate((10.0, 10.0), (10.0, 10.0))
    assert resolve(c, reference=reference) == GeoPoint(10.0, 10.0)
    c2 = _candidate((11.0, 9.0), (9.0, 11.0))
    # (11, 9) and (9, 11) score 2.0 each; primary pair comes first
    assert resolve(c2, reference=reference) == GeoPoint(11.0, 9.0)


def test_require_position_rejects_unusable_best_guess():
    with pytest.raises(CoordinateMissing):
        require_position(_candidate((200.0, 300.0)), reference=MALMO)


def test_candidate_from_row_collects_aliases():
    c = candidate_from_row(
        {"id": 42, "name": "X", "lat": "55.6", "lng": "13.0", "Latitud": 55.61, "Longitud": 13.01, "visitCount": "5"}
    )
    assert c.restaurant_id == 42
    assert c.coordinates == (CoordinatePair("55.6", "13.0"), CoordinatePair(55.61, 13.01))
    assert c.visit_count == 5


def test_candidate_from_row_without_id_raises():
    with pytest.raises(ValueError):
        candidate_from_row({"name": "No id"})


def test_oversized_numbers_are_unparseable_not_fatal():
    c = candidate_from_row({"id": "big", "name": "X", "latitude": 10**400, "longitude": 13.0,
                            "rating": 10**400, "visit_count": 10**400})
    assert c.rating is None
    assert c.visit_count == 0
    assert math.isnan(resolve(c).latitude)
    with pytest.raises(CoordinateMissing):
        require_position(c, MALMO)
