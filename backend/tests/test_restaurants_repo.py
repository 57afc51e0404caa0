"""Tests for restaurants_repo: storage round trip, region prefilter and text search."""
import sqlite3

from src.data.geo import GeoPoint, bounding_box
from src.data.restaurants_repo import (
    CoordinatePair,
    fetch_region_candidates,
    init_db,
    list_candidates,
    search_candidates,
    upsert_restaurants,
)
from src.nearby.planner import NearbyQuery, find_nearby

CENTER = GeoPoint(55.604981, 13.003822)


def _ids(candidates):
    return sorted(str(c.restaurant_id) for c in candidates)


def test_ids_keep_their_type(restaurants_db):
    by_name = {c.name: c for c in list_candidates(restaurants_db)}
    assert by_name["Sushi Bar"].restaurant_id == 7
    assert by_name["Pizza Hut"].restaurant_id == "near"


def test_raw_coordinates_and_cuisines_round_trip(restaurants_db):
    by_id = {c.restaurant_id: c for c in list_candidates(restaurants_db)}
    assert by_id[7].coordinates == (CoordinatePair("13.0120", "55.5955"),)
    assert by_id[7].cuisines == ("Japanese", "Sushi")
    assert by_id["alt"].coordinates == (CoordinatePair(55.5915, 13.0075),)
    assert by_id["alt"].cuisines == ("Mexican", "Street food")
    assert by_id["ghost"].coordinates == ()
    assert by_id["near"].visit_count == 12
    assert by_id["near"].rating == 4.1


def test_region_candidates_include_swapped_and_alternate_rows(restaurants_db):
    found = fetch_region_candidates(restaurants_db, bounding_box(CENTER, 5000))
    assert _ids(found) == ["7", "alt", "near"]


def test_region_candidates_respect_bbox(restaurants_db):
    found = fetch_region_candidates(restaurants_db, bounding_box(CENTER, 20_000))
    assert "far" in _ids(found)
    found = fetch_region_candidates(restaurants_db, bounding_box(GeoPoint(40.0, -88.0), 5000))
    assert found == []


def test_region_candidates_feed_planner(restaurants_db):
    query = NearbyQuery(center=CENTER, radius_m=5000)
    results = find_nearby(query, fetch_region_candidates(restaurants_db, bounding_box(CENTER, 5000)))
    assert [r.candidate.restaurant_id for r in results] == ["near", 7, "alt"]


def test_region_prefilter_matches_full_scan(restaurants_db):
    for radius in (100, 1000, 1300, 5000, 20_000):
        query = NearbyQuery(center=CENTER, radius_m=radius)
        indexed = find_nearby(query, fetch_region_candidates(restaurants_db, bounding_box(CENTER, radius)))
        scanned = find_nearby(query, list_candidates(restaurants_db))
        assert indexed == scanned


def test_search_candidates_matches_name_and_address(restaurants_db):
    assert _ids(search_candidates(restaurants_db, "PIZZA")) == ["far", "ghost", "near"]
    assert _ids(search_candidates(restaurants_db, "davidshall")) == ["7"]
    assert search_candidates(restaurants_db, "   ") == []


def test_search_candidates_respects_limit(restaurants_db):
    assert len(search_candidates(restaurants_db, "pizza", limit=2)) == 2


def test_missing_db_gives_empty_results(tmp_path):
    missing = tmp_path / "nope.db"
    assert fetch_region_candidates(missing, bounding_box(CENTER, 5000)) == []
    assert search_candidates(missing, "pizza") == []
    assert list_candidates(missing) == []


def test_upsert_replaces_existing_row(restaurants_db):
    upsert_restaurants(restaurants_db, [{"id": "near", "name": "Pizza Hut (renamed)", "latitude": 55.606, "longitude": 13.005}])
    with sqlite3.connect(restaurants_db) as conn:
        (count,) = conn.execute("SELECT COUNT(*) FROM restaurants").fetchone()
    assert count == 5
    names = {c.restaurant_id: c.name for c in list_candidates(restaurants_db)}
    assert names["near"] == "Pizza Hut (renamed)"


def test_init_db_is_idempotent(tmp_path):
    db = tmp_path / "nested" / "restaurants.db"
    init_db(db)
    init_db(db)
    assert db.exists()
    assert list_candidates(db) == []
