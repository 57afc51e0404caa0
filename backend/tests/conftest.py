"""Pytest configuration and fixtures."""
import os
import sys
from pathlib import Path

import pytest

# Ensure backend root is on path when running pytest from repo root or backend
backend = Path(__file__).resolve().parent.parent
if str(backend) not in sys.path:
    sys.path.insert(0, str(backend))

# API tests share one client address; keep the limiter out of their way
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from src.data.restaurants_repo import init_db, upsert_restaurants  # noqa: E402

SAMPLE_ROWS = [
    # ~135 m from central Malmö (55.604981, 13.003822), stored correctly
    {"id": "near", "name": "Pizza Hut", "address": "Stortorget 1, Malmö", "latitude": 55.606, "longitude": 13.005,
     "cuisines": ["Pizza", "Italian"], "visit_count": 12, "rating": 4.1},
    # ~1.2 km, latitude/longitude columns swapped, numbers stored as text
    {"id": 7, "name": "Sushi Bar", "address": "Davidshallsgatan 3, Malmö", "latitude": "13.0120", "longitude": "55.5955",
     "cuisines": '["Japanese", "Sushi"]', "visit_count": 3, "rating": 4.6},
    # only the alternate column pair
    {"id": "alt", "name": "Taqueria", "address": "Möllevången, Malmö", "Latitud": 55.5915, "Longitud": 13.0075,
     "cuisines": "Mexican, Street food"},
    # ~10.6 km north, outside the default radius
    {"id": "far", "name": "Lund Pizza", "address": "Lund", "latitude": 55.70, "longitude": 13.00,
     "cuisines": ["Pizza"]},
    # no coordinates at all
    {"id": "ghost", "name": "Pizza Ghost", "address": "Unknown, Malmö", "cuisines": ["Pizza"]},
]


@pytest.fixture
def restaurants_db(tmp_path):
    """Temporary restaurants DB seeded with SAMPLE_ROWS."""
    db = tmp_path / "restaurants.db"
    init_db(db)
    upsert_restaurants(db, SAMPLE_ROWS)
    return db
