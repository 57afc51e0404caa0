"""
Local restaurants repository: SQLite-backed candidate source for nearby and text search.

Coordinate columns are stored raw. Older rows carry latitude in the "longitude"
column (and vice versa) or only the alternately named latitud/longitud pair, so the
region query matches either orientation and leaves disambiguation to the resolver.
"""
import json
import math
import sqlite3
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, NamedTuple

from src.data.cuisines import normalize_cuisines
from src.data.geo import BoundingBox


class CoordinatePair(NamedTuple):
    """Raw (latitude, longitude) values as read from storage; may be strings, None or swapped."""
    latitude: Any
    longitude: Any


class RestaurantCandidate(NamedTuple):
    restaurant_id: str | int
    name: str
    address: str = ""
    coordinates: tuple[CoordinatePair, ...] = ()
    cuisines: tuple[str, ...] = ()
    visit_count: int = 0
    rating: float | None = None
    is_featured: bool = False
    price_level: int | None = None


# Field aliases seen across schema revisions, primary name first
_LAT_ALIASES = ("latitude", "lat")
_LNG_ALIASES = ("longitude", "lng", "lon")
_ALT_LAT_ALIASES = ("Latitud", "latitud")
_ALT_LNG_ALIASES = ("Longitud", "longitud")
_VISIT_ALIASES = ("visit_count", "visitCount", "visits")
_ID_ALIASES = ("restaurant_id", "id")


def _first(row: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = row.get(name)
        if value is not None and value != "":
            return value
    return None


def _optional_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return f if math.isfinite(f) else None


def _optional_int(value: Any) -> int | None:
    f = _optional_float(value)
    return int(f) if f is not None else None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "t", "yes", "y")
    return bool(value)


def candidate_from_row(row: Mapping[str, Any]) -> RestaurantCandidate:
    """Build a RestaurantCandidate from a duck-typed row (DB row, JSON object, CSV dict)."""
    pairs: list[CoordinatePair] = []
    lat, lng = _first(row, _LAT_ALIASES), _first(row, _LNG_ALIASES)
    if lat is not None or lng is not None:
        pairs.append(CoordinatePair(lat, lng))
    alt_lat, alt_lng = _first(row, _ALT_LAT_ALIASES), _first(row, _ALT_LNG_ALIASES)
    if alt_lat is not None or alt_lng is not None:
        pairs.append(CoordinatePair(alt_lat, alt_lng))

    restaurant_id = _first(row, _ID_ALIASES)
    if restaurant_id is None:
        raise ValueError("Restaurant row has no id.")
    return RestaurantCandidate(
        restaurant_id=restaurant_id if isinstance(restaurant_id, (str, int)) else str(restaurant_id),
        name=str(row.get("name") or ""),
        address=str(row.get("address") or ""),
        coordinates=tuple(pairs),
        cuisines=normalize_cuisines(row.get("cuisines")),
        visit_count=_optional_int(_first(row, _VISIT_ALIASES)) or 0,
        rating=_optional_float(row.get("rating")),
        is_featured=_flag(row.get("is_featured")),
        price_level=_optional_int(row.get("price_level")),
    )


_COLUMNS = (
    "restaurant_id, name, address, latitude, longitude, latitud, longitud, "
    "cuisines, visit_count, rating, is_featured, price_level"
)


def init_db(db_path: str | Path) -> None:
    """Create restaurants table and indexes if they do not exist."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        # restaurant_id and coordinate columns are untyped: ids are text or integer,
        # coordinates are whatever the source wrote
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS restaurants (
                restaurant_id PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                address TEXT NOT NULL DEFAULT '',
                latitude,
                longitude,
                latitud,
                longitud,
                cuisines TEXT NOT NULL DEFAULT '[]',
                visit_count INTEGER NOT NULL DEFAULT 0,
                rating REAL,
                is_featured INTEGER NOT NULL DEFAULT 0,
                price_level INTEGER
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_restaurants_lat_lng ON restaurants(latitude, longitude)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_restaurants_lng_lat ON restaurants(longitude, latitude)")
        conn.commit()


def upsert_restaurants(db_path: str | Path, rows: Iterable[Mapping[str, Any]]) -> int:
    """Insert or replace duck-typed restaurant rows. Returns number of rows written."""
    count = 0
    with sqlite3.connect(db_path) as conn:
        for row in rows:
            c = candidate_from_row(row)
            primary = CoordinatePair(_first(row, _LAT_ALIASES), _first(row, _LNG_ALIASES))
            alt = CoordinatePair(_first(row, _ALT_LAT_ALIASES), _first(row, _ALT_LNG_ALIASES))
            conn.execute(
                f"INSERT OR REPLACE INTO restaurants ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    c.restaurant_id, c.name, c.address,
                    primary.latitude, primary.longitude, alt.latitude, alt.longitude,
                    json.dumps(list(c.cuisines)), c.visit_count, c.rating,
                    1 if c.is_featured else 0, c.price_level,
                ),
            )
            count += 1
        conn.commit()
    return count


def _rows_to_candidates(rows: list[sqlite3.Row]) -> list[RestaurantCandidate]:
    return [candidate_from_row(dict(r)) for r in rows]


def fetch_region_candidates(db_path: str | Path, bbox: BoundingBox) -> list[RestaurantCandidate]:
    """
    Return restaurants whose raw coordinates, in either orientation, fall in bbox.
    Coarse prefilter only: no distance filtering and no ordering.
    """
    db_path = Path(db_path)
    if not db_path.exists():
        return []

    in_box = (
        "(CAST({lat} AS REAL) BETWEEN :min_lat AND :max_lat "
        "AND CAST({lng} AS REAL) BETWEEN :min_lng AND :max_lng)"
    )
    where = " OR ".join(
        in_box.format(lat=lat, lng=lng)
        for lat, lng in (
            ("latitude", "longitude"),
            ("longitude", "latitude"),
            ("latitud", "longitud"),
            ("longitud", "latitud"),
        )
    )
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.execute(f"SELECT {_COLUMNS} FROM restaurants WHERE {where}", bbox._asdict())
        return _rows_to_candidates(cur.fetchall())


def search_candidates(db_path: str | Path, text: str, limit: int = 200) -> list[RestaurantCandidate]:
    """Case-insensitive name/address substring match. Unordered; ranking is the caller's job."""
    db_path = Path(db_path)
    q = (text or "").strip().lower()
    if not db_path.exists() or not q:
        return []
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.execute(
            f"""
            SELECT {_COLUMNS}
            FROM restaurants
            WHERE instr(lower(name), ?) > 0 OR instr(lower(address), ?) > 0
            LIMIT ?
            """,
            (q, q, limit),
        )
        return _rows_to_candidates(cur.fetchall())


def list_candidates(db_path: str | Path) -> list[RestaurantCandidate]:
    db_path = Path(db_path)
    if not db_path.exists():
        return []
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.execute(f"SELECT {_COLUMNS} FROM restaurants")
        return _rows_to_candidates(cur.fetchall())
