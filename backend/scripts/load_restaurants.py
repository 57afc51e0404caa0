#!/usr/bin/env python3
"""
Load restaurants from a CSV export into the local SQLite DB.

CSV must have an id column (restaurant_id or id) and a name column. Coordinates may
come as latitude/longitude, lat/lng (or lon), and/or the older Latitud/Longitud pair;
values are stored raw, including rows whose latitude and longitude were exported
swapped. cuisines may be a JSON array or a comma-separated list.

  python scripts/load_restaurants.py --csv path/to/restaurants.csv
"""
import argparse
import csv
import sys
from pathlib import Path

# Add backend root to path
backend = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend))

from src.data.restaurants_repo import init_db, upsert_restaurants

_ID_COLUMNS = ("restaurant_id", "id")
# Canonical spelling for case-sensitive aliases; other headers are lowercased
_CASED_COLUMNS = {"latitud": "Latitud", "longitud": "Longitud", "visitcount": "visitCount"}


def _normalize_header(h: str) -> str:
    key = h.strip().lstrip("\ufeff")
    return _CASED_COLUMNS.get(key.lower(), key.lower())


def read_rows(csv_path: Path) -> tuple[list[dict], int]:
    """Return (rows with an id, number of rows skipped for missing id)."""
    rows: list[dict] = []
    skipped = 0
    with open(csv_path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames:
            raise ValueError("empty CSV")
        fieldnames = [_normalize_header(h) for h in reader.fieldnames]
        if not any(c in fieldnames for c in _ID_COLUMNS) or "name" not in fieldnames:
            raise ValueError(f"CSV must have restaurant_id (or id) and name columns. Got: {fieldnames}")
        for raw in reader:
            row = {_normalize_header(k): (v.strip() if isinstance(v, str) else v) for k, v in raw.items() if k}
            if not any(row.get(c) for c in _ID_COLUMNS):
                skipped += 1
                continue
            rows.append(row)
    return rows, skipped


def main() -> int:
    parser = argparse.ArgumentParser(description="Load restaurants CSV into SQLite")
    parser.add_argument("--csv", required=True, type=Path, help="Path to restaurants CSV export")
    parser.add_argument(
        "--db",
        default=backend / "data" / "restaurants.db",
        type=Path,
        help="Path to SQLite DB file",
    )
    parser.add_argument("--replace", action="store_true", help="Delete existing rows before loading")
    args = parser.parse_args()

    if not args.csv.exists():
        print(f"Error: CSV not found: {args.csv}", file=sys.stderr)
        return 1

    try:
        rows, skipped = read_rows(args.csv)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    init_db(args.db)
    if args.replace:
        import sqlite3
        with sqlite3.connect(args.db) as conn:
            conn.execute("DELETE FROM restaurants")
            conn.commit()

    count = upsert_restaurants(args.db, rows)
    print(f"Loaded {count} restaurants into {args.db} (skipped {skipped} without id)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
