"""Tests for cuisine tag normalization."""
import pytest

from src.data.cuisines import normalize_cuisines


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, ()),
        ("", ()),
        (["Pizza", " Italian ", ""], ("Pizza", "Italian")),
        ('["Japanese", "Sushi"]', ("Japanese", "Sushi")),
        ("Mexican, Street food", ("Mexican", "Street food")),
        ('"Thai"', ("Thai",)),
        ([{"name": "Thai"}, {"name": "Vegan"}], ("Thai", "Vegan")),
        ({"a": "Indian", "b": "Curry"}, ("Indian", "Curry")),
        ({"name": "Greek"}, ("Greek",)),
        (42, ()),
    ],
)
def test_normalize_cuisines(raw, expected):
    assert normalize_cuisines(raw) == expected
