"""
Relevance ordering for restaurant text search.

With a searcher location: distance first (an exact name match within
EXACT_MATCH_OVERRIDE_M wins regardless; gaps up to DISTANCE_TIE_M count as a tie),
then exact match, match score, visit count and name.
Without one: exact match, rating, match score, visit count, name.

The tie band and the bounded override make the located ordering non-transitive
(0 m ties 80 m, 80 m ties 160 m, yet 0 m beats 160 m), so for such sets the
result depends on input order. sorted() still returns a permutation.
"""
import functools
import math
from collections.abc import Sequence
from typing import NamedTuple

from src.data.coordinates import resolve
from src.data.geo import GeoPoint, haversine_distance_m, is_usable, validate_point
from src.data.restaurants_repo import RestaurantCandidate

# Tunable policy; main.py passes the configured values
EXACT_MATCH_OVERRIDE_M = 50_000.0
DISTANCE_TIE_M = 100.0

NAME_EXACT_SCORE = 1000
NAME_PREFIX_SCORE = 100
NAME_SUBSTRING_SCORE = 10
ADDRESS_SCORE = 2
CITY_SCORE = 1
UNRATED = -1.0


class RelevanceQuery(NamedTuple):
    query: str
    searcher: GeoPoint | None = None


class MatchScore(NamedTuple):
    is_exact: bool
    name_score: int
    address_score: int

    @property
    def total(self) -> int:
        return self.name_score + self.address_score


def match_score(name: str, address: str, query: str) -> MatchScore:
    """Score how well name/address match query (case-insensitive, query trimmed)."""
    name_l = (name or "").lower()
    address_l = (address or "").lower()
    q = (query or "").lower().strip()
    # City is the last comma-delimited address segment
    city = address_l.split(",")[-1].strip() if address_l else ""

    is_exact = name_l == q
    if is_exact:
        name_score = NAME_EXACT_SCORE
    elif name_l.startswith(q):
        name_score = NAME_PREFIX_SCORE
    elif q in name_l:
        name_score = NAME_SUBSTRING_SCORE
    else:
        name_score = 0
    address_score = (ADDRESS_SCORE if q in address_l else 0) + (CITY_SCORE if q in city else 0)
    return MatchScore(is_exact=is_exact, name_score=name_score, address_score=address_score)


class _Scored(NamedTuple):
    candidate: RestaurantCandidate
    match: MatchScore
    distance_m: float
    name_key: str


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _compare_tail(a: _Scored, b: _Scored) -> int:
    """Match score desc, visit count desc, name asc."""
    return (
        _cmp(b.match.total, a.match.total)
        or _cmp(b.candidate.visit_count, a.candidate.visit_count)
        or _cmp(a.name_key, b.name_key)
    )


def _compare_exact(a: _Scored, b: _Scored) -> int:
    return _cmp(b.match.is_exact, a.match.is_exact)


def _compare_located(a: _Scored, b: _Scored, override_m: float, tie_m: float) -> int:
    if a.match.is_exact and not b.match.is_exact and a.distance_m <= override_m:
        return -1
    if b.match.is_exact and not a.match.is_exact and b.distance_m <= override_m:
        return 1
    # Two candidates without a position are equally (infinitely) far
    if not (math.isinf(a.distance_m) and math.isinf(b.distance_m)):
        if abs(a.distance_m - b.distance_m) > tie_m:
            return _cmp(a.distance_m, b.distance_m)
    return _compare_exact(a, b) or _compare_tail(a, b)


def _compare_unlocated(a: _Scored, b: _Scored) -> int:
    rating_a = a.candidate.rating if a.candidate.rating is not None else UNRATED
    rating_b = b.candidate.rating if b.candidate.rating is not None else UNRATED
    return _compare_exact(a, b) or _cmp(rating_b, rating_a) or _compare_tail(a, b)


def _distance_from(searcher: GeoPoint, candidate: RestaurantCandidate) -> float:
    position = resolve(candidate, reference=searcher)
    if not is_usable(position):
        return math.inf
    return haversine_distance_m(searcher, position)


def rank(
    query: RelevanceQuery,
    candidates: Sequence[RestaurantCandidate],
    *,
    exact_match_override_m: float = EXACT_MATCH_OVERRIDE_M,
    distance_tie_m: float = DISTANCE_TIE_M,
) -> list[RestaurantCandidate]:
    """
    Return candidates reordered by relevance to query. Never drops anything;
    equal elements keep their input order. Raises InvalidCoordinate for a bad searcher point.
    """
    searcher = query.searcher
    if searcher is not None:
        validate_point(searcher, "searcher")

    scored = [
        _Scored(
            candidate=c,
            match=match_score(c.name, c.address, query.query),
            distance_m=_distance_from(searcher, c) if searcher is not None else math.inf,
            name_key=(c.name or "").casefold(),
        )
        for c in candidates
    ]
    if searcher is not None:
        compare = functools.partial(_compare_located, override_m=exact_match_override_m, tie_m=distance_tie_m)
    else:
        compare = _compare_unlocated
    # sorted() is stable: tied rows keep input order
    return [s.candidate for s in sorted(scored, key=functools.cmp_to_key(compare))]
