import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from settings import get_settings
from src.data.coordinates import resolve
from src.data.geo import (
    UNITS,
    GeoPoint,
    InvalidCoordinate,
    bounding_box,
    format_distance,
    haversine_distance_m,
    is_usable,
    validate_point,
)
from src.data.restaurants_repo import (
    RestaurantCandidate,
    candidate_from_row,
    fetch_region_candidates,
    init_db,
    search_candidates,
)
from src.middleware import RequestLoggingMiddleware
from src.monitoring import get_metrics, record_search, record_timeout
from src.nearby.models import NearbyRestaurantsResponse, RankedRestaurantsResponse, RankRequest, RestaurantInfo
from src.nearby.planner import RATING_MAX, RATING_MIN, NearbyQuery, find_nearby
from src.search.ranker import RelevanceQuery, rank

settings = get_settings()
BACKEND_ROOT = Path(__file__).resolve().parent
RESTAURANTS_DB = BACKEND_ROOT / settings.restaurants_db_path

# Structured logging: include module and level; handlers can add JSON later
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)

# Input validation bounds (public robustness)
RADIUS_M_MIN, RADIUS_M_MAX = 1, 50_000
LIMIT_MAX = 1000
QUERY_MIN_LEN, QUERY_MAX_LEN = 2, 200
# Text matches fetched from storage before ranking
SEARCH_CANDIDATE_POOL = 200


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(RESTAURANTS_DB)
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    """Return consistent JSON error for unhandled exceptions (500). Skip validation/HTTP errors."""
    from fastapi.exceptions import RequestValidationError
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc
    logger.exception("telemetry unhandled_exception path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )


# Order: last added = innermost. RequestLogging (outermost), then rate limiting, then CORS.
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validate_center(latitude: float, longitude: float, label: str = "center") -> GeoPoint:
    try:
        return validate_point(GeoPoint(latitude, longitude), label)
    except InvalidCoordinate as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _validate_unit(unit: str) -> str:
    if unit not in UNITS:
        raise HTTPException(status_code=400, detail=f"unit must be one of: {', '.join(UNITS)}")
    return unit


def _rating_range(min_rating: float | None, max_rating: float | None) -> tuple[float, float] | None:
    if min_rating is None and max_rating is None:
        return None
    low = RATING_MIN if min_rating is None else min_rating
    high = RATING_MAX if max_rating is None else max_rating
    if not (RATING_MIN <= low <= high <= RATING_MAX):
        raise HTTPException(
            status_code=400,
            detail=f"min_rating and max_rating must satisfy {RATING_MIN:g} <= min_rating <= max_rating <= {RATING_MAX:g}",
        )
    return (low, high)


def _optional_searcher(latitude: float | None, longitude: float | None) -> GeoPoint | None:
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise HTTPException(status_code=400, detail="Provide both latitude and longitude, or neither.")
    return _validate_center(latitude, longitude, "searcher")


def _restaurant_info(
    candidate: RestaurantCandidate,
    position: GeoPoint | None,
    distance_m: float | None,
    unit: str,
) -> RestaurantInfo:
    usable = position is not None and is_usable(position)
    return RestaurantInfo(
        id=candidate.restaurant_id,
        name=candidate.name,
        address=candidate.address,
        latitude=position.latitude if usable else None,
        longitude=position.longitude if usable else None,
        cuisines=list(candidate.cuisines),
        visit_count=candidate.visit_count,
        rating=candidate.rating,
        is_featured=candidate.is_featured,
        price_level=candidate.price_level,
        distance_meters=round(distance_m, 1) if distance_m is not None else None,
        distance_text=format_distance(distance_m, unit) if distance_m is not None else None,
    )


def _ranked_infos(
    ranked: list[RestaurantCandidate],
    searcher: GeoPoint | None,
    unit: str,
) -> list[RestaurantInfo]:
    infos = []
    for c in ranked:
        position = resolve(c, reference=searcher)
        distance_m = None
        if searcher is not None and is_usable(position):
            distance_m = haversine_distance_m(searcher, position)
        infos.append(_restaurant_info(c, position, distance_m, unit))
    return infos


@app.get("/favicon.ico", include_in_schema=False)
@limiter.exempt
def favicon(request: Request):
    """Return 204 so browser favicon requests don't log 404."""
    return Response(status_code=204)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    logger.info("telemetry route=health")
    return {"status": "ok"}


@app.get("/metrics")
@limiter.exempt
def metrics(request: Request):
    """Request counts, search counters and uptime."""
    return get_metrics()


# --- Nearby search (center + radius -> restaurants by distance) ---


@app.get("/restaurants/nearby", response_model=NearbyRestaurantsResponse)
async def restaurants_nearby(
    request: Request,
    latitude: float,
    longitude: float,
    radius_m: float | None = None,
    limit: int | None = None,
    cuisines: list[str] = Query(default=[]),
    min_rating: float | None = None,
    max_rating: float | None = None,
    unit: str = "metric",
):
    """
    Restaurants within radius_m of (latitude, longitude), closest first.
    limit=0 means unbounded; repeat ?cuisines= to filter by any of several cuisines.
    min_rating/max_rating (0-5) keep rated restaurants in range; unrated ones only when min_rating is 0.
    """
    center = _validate_center(latitude, longitude)
    radius = float(settings.default_radius_m if radius_m is None else radius_m)
    if not (RADIUS_M_MIN <= radius <= RADIUS_M_MAX):
        raise HTTPException(status_code=400, detail=f"radius_m must be between {RADIUS_M_MIN} and {RADIUS_M_MAX}")
    limit = settings.default_limit if limit is None else limit
    if not (0 <= limit <= LIMIT_MAX):
        raise HTTPException(status_code=400, detail=f"limit must be between 0 (unbounded) and {LIMIT_MAX}")
    rating_range = _rating_range(min_rating, max_rating)
    unit = _validate_unit(unit)
    wanted = frozenset(c.strip() for c in cuisines if c and c.strip()) or None
    query = NearbyQuery(center=center, radius_m=radius, limit=limit or None, cuisines=wanted, rating_range=rating_range)
    logger.info("telemetry route=restaurants_nearby radius_m=%s limit=%s cuisines=%s", radius, limit, len(wanted or ()))

    def _run():
        candidates = fetch_region_candidates(RESTAURANTS_DB, bounding_box(center, radius))
        return len(candidates), find_nearby(query, candidates)

    try:
        scanned, results = await asyncio.wait_for(asyncio.to_thread(_run), timeout=settings.nearby_timeout_seconds)
    except asyncio.TimeoutError as e:
        record_timeout("nearby")
        logger.warning("telemetry nearby_timeout timeout_s=%s", settings.nearby_timeout_seconds)
        raise HTTPException(status_code=504, detail="Nearby search timed out. Please try again.") from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    record_search("nearby", scanned, len(results))
    return NearbyRestaurantsResponse(
        restaurants=[_restaurant_info(r.candidate, r.position, r.distance_m, unit) for r in results],
        count=len(results),
    )


# --- Text search (query + optional searcher location -> ranked restaurants) ---


@app.get("/restaurants/search", response_model=RankedRestaurantsResponse)
def restaurants_search(
    request: Request,
    q: str = "",
    latitude: float | None = None,
    longitude: float | None = None,
    limit: int | None = None,
    unit: str = "metric",
):
    """Name/address search ranked by relevance. With a location, nearby matches come first."""
    query = (q or "").strip()
    searcher = _optional_searcher(latitude, longitude)
    unit = _validate_unit(unit)
    limit = settings.default_limit if limit is None else limit
    if not (0 <= limit <= LIMIT_MAX):
        raise HTTPException(status_code=400, detail=f"limit must be between 0 (unbounded) and {LIMIT_MAX}")
    if len(query) < QUERY_MIN_LEN:
        return RankedRestaurantsResponse(restaurants=[], count=0)
    if len(query) > QUERY_MAX_LEN:
        raise HTTPException(status_code=400, detail=f"q must be at most {QUERY_MAX_LEN} characters")
    logger.info("telemetry route=restaurants_search located=%s", searcher is not None)

    candidates = search_candidates(RESTAURANTS_DB, query, limit=SEARCH_CANDIDATE_POOL)
    ranked = rank(
        RelevanceQuery(query=query, searcher=searcher),
        candidates,
        exact_match_override_m=settings.exact_match_override_m,
        distance_tie_m=settings.distance_tie_m,
    )
    if limit:
        ranked = ranked[:limit]
    record_search("search", len(candidates), len(ranked))
    infos = _ranked_infos(ranked, searcher, unit)
    return RankedRestaurantsResponse(restaurants=infos, count=len(infos))


@app.post("/restaurants/rank", response_model=RankedRestaurantsResponse)
def restaurants_rank(request: Request, body: RankRequest, unit: str = "metric"):
    """Rank caller-supplied candidates (e.g. place suggestions). Returns every candidate, reordered."""
    unit = _validate_unit(unit)
    searcher = _optional_searcher(body.latitude, body.longitude)
    try:
        candidates = [candidate_from_row(c.as_row()) for c in body.candidates]
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("telemetry route=restaurants_rank candidates=%s located=%s", len(candidates), searcher is not None)
    ranked = rank(
        RelevanceQuery(query=body.query, searcher=searcher),
        candidates,
        exact_match_override_m=settings.exact_match_override_m,
        distance_tie_m=settings.distance_tie_m,
    )
    record_search("rank", len(candidates), len(ranked))
    infos = _ranked_infos(ranked, searcher, unit)
    return RankedRestaurantsResponse(restaurants=infos, count=len(infos))
