"""Pydantic models for the restaurant nearby / search / rank endpoints."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RestaurantInfo(BaseModel):
    id: str | int
    name: str
    address: str
    latitude: float | None = None  # resolved position; None when unusable
    longitude: float | None = None
    cuisines: list[str] = []
    visit_count: int = 0
    rating: float | None = None
    is_featured: bool = False
    price_level: int | None = None
    distance_meters: float | None = None
    distance_text: str | None = None


class NearbyRestaurantsResponse(BaseModel):
    restaurants: list[RestaurantInfo]
    count: int


class RankedRestaurantsResponse(BaseModel):
    restaurants: list[RestaurantInfo]
    count: int


class RawRestaurant(BaseModel):
    """Candidate as handed over by the places / text-search side. Coordinates stay raw."""
    model_config = ConfigDict(populate_by_name=True)

    id: str | int
    name: str = ""
    address: str = ""
    latitude: Any = None
    longitude: Any = None
    alt_latitude: Any = Field(default=None, alias="Latitud")
    alt_longitude: Any = Field(default=None, alias="Longitud")
    cuisines: Any = None
    visit_count: int = Field(default=0, ge=0)
    rating: float | None = None
    is_featured: bool = False
    price_level: int | None = None

    def as_row(self) -> dict[str, Any]:
        row = self.model_dump(exclude={"alt_latitude", "alt_longitude"})
        row["Latitud"] = self.alt_latitude
        row["Longitud"] = self.alt_longitude
        return row


class RankRequest(BaseModel):
    query: str = Field(default="", max_length=200)
    latitude: float | None = None
    longitude: float | None = None
    candidates: list[RawRestaurant] = Field(default_factory=list, max_length=1000)

    @model_validator(mode="after")
    def check_searcher(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Provide both latitude and longitude, or neither.")
        return self
