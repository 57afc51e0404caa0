from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Nearby Restaurants API"
    debug: bool = False
    # CORS: "*" for dev; in production set to comma-separated origins, e.g. "https://app.example.com"
    cors_origins: str = "*"
    restaurants_db_path: str = "data/restaurants.db"  # Path relative to backend root, or absolute (scripts/load_restaurants.py)

    # Nearby search defaults (caller may override per request)
    default_radius_m: int = 5000
    default_limit: int = 20  # 0 = unbounded
    nearby_timeout_seconds: float = 5.0  # per-request deadline; exceeded -> 504

    # Search ranking policy. Empirical values, tune freely.
    exact_match_override_m: float = 50_000.0  # exact name match beats closer results within this distance
    distance_tie_m: float = 100.0  # distance gaps up to this are treated as equal

    rate_limit: str = "100/minute"
    rate_limit_enabled: bool = True


def get_settings() -> Settings:
    return Settings()
