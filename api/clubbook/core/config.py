"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "ClubBook"
    debug: bool = True
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database
    database_url: str = "postgresql+asyncpg://clubbook:clubbook@db:5432/clubbook"
    database_echo: bool = False

    # Civil calendar - every date key is a local date in this zone
    timezone: str = "America/Sao_Paulo"

    # Next-available-dates query
    horizon_weeks: int = 12
    result_cap: int = 6
    max_horizon_weeks: int = 52

    # Court hour grid (inclusive) and slot length
    grid_first_hour: int = 7
    grid_last_hour: int = 23
    slot_minutes: int = 60

    # Barbecue pit shifts (HH:MM, "24:00" allowed as end of day)
    day_shift_start: str = "08:00"
    day_shift_end: str = "18:00"
    night_shift_start: str = "18:00"
    night_shift_end: str = "24:00"

    # Walk limit when looking for the next non-excepted occurrence of a series
    next_occurrence_search_weeks: int = 120

    model_config = {"env_prefix": "CLUB_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
