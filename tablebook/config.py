import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv("config.env")


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


@dataclass
class Settings:
    database_url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./tablebook.db")
    )
    # Minutes on either side of a reservation during which its table is taken
    occupancy_buffer_minutes: int = field(
        default_factory=lambda: _as_int(os.getenv("OCCUPANCY_BUFFER_MINUTES"), 120)
    )
    # Lets a schedule close after midnight (close <= open wraps to the next day)
    allow_overnight_hours: bool = field(
        default_factory=lambda: _as_bool(os.getenv("ALLOW_OVERNIGHT_HOURS"), False)
    )
    booking_max_retries: int = field(
        default_factory=lambda: _as_int(os.getenv("BOOKING_MAX_RETRIES"), 3)
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    seed_demo_data: bool = field(
        default_factory=lambda: _as_bool(os.getenv("SEED_DEMO_DATA"), False)
    )


settings = Settings()
