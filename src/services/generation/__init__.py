from src.services.generation.rate_limiter import (
    DEFAULT_DAILY_LIMIT,
    is_rate_limited,
    next_counter,
    seconds_until_reset,
    today_utc,
)
from src.services.generation.service import GenerationService

__all__ = [
    "DEFAULT_DAILY_LIMIT",
    "GenerationService",
    "is_rate_limited",
    "next_counter",
    "seconds_until_reset",
    "today_utc",
]
