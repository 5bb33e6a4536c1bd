"""Daily AI-generation cap.

Calendar days are evaluated in UTC. The persisted state is the profile's
``daily_generation_count`` together with ``last_generation_date``.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

DEFAULT_DAILY_LIMIT = 2


def today_utc(now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).date()


def is_rate_limited(
    daily_count: int,
    last_date: Optional[date],
    today: date,
    limit: int = DEFAULT_DAILY_LIMIT,
) -> bool:
    """True when ``limit`` generations were already recorded today."""
    return last_date == today and daily_count >= limit


def next_counter(daily_count: int, last_date: Optional[date], today: date) -> Tuple[int, date]:
    """Counter value after one more successful generation on ``today``."""
    if last_date == today:
        return daily_count + 1, today
    return 1, today


def seconds_until_reset(now: Optional[datetime] = None) -> int:
    """Seconds until the next UTC midnight (the Retry-After value)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    tomorrow = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return max(1, math.ceil((tomorrow - now).total_seconds()))
