from datetime import date, datetime, timedelta, timezone

import pytest

from src.repositories.profiles import ProfilesRepository
from src.services.generation import is_rate_limited, next_counter, seconds_until_reset, today_utc

TODAY = date(2024, 3, 1)
YESTERDAY = TODAY - timedelta(days=1)


class TestRateLimit:
    @pytest.mark.parametrize(
        "count,last_date,limited",
        [
            (0, None, False),
            (1, TODAY, False),
            (2, TODAY, True),
            (5, TODAY, True),
            (2, YESTERDAY, False),
        ],
    )
    def test_limit_boundary(self, count, last_date, limited):
        assert is_rate_limited(count, last_date, TODAY, limit=2) is limited

    def test_counter_increments_same_day(self):
        assert next_counter(1, TODAY, TODAY) == (2, TODAY)

    def test_counter_resets_on_new_day(self):
        assert next_counter(2, YESTERDAY, TODAY) == (1, TODAY)
        assert next_counter(0, None, TODAY) == (1, TODAY)

    @pytest.mark.parametrize("count,last_date", [(0, None), (1, TODAY), (2, YESTERDAY), (7, TODAY)])
    def test_stored_counter_matches_next_counter(self, db_session, user, count, last_date):
        repo = ProfilesRepository(db_session)
        profile = repo.get_by_user_id(user.id)
        profile.daily_generation_count = count
        profile.last_generation_date = last_date
        db_session.commit()

        assert repo.record_generation(user.id, TODAY)

        profile = repo.get_by_user_id(user.id)
        assert (profile.daily_generation_count, profile.last_generation_date) == next_counter(count, last_date, TODAY)


class TestUtcCalendar:
    def test_today_is_evaluated_in_utc(self):
        # 23:30 in UTC-5 is already the next day in UTC
        local = datetime(2024, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert today_utc(local) == date(2024, 3, 2)

    def test_naive_datetimes_are_treated_as_utc(self):
        assert today_utc(datetime(2024, 3, 1, 23, 59)) == date(2024, 3, 1)

    def test_seconds_until_reset(self):
        now = datetime(2024, 3, 1, 23, 0, tzinfo=timezone.utc)
        assert seconds_until_reset(now) == 3600

    def test_seconds_until_reset_is_at_least_one(self):
        now = datetime(2024, 3, 1, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert seconds_until_reset(now) == 1
