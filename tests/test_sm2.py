from datetime import datetime, timedelta, timezone

import pytest

from src.services.scheduling import SchedulingState, schedule_review
from src.services.scheduling.sm2 import MIN_EASE_FACTOR, next_ease_factor

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
NEW_CARD = SchedulingState(ease_factor=2.5, interval_days=0, repetitions=0)


class TestScheduleExamples:
    def test_first_successful_review(self):
        outcome = schedule_review(NEW_CARD, 5, NOW)

        assert outcome.repetitions == 1
        assert outcome.interval_days == 1
        assert outcome.ease_factor == pytest.approx(2.6)
        assert outcome.next_review_date == NOW + timedelta(days=1)
        assert outcome.last_reviewed_at == NOW

    def test_second_successful_review(self):
        outcome = schedule_review(SchedulingState(2.5, 1, 1), 5, NOW)

        assert outcome.repetitions == 2
        assert outcome.interval_days == 6
        assert outcome.ease_factor == pytest.approx(2.6)

    def test_third_review_multiplies_previous_interval(self):
        outcome = schedule_review(SchedulingState(2.6, 6, 2), 5, NOW)

        assert outcome.repetitions == 3
        assert outcome.interval_days == 16
        assert outcome.ease_factor > 2.6

    def test_failure_resets_ladder_and_keeps_ease(self):
        outcome = schedule_review(SchedulingState(2.6, 16, 3), 1, NOW)

        assert outcome.repetitions == 0
        assert outcome.interval_days == 1
        assert outcome.ease_factor == pytest.approx(2.6)
        assert outcome.next_review_date == NOW + timedelta(days=1)

    def test_quality_three_lowers_ease(self):
        assert next_ease_factor(2.5, 3) == pytest.approx(2.36)

    def test_quality_four_keeps_ease(self):
        assert next_ease_factor(2.5, 4) == pytest.approx(2.5)


class TestScheduleProperties:
    @pytest.mark.parametrize("quality", [3, 4, 5])
    def test_successive_successes_never_shrink_interval(self, quality):
        state = NEW_CARD
        previous_interval = 0
        for expected_reps in range(1, 8):
            outcome = schedule_review(state, quality, NOW)
            assert outcome.repetitions == expected_reps
            assert outcome.interval_days >= previous_interval
            previous_interval = outcome.interval_days
            state = outcome.state

    @pytest.mark.parametrize("quality", [0, 1, 2])
    def test_any_failure_resets(self, quality):
        outcome = schedule_review(SchedulingState(2.1, 42, 7), quality, NOW)

        assert (outcome.repetitions, outcome.interval_days) == (0, 1)
        assert outcome.ease_factor == pytest.approx(2.1)

    def test_ease_is_floored(self):
        state = SchedulingState(1.35, 10, 4)
        for _ in range(5):
            state = schedule_review(state, 3, NOW).state
            assert state.ease_factor >= MIN_EASE_FACTOR
        assert state.ease_factor == pytest.approx(MIN_EASE_FACTOR)

    def test_same_input_gives_same_output(self):
        assert schedule_review(NEW_CARD, 4, NOW) == schedule_review(NEW_CARD, 4, NOW)

    @pytest.mark.parametrize("quality", [-1, 6, 2.5, "3", True])
    def test_rejects_invalid_quality(self, quality):
        with pytest.raises(ValueError):
            schedule_review(NEW_CARD, quality, NOW)
