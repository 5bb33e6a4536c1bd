from src.services.scheduling.sm2 import ReviewOutcome, SchedulingState, schedule_review

__all__ = ["ReviewOutcome", "SchedulingState", "schedule_review"]
