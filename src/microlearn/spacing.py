"""Spaced repetition intervals for answered questions."""
from datetime import datetime

# 1 day, 3 days, 7 days; the last interval repeats.
REVIEW_INTERVAL_HOURS = (24, 72, 168)


def review_interval_hours(review_count: int) -> int:
    """Hours a correct answer rests before it is due again."""
    index = min(max(review_count, 0), len(REVIEW_INTERVAL_HOURS) - 1)
    return REVIEW_INTERVAL_HOURS[index]


def hours_since(then: datetime, now: datetime) -> float:
    return (now - then).total_seconds() / 3600


def is_due(is_correct: bool, review_count: int, answered_at: datetime, now: datetime) -> bool:
    """Whether an answered question should be resurfaced.

    Args:
        is_correct: Outcome of the latest attempt
        review_count: Times the question has been re-answered
        answered_at: Time of the latest attempt
        now: Reference time

    Returns:
        True for any wrong answer; for a correct one, once its interval has elapsed.
    """
    if not is_correct:
        return True
    return hours_since(answered_at, now) >= review_interval_hours(review_count)
