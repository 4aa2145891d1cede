"""Learner records: credits, streak, accuracy counters and difficulty tier."""
import uuid
from datetime import date, datetime, timedelta
from typing import Optional

from loguru import logger

from microlearn.db import get_connection
from microlearn.errors import LearnerNotFoundError
from microlearn.models import LEVELS, Learner


def create_learner(db_path: str, username: str, now: Optional[datetime] = None) -> Learner:
    """Register a learner. The start date fixes day 1 for topic unlocks."""
    learner_id = str(uuid.uuid4())
    start = now or datetime.now()
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO learners (id, username, start_date) VALUES (?, ?, ?)",
        (learner_id, username, start.isoformat()),
    )
    conn.commit()
    conn.close()
    logger.info(f"Created learner {username} ({learner_id})")
    return get_learner(db_path, learner_id)


def get_learner(db_path: str, learner_id: str) -> Learner:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM learners WHERE id = ?", (learner_id,)).fetchone()
    conn.close()
    if row is None:
        raise LearnerNotFoundError(learner_id)
    return Learner.from_row(row)


def get_learner_by_username(db_path: str, username: str) -> Learner | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM learners WHERE username = ?", (username,)).fetchone()
    conn.close()
    return Learner.from_row(row) if row else None


def _update(db_path: str, learner_id: str, sql: str, params: tuple) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute(sql, params + (learner_id,))
    conn.commit()
    conn.close()
    if cursor.rowcount == 0:
        raise LearnerNotFoundError(learner_id)


def update_user_stats(db_path: str, learner_id: str, is_correct: bool) -> None:
    """Count one answered question, and one correct answer if it was right."""
    _update(
        db_path, learner_id,
        """UPDATE learners SET total_answered = total_answered + 1,
        total_correct = total_correct + ? WHERE id = ?""",
        (int(bool(is_correct)),),
    )


def update_user_credits(db_path: str, learner_id: str, amount: int) -> None:
    """Add credits to the balance. Negative amounts never take it below zero."""
    _update(
        db_path, learner_id,
        "UPDATE learners SET credits = MAX(0, credits + ?) WHERE id = ?",
        (amount,),
    )


def update_user_level(db_path: str, learner_id: str, level: str) -> None:
    if level not in LEVELS:
        raise ValueError(f"Unknown level: {level}")
    _update(db_path, learner_id, "UPDATE learners SET current_level = ? WHERE id = ?", (level,))


def update_user_streak(db_path: str, learner_id: str, streak: int) -> None:
    _update(db_path, learner_id, "UPDATE learners SET streak = ? WHERE id = ?", (max(0, streak),))


def touch_streak(db_path: str, learner_id: str, today: Optional[date] = None) -> bool:
    """Record activity for today and maintain the consecutive-day streak.

    Returns True the first time it is called on a given day, False after.
    """
    today = today or date.today()
    learner = get_learner(db_path, learner_id)
    if learner.last_active_date == today:
        return False
    if learner.last_active_date == today - timedelta(days=1):
        streak = learner.streak + 1
    else:
        streak = 1
    update_user_streak(db_path, learner_id, streak)
    _update(
        db_path, learner_id,
        "UPDATE learners SET last_active_date = ? WHERE id = ?",
        (today.isoformat(),),
    )
    logger.debug(f"Learner {learner_id} streak now {streak}")
    return True
