"""Daily missions and per-day activity counters.

Three missions are drawn each calendar day from a fixed pool. Nothing runs
on a timer: every read or update first checks whether the stored reset
date is still today and resamples when it is not.
"""
import random
from datetime import date
from typing import Optional

from loguru import logger

from microlearn.db import get_connection
from microlearn.learners import get_learner, update_user_credits
from microlearn.models import MISSION_TYPES, DailyMission

MISSIONS_PER_DAY = 3

MISSION_TEMPLATES = [
    {"mission_type": "answer_correct", "title": "Answer 5 questions correctly", "target": 5, "reward": 20},
    {"mission_type": "complete_lessons", "title": "Complete 2 lessons", "target": 2, "reward": 25},
    {"mission_type": "earn_credits", "title": "Earn 50 credits", "target": 50, "reward": 15},
    {"mission_type": "maintain_streak", "title": "Keep your streak alive", "target": 1, "reward": 10},
]

DAILY_COUNTERS = ("cards_completed", "correct_answers", "credits_earned")


def ensure_daily_reset(
    db_path: str,
    learner_id: str,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> bool:
    """Draw today's missions and zero the day's counters if the date changed.

    Returns True when a reset happened.
    """
    get_learner(db_path, learner_id)
    today = today or date.today()
    conn = get_connection(db_path)
    state = conn.execute(
        "SELECT last_reset FROM daily_state WHERE learner_id = ?", (learner_id,)
    ).fetchone()
    if state is not None and state["last_reset"] == today.isoformat():
        conn.close()
        return False

    chosen = (rng or random).sample(MISSION_TEMPLATES, MISSIONS_PER_DAY)
    conn.execute("DELETE FROM daily_missions WHERE learner_id = ?", (learner_id,))
    for template in chosen:
        conn.execute(
            """INSERT INTO daily_missions (learner_id, mission_type, title, target, reward)
            VALUES (?, ?, ?, ?, ?)""",
            (learner_id, template["mission_type"], template["title"], template["target"], template["reward"]),
        )
    conn.execute(
        """INSERT INTO daily_state (learner_id, last_reset) VALUES (?, ?)
        ON CONFLICT(learner_id) DO UPDATE SET last_reset = excluded.last_reset,
            cards_completed = 0, correct_answers = 0, credits_earned = 0""",
        (learner_id, today.isoformat()),
    )
    conn.commit()
    conn.close()
    logger.debug(f"Daily missions reset for {learner_id}: {[t['mission_type'] for t in chosen]}")
    return True


def get_missions(db_path: str, learner_id: str, today: Optional[date] = None) -> list[DailyMission]:
    ensure_daily_reset(db_path, learner_id, today)
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM daily_missions WHERE learner_id = ? ORDER BY id", (learner_id,)
    ).fetchall()
    conn.close()
    return [DailyMission.from_row(r) for r in rows]


def update_mission_progress(
    db_path: str,
    learner_id: str,
    mission_type: str,
    amount: int = 1,
    today: Optional[date] = None,
) -> int:
    """Add progress to today's mission of this type.

    Progress is clamped to the target. The call that reaches the target
    completes the mission and pays its reward; the credits paid are
    returned (0 on every other call, and when the type was not drawn today).
    """
    if mission_type not in MISSION_TYPES:
        raise ValueError(f"Unknown mission type: {mission_type}")
    if amount <= 0:
        return 0
    ensure_daily_reset(db_path, learner_id, today)
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM daily_missions WHERE learner_id = ? AND mission_type = ?",
        (learner_id, mission_type),
    ).fetchone()
    if row is None or row["completed"]:
        conn.close()
        return 0
    progress = min(row["target"], row["progress"] + amount)
    completed = progress >= row["target"]
    conn.execute(
        "UPDATE daily_missions SET progress = ?, completed = ? WHERE id = ?",
        (progress, int(completed), row["id"]),
    )
    conn.commit()
    conn.close()
    if not completed:
        return 0
    update_user_credits(db_path, learner_id, row["reward"])
    bump_daily_counter(db_path, learner_id, "credits_earned", row["reward"], today)
    logger.info(f"Mission {mission_type} completed by {learner_id}: +{row['reward']} credits")
    return row["reward"]


def bump_daily_counter(
    db_path: str, learner_id: str, counter: str, amount: int = 1, today: Optional[date] = None
) -> None:
    if counter not in DAILY_COUNTERS:
        raise ValueError(f"Unknown daily counter: {counter}")
    ensure_daily_reset(db_path, learner_id, today)
    conn = get_connection(db_path)
    conn.execute(
        f"UPDATE daily_state SET {counter} = {counter} + ? WHERE learner_id = ?",
        (amount, learner_id),
    )
    conn.commit()
    conn.close()


def get_daily_counters(db_path: str, learner_id: str, today: Optional[date] = None) -> dict:
    ensure_daily_reset(db_path, learner_id, today)
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM daily_state WHERE learner_id = ?", (learner_id,)
    ).fetchone()
    conn.close()
    return {counter: row[counter] for counter in DAILY_COUNTERS}
