"""Topic unlock gate.

Two policies, chosen by the ``unlock_policy`` setting:

- ``static``: a topic opens on a fixed day counted from the learner's start
  date (``unlock_day``, day 1 being the start date).
- ``chained``: the first topic is open from the start date; every later
  topic opens at midnight after the day its predecessor's last question
  card was completed.
"""
import math
from datetime import datetime, time, timedelta
from typing import Optional

from loguru import logger

from microlearn.catalog import list_topics, question_ids_by_topic
from microlearn.db import get_connection
from microlearn.errors import TopicNotFoundError
from microlearn.learners import get_learner
from microlearn.models import TopicStatus
from microlearn.settings import get_unlock_policy

SECONDS_PER_DAY = 24 * 60 * 60


def days_since_start(start_date: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Day number of `now` in the learner's programme, starting at 1."""
    if start_date is None:
        return 1
    now = now or datetime.now()
    elapsed = (now - start_date).total_seconds()
    return max(1, math.ceil(elapsed / SECONDS_PER_DAY))


def static_unlock_date(start_date: Optional[datetime], unlock_day: int) -> Optional[datetime]:
    """Boundary of the unlock day counted from the start date.

    Day numbers round elapsed time up, so at exactly this instant the topic
    is still on the previous day and locked; it opens immediately after.
    """
    if start_date is None:
        return None
    return start_date + timedelta(days=unlock_day - 1)


def next_midnight(now: datetime) -> datetime:
    return datetime.combine(now.date() + timedelta(days=1), time.min)


def _completed_card_ids(db_path: str, learner_id: str) -> set[str]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT card_id FROM completed_cards WHERE learner_id = ?", (learner_id,)
    ).fetchall()
    conn.close()
    return {r["card_id"] for r in rows}


def get_unlock_times(db_path: str, learner_id: str) -> dict[str, datetime]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT topic_id, unlocks_at FROM topic_unlocks WHERE learner_id = ?", (learner_id,)
    ).fetchall()
    conn.close()
    return {r["topic_id"]: datetime.fromisoformat(r["unlocks_at"]) for r in rows}


def on_lesson_completed(
    db_path: str, learner_id: str, topic_id: str, now: Optional[datetime] = None
) -> Optional[datetime]:
    """Schedule the next topic's unlock once every lesson of `topic_id` is done.

    Returns the unlock time when one was newly scheduled. An unlock time,
    once written, is never moved or cleared.
    """
    now = now or datetime.now()
    topics = list_topics(db_path)
    position = next((i for i, t in enumerate(topics) if t.id == topic_id), None)
    if position is None or position + 1 >= len(topics):
        return None
    question_ids = question_ids_by_topic(db_path).get(topic_id, [])
    completed = _completed_card_ids(db_path, learner_id)
    if not all(qid in completed for qid in question_ids):
        return None

    next_topic = topics[position + 1]
    unlocks_at = next_midnight(now)
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT OR IGNORE INTO topic_unlocks (learner_id, topic_id, unlocks_at) VALUES (?, ?, ?)",
        (learner_id, next_topic.id, unlocks_at.isoformat()),
    )
    conn.commit()
    conn.close()
    if cursor.rowcount == 0:
        return None
    logger.info(f"Topic {next_topic.id} unlocks for {learner_id} at {unlocks_at.isoformat()}")
    return unlocks_at


def get_topics(db_path: str, learner_id: str, now: Optional[datetime] = None) -> list[TopicStatus]:
    """Every topic with the learner's lesson progress and lock state."""
    learner = get_learner(db_path, learner_id)
    now = now or datetime.now()
    policy = get_unlock_policy(db_path)
    question_ids = question_ids_by_topic(db_path)
    completed = _completed_card_ids(db_path, learner_id)
    unlock_times = get_unlock_times(db_path, learner_id)

    statuses = []
    for position, topic in enumerate(list_topics(db_path)):
        lessons = question_ids.get(topic.id, [])
        if policy == "static":
            is_locked = days_since_start(learner.start_date, now) < topic.unlock_day
            unlocks_at = static_unlock_date(learner.start_date, topic.unlock_day) if is_locked else None
        else:
            unlocks_at = unlock_times.get(topic.id)
            if position == 0:
                # open from the start date, or at once when it is unknown
                unlocks_at = unlocks_at or learner.start_date
                is_locked = unlocks_at is not None and unlocks_at > now
            else:
                is_locked = unlocks_at is None or unlocks_at > now
        statuses.append(TopicStatus(
            id=topic.id,
            title=topic.title,
            order=topic.order,
            lesson_count=len(lessons),
            completed_lessons=sum(1 for qid in lessons if qid in completed),
            is_locked=is_locked,
            unlocks_at=unlocks_at,
        ))
    return statuses


def blocks_progress(status: TopicStatus) -> bool:
    """Whether new lessons in this topic must wait.

    Only a lock with a scheduled unlock time holds the learner back. A
    chained topic with no unlock time is reached by cards the difficulty
    gate skipped, and waiting on it would never end.
    """
    return status.is_locked and status.unlocks_at is not None


def get_topic_status(
    db_path: str, learner_id: str, topic_id: str, now: Optional[datetime] = None
) -> TopicStatus:
    for status in get_topics(db_path, learner_id, now=now):
        if status.id == topic_id:
            return status
    raise TopicNotFoundError(topic_id)


def is_topic_unlocked(
    db_path: str, learner_id: str, topic_id: str, now: Optional[datetime] = None
) -> bool:
    return not get_topic_status(db_path, learner_id, topic_id, now=now).is_locked
