"""Spaced-repetition review queue and the review session cursor.

A review session is a priority interrupt over normal progression: while one
is active it supplies the current card and consumes advances, and the
learner's catalog cursor stays where it was.
"""
import json
from datetime import datetime
from typing import Optional

from loguru import logger

from microlearn.answers import get_answer_records
from microlearn.catalog import get_question_card, list_cards
from microlearn.db import get_connection
from microlearn.learners import get_learner
from microlearn.models import LearningCard, ReviewEntry, ReviewSession
from microlearn.spacing import is_due

REVIEW_LIMIT = 5


def get_review_questions(
    db_path: str, learner_id: str, now: Optional[datetime] = None, limit: int = REVIEW_LIMIT
) -> list[dict]:
    """Questions due for review, oldest answer first, capped at `limit`."""
    get_learner(db_path, learner_id)
    now = now or datetime.now()
    questions_by_lesson: dict[int, LearningCard] = {}
    for card in list_cards(db_path):
        if card.is_question:
            questions_by_lesson.setdefault(card.lesson_index, card)

    due = []
    for record in get_answer_records(db_path, learner_id):
        if not is_due(record.is_correct, record.review_count, record.answered_at, now):
            continue
        card = questions_by_lesson.get(record.lesson_index)
        if card is None:
            continue
        due.append({
            "question_id": record.question_id,
            "lesson_index": record.lesson_index,
            "is_correct": record.is_correct,
            "review_count": record.review_count,
            "answered_at": record.answered_at,
            "card": card,
        })
        if len(due) >= limit:
            break
    return due


def get_review_session(db_path: str, learner_id: str) -> ReviewSession:
    get_learner(db_path, learner_id)
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM review_sessions WHERE learner_id = ?", (learner_id,)
    ).fetchone()
    conn.close()
    if row is None:
        return ReviewSession()
    return ReviewSession(
        entries=[ReviewEntry(**e) for e in json.loads(row["entries"])],
        cursor=row["cursor"],
        started_at=datetime.fromisoformat(row["started_at"]) if row["started_at"] else None,
    )


def is_in_review_mode(db_path: str, learner_id: str) -> bool:
    return get_review_session(db_path, learner_id).is_active


def start_review_mode(db_path: str, learner_id: str, now: Optional[datetime] = None) -> int:
    """Snapshot the currently due questions into a review session.

    Returns the number of entries. With nothing due the learner stays out
    of review mode.
    """
    now = now or datetime.now()
    candidates = get_review_questions(db_path, learner_id, now=now)
    if not candidates:
        logger.debug(f"No review candidates for {learner_id}")
        return 0
    entries = [
        {"question_id": c["question_id"], "lesson_index": c["lesson_index"]} for c in candidates
    ]
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO review_sessions (learner_id, entries, cursor, started_at)
        VALUES (?, ?, 0, ?)
        ON CONFLICT(learner_id) DO UPDATE SET
            entries = excluded.entries, cursor = 0, started_at = excluded.started_at""",
        (learner_id, json.dumps(entries), now.isoformat()),
    )
    conn.commit()
    conn.close()
    logger.info(f"Review session started for {learner_id} with {len(entries)} questions")
    return len(entries)


def get_current_review_card(db_path: str, learner_id: str) -> LearningCard | None:
    session = get_review_session(db_path, learner_id)
    if not session.is_active:
        return None
    entry = session.entries[session.cursor]
    return get_question_card(db_path, entry.lesson_index, entry.question_id)


def exit_review_mode(db_path: str, learner_id: str) -> None:
    get_learner(db_path, learner_id)
    conn = get_connection(db_path)
    conn.execute("DELETE FROM review_sessions WHERE learner_id = ?", (learner_id,))
    conn.commit()
    conn.close()
    logger.info(f"Review session ended for {learner_id}")


def advance_review(db_path: str, learner_id: str) -> None:
    """Move to the next review entry; the session ends after the last one."""
    session = get_review_session(db_path, learner_id)
    if not session.is_active:
        return
    cursor = session.cursor + 1
    if cursor >= len(session.entries):
        exit_review_mode(db_path, learner_id)
        return
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE review_sessions SET cursor = ? WHERE learner_id = ?", (cursor, learner_id)
    )
    conn.commit()
    conn.close()
