"""Answer history ledger: one record per question a learner has answered."""
from datetime import datetime
from typing import Optional

from loguru import logger

from microlearn.catalog import get_card
from microlearn.db import get_connection
from microlearn.learners import get_learner
from microlearn.models import AnswerRecord


def record_answer(
    db_path: str,
    learner_id: str,
    question_id: str,
    lesson_index: int,
    is_correct: bool,
    now: Optional[datetime] = None,
) -> AnswerRecord:
    """Insert or update the learner's record for a question.

    A repeat answer overwrites the outcome and timestamp and counts as one
    more review. Credits and statistics are updated by separate calls.
    Unknown learners and question ids raise their not-found errors.
    """
    get_learner(db_path, learner_id)
    if not get_card(db_path, question_id).is_question:
        raise ValueError(f"Card {question_id} is not a question")
    answered_at = (now or datetime.now()).isoformat()
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO answer_records
        (learner_id, question_id, lesson_index, is_correct, answered_at, review_count)
        VALUES (?, ?, ?, ?, ?, 0)
        ON CONFLICT(learner_id, question_id) DO UPDATE SET
            lesson_index = excluded.lesson_index,
            is_correct = excluded.is_correct,
            answered_at = excluded.answered_at,
            review_count = review_count + 1""",
        (learner_id, question_id, lesson_index, int(is_correct), answered_at),
    )
    conn.commit()
    row = conn.execute(
        "SELECT * FROM answer_records WHERE learner_id = ? AND question_id = ?",
        (learner_id, question_id),
    ).fetchone()
    conn.close()
    record = AnswerRecord.from_row(row)
    logger.debug(
        f"Answer {question_id} for {learner_id}: correct={record.is_correct} reviews={record.review_count}"
    )
    return record


def get_answer_record(db_path: str, learner_id: str, question_id: str) -> AnswerRecord | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM answer_records WHERE learner_id = ? AND question_id = ?",
        (learner_id, question_id),
    ).fetchone()
    conn.close()
    return AnswerRecord.from_row(row) if row else None


def get_answer_records(db_path: str, learner_id: str) -> list[AnswerRecord]:
    """All of a learner's records, oldest answer first."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM answer_records WHERE learner_id = ? ORDER BY answered_at ASC, question_id",
        (learner_id,),
    ).fetchall()
    conn.close()
    return [AnswerRecord.from_row(r) for r in rows]


def get_answer_score(db_path: str, learner_id: str) -> float:
    """Share of distinct questions whose latest answer is correct, as a percentage."""
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT COUNT(*) as total, SUM(is_correct) as correct FROM answer_records WHERE learner_id = ?",
        (learner_id,),
    ).fetchone()
    conn.close()
    if row["total"] == 0:
        return 0.0
    return round((row["correct"] / row["total"]) * 100, 1)
