"""Progression engine: what a learner sees next and when they move up a tier.

Each learner has a cursor into the ordered catalog that only moves forward,
one card per advance. The card shown at the cursor may be swapped for an
easier one while the learner is still a beginner; that swap never moves
the cursor. An active review session takes over both reading and
advancing until it ends.
"""
from datetime import datetime
from typing import Optional

from loguru import logger

from microlearn.catalog import count_cards, get_card, list_cards
from microlearn.db import get_connection
from microlearn.learners import get_learner, update_user_level
from microlearn.missions import bump_daily_counter, update_mission_progress
from microlearn.models import Learner, LearningCard
from microlearn import review, topics

# (from_level, to_level, min_accuracy, min_answered)
PROMOTION_RULES = (
    ("beginner", "intermediate", 80, 3),
    ("intermediate", "advanced", 90, 6),
)
EARLY_INTERMEDIATE_MIN_CORRECT = 3


def get_completed_card_ids(db_path: str, learner_id: str) -> set[str]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT card_id FROM completed_cards WHERE learner_id = ?", (learner_id,)
    ).fetchall()
    conn.close()
    return {r["card_id"] for r in rows}


def needs_easier_card(card: LearningCard, learner: Learner) -> bool:
    if learner.current_level != "beginner":
        return False
    if card.difficulty == "advanced":
        return True
    return card.difficulty == "intermediate" and learner.total_correct < EARLY_INTERMEDIATE_MIN_CORRECT


def get_catalog_card(db_path: str, learner_id: str) -> LearningCard | None:
    """The card at the learner's cursor after the difficulty gate, ignoring review."""
    learner = get_learner(db_path, learner_id)
    cards = list_cards(db_path)
    if learner.cursor >= len(cards):
        return None
    card = cards[learner.cursor]
    if not needs_easier_card(card, learner):
        return card
    completed = get_completed_card_ids(db_path, learner_id)
    for candidate in cards:
        if candidate.difficulty == "beginner" and candidate.id not in completed:
            return candidate
    return card


def get_current_card(db_path: str, learner_id: str) -> LearningCard | None:
    """The card to show now, or None when there is nothing left."""
    if review.is_in_review_mode(db_path, learner_id):
        return review.get_current_review_card(db_path, learner_id)
    return get_catalog_card(db_path, learner_id)


def mark_card_completed(
    db_path: str, learner_id: str, card_id: str, now: Optional[datetime] = None
) -> bool:
    """Add a card to the completed set. Returns False if it was already there."""
    now = now or datetime.now()
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT OR IGNORE INTO completed_cards (learner_id, card_id, completed_at) VALUES (?, ?, ?)",
        (learner_id, card_id, now.isoformat()),
    )
    conn.commit()
    conn.close()
    return cursor.rowcount > 0


def increment_cursor(db_path: str, learner_id: str) -> int:
    """Move the catalog cursor forward by one, stopping at the end of the catalog."""
    total = len(list_cards(db_path))
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE learners SET cursor = MIN(cursor + 1, ?) WHERE id = ?", (total, learner_id)
    )
    conn.commit()
    cursor = conn.execute("SELECT cursor FROM learners WHERE id = ?", (learner_id,)).fetchone()[0]
    conn.close()
    return cursor


def evaluate_promotion(db_path: str, learner_id: str) -> str | None:
    """Promote the learner one tier if their accuracy qualifies. Returns the new level."""
    learner = get_learner(db_path, learner_id)
    for from_level, to_level, min_accuracy, min_answered in PROMOTION_RULES:
        if (
            learner.current_level == from_level
            and learner.accuracy >= min_accuracy
            and learner.total_answered >= min_answered
        ):
            update_user_level(db_path, learner_id, to_level)
            logger.info(
                f"Learner {learner_id} promoted to {to_level} "
                f"({learner.accuracy:.0f}% over {learner.total_answered} answers)"
            )
            return to_level
    return None


def advance_to_next_card(
    db_path: str,
    learner_id: str,
    now: Optional[datetime] = None,
    card_id: Optional[str] = None,
) -> None:
    """Finish the current card and move on.

    During review this only steps the review session. Otherwise the card
    the learner was shown is marked completed; a newly completed question
    card counts as a finished lesson for the topic gate and the daily
    missions. The cursor then moves forward by one and the learner's tier
    is re-evaluated.

    Pass `card_id` with the card that was displayed. Answering a question
    can change which card the difficulty gate resolves to, so without it
    the card at the cursor is resolved again and may differ.
    """
    now = now or datetime.now()
    if review.is_in_review_mode(db_path, learner_id):
        review.advance_review(db_path, learner_id)
        return

    if card_id is not None:
        card = get_card(db_path, card_id)
        if get_learner(db_path, learner_id).cursor >= count_cards(db_path):
            card = None
    else:
        card = get_catalog_card(db_path, learner_id)
    if card is not None:
        newly_completed = mark_card_completed(db_path, learner_id, card.id, now)
        if newly_completed:
            bump_daily_counter(db_path, learner_id, "cards_completed", 1, now.date())
        if newly_completed and card.is_question:
            topics.on_lesson_completed(db_path, learner_id, card.topic_id, now)
            update_mission_progress(db_path, learner_id, "complete_lessons", 1, now.date())
        position = increment_cursor(db_path, learner_id)
        logger.debug(f"Learner {learner_id} completed {card.id}, cursor now {position}")
    evaluate_promotion(db_path, learner_id)
