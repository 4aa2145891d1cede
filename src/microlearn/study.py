"""Daily plan and answer submission for a learning session."""
from datetime import datetime
from typing import Optional

from loguru import logger

from microlearn.answers import record_answer
from microlearn.catalog import count_cards, get_card
from microlearn.learners import get_learner, touch_streak, update_user_credits, update_user_stats
from microlearn.missions import bump_daily_counter, get_daily_counters, get_missions, update_mission_progress
from microlearn.models import Question
from microlearn.progression import get_catalog_card
from microlearn.review import get_review_questions, is_in_review_mode
from microlearn.topics import blocks_progress, get_topic_status


def submit_answer(
    db_path: str, learner_id: str, question_id: str, choice: int, now: Optional[datetime] = None
) -> dict:
    """Grade an answer and apply every update that follows from it.

    Order: ledger, correct-answer mission, statistics, credits and the
    earn-credits mission, then the streak. Mission rewards are reported
    separately from the question's own credits.
    """
    now = now or datetime.now()
    today = now.date()
    card = get_card(db_path, question_id)
    if not isinstance(card.content, Question):
        raise ValueError(f"Card {question_id} is a {card.kind}, not a question")
    question = card.content
    is_correct = question.is_correct(choice)

    record_answer(db_path, learner_id, card.id, card.lesson_index, is_correct, now)
    mission_rewards = 0
    if is_correct:
        mission_rewards += update_mission_progress(db_path, learner_id, "answer_correct", 1, today)
        bump_daily_counter(db_path, learner_id, "correct_answers", 1, today)

    update_user_stats(db_path, learner_id, is_correct)

    credits = question.credits_reward if is_correct else 0
    if credits:
        update_user_credits(db_path, learner_id, credits)
        bump_daily_counter(db_path, learner_id, "credits_earned", credits, today)
        mission_rewards += update_mission_progress(db_path, learner_id, "earn_credits", credits, today)

    if touch_streak(db_path, learner_id, today):
        mission_rewards += update_mission_progress(db_path, learner_id, "maintain_streak", 1, today)

    logger.debug(f"Learner {learner_id} answered {card.id}: correct={is_correct}")
    return {
        "is_correct": is_correct,
        "correct_index": question.correct_index,
        "explanation": question.explanation,
        "credits_earned": credits,
        "mission_rewards": mission_rewards,
    }


def get_daily_plan(db_path: str, learner_id: str, now: Optional[datetime] = None) -> dict:
    """Summary of what today holds for the learner.

    A new lesson is on offer unless the next catalog card's topic is waiting
    for a scheduled unlock.
    """
    now = now or datetime.now()
    learner = get_learner(db_path, learner_id)
    card = get_catalog_card(db_path, learner_id)
    has_new_lesson = False
    if card is not None:
        status = get_topic_status(db_path, learner_id, card.topic_id, now=now)
        has_new_lesson = not blocks_progress(status)
    return {
        "has_new_lesson": has_new_lesson,
        "review_count": len(get_review_questions(db_path, learner_id, now=now)),
        "missions": get_missions(db_path, learner_id, now.date()),
        "all_lessons_complete": learner.cursor >= count_cards(db_path),
        "in_review": is_in_review_mode(db_path, learner_id),
        "today": get_daily_counters(db_path, learner_id, now.date()),
    }
