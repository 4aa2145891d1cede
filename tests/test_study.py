from datetime import timedelta

import pytest

from microlearn.answers import get_answer_record
from microlearn.errors import CardNotFoundError, LearnerNotFoundError
from microlearn.learners import get_learner
from microlearn.missions import get_daily_counters
from microlearn.progression import mark_card_completed
from microlearn.review import start_review_mode
from microlearn.settings import get_setting, set_setting, get_unlock_policy, set_unlock_policy
from microlearn.study import submit_answer, get_daily_plan
from microlearn.topics import on_lesson_completed
from conftest import START, set_cursor


def test_settings_round_trip(db):
    assert get_setting(db, "missing") is None
    assert get_setting(db, "missing", "fallback") == "fallback"
    set_setting(db, "theme", "dark")
    set_setting(db, "theme", "light")
    assert get_setting(db, "theme") == "light"


def test_unlock_policy_defaults_to_chained(db):
    assert get_unlock_policy(db) == "chained"
    set_unlock_policy(db, "static")
    assert get_unlock_policy(db) == "static"


def test_submit_correct_answer(db, learner_id):
    result = submit_answer(db, learner_id, "lesson-1-question", 1, now=START)
    assert result["is_correct"] is True
    assert result["credits_earned"] == 10
    learner = get_learner(db, learner_id)
    assert learner.total_answered == 1
    assert learner.total_correct == 1
    assert learner.credits == result["credits_earned"] + result["mission_rewards"]
    assert learner.streak == 1
    record = get_answer_record(db, learner_id, "lesson-1-question")
    assert record.is_correct is True
    assert record.review_count == 0
    counters = get_daily_counters(db, learner_id, START.date())
    assert counters["correct_answers"] == 1
    assert counters["credits_earned"] == learner.credits


def test_submit_wrong_answer(db, learner_id):
    result = submit_answer(db, learner_id, "lesson-1-question", 0, now=START)
    assert result["is_correct"] is False
    assert result["correct_index"] == 1
    assert result["credits_earned"] == 0
    learner = get_learner(db, learner_id)
    assert learner.total_answered == 1
    assert learner.total_correct == 0
    assert learner.credits == result["mission_rewards"]


def test_resubmitting_counts_a_review(db, learner_id):
    submit_answer(db, learner_id, "lesson-1-question", 0, now=START)
    submit_answer(db, learner_id, "lesson-1-question", 1, now=START + timedelta(minutes=5))
    assert get_answer_record(db, learner_id, "lesson-1-question").review_count == 1
    assert get_learner(db, learner_id).total_answered == 2


def test_streak_counted_once_per_day(db, learner_id):
    submit_answer(db, learner_id, "lesson-1-question", 1, now=START)
    submit_answer(db, learner_id, "lesson-2-question", 1, now=START + timedelta(hours=1))
    assert get_learner(db, learner_id).streak == 1
    submit_answer(db, learner_id, "lesson-4-question", 1, now=START + timedelta(days=1))
    assert get_learner(db, learner_id).streak == 2


def test_submit_answer_rejects_non_question(db, learner_id):
    with pytest.raises(ValueError):
        submit_answer(db, learner_id, "lesson-1-concept", 0, now=START)
    with pytest.raises(CardNotFoundError):
        submit_answer(db, learner_id, "nope", 0, now=START)


def test_daily_plan_for_new_learner(db, learner_id):
    plan = get_daily_plan(db, learner_id, now=START)
    assert plan["has_new_lesson"] is True
    assert plan["review_count"] == 0
    assert len(plan["missions"]) == 3
    assert plan["all_lessons_complete"] is False
    assert plan["in_review"] is False
    assert plan["today"]["cards_completed"] == 0


def test_daily_plan_counts_due_reviews(db, learner_id):
    submit_answer(db, learner_id, "lesson-1-question", 0, now=START)
    assert get_daily_plan(db, learner_id, now=START)["review_count"] == 1


def test_daily_plan_reports_active_review(db, learner_id):
    submit_answer(db, learner_id, "lesson-1-question", 0, now=START)
    start_review_mode(db, learner_id, now=START)
    assert get_daily_plan(db, learner_id, now=START)["in_review"] is True


def test_no_new_lesson_while_next_topic_locked(db, learner_id):
    for qid in ("lesson-1-question", "lesson-2-question", "lesson-3-question"):
        mark_card_completed(db, learner_id, qid, now=START)
    on_lesson_completed(db, learner_id, "intro-ai", now=START)
    set_cursor(db, learner_id, 9)  # first card of ml-basics
    plan = get_daily_plan(db, learner_id, now=START)
    assert plan["has_new_lesson"] is False
    assert plan["all_lessons_complete"] is False
    assert get_daily_plan(db, learner_id, now=START + timedelta(days=1))["has_new_lesson"] is True


def test_unscheduled_chained_topic_does_not_block(db, learner_id):
    set_cursor(db, learner_id, 9)
    assert get_daily_plan(db, learner_id, now=START)["has_new_lesson"] is True


def test_static_policy_blocks_until_unlock_day(db, learner_id):
    set_unlock_policy(db, "static")
    set_cursor(db, learner_id, 9)  # ml-basics opens on day 2
    assert get_daily_plan(db, learner_id, now=START)["has_new_lesson"] is False
    assert get_daily_plan(db, learner_id, now=START + timedelta(days=1, hours=1))["has_new_lesson"] is True


def test_all_lessons_complete(db, learner_id):
    set_cursor(db, learner_id, 24)
    plan = get_daily_plan(db, learner_id, now=START)
    assert plan["all_lessons_complete"] is True
    assert plan["has_new_lesson"] is False


def test_submit_answer_unknown_learner(db):
    with pytest.raises(LearnerNotFoundError):
        submit_answer(db, "ghost", "lesson-1-question", 1, now=START)
