import random
from datetime import date, timedelta

import pytest

from microlearn import missions
from microlearn.db import get_connection
from microlearn.errors import LearnerNotFoundError
from microlearn.learners import get_learner
from microlearn.missions import (
    ensure_daily_reset, get_missions, update_mission_progress, bump_daily_counter,
    get_daily_counters,
)

DAY = date(2026, 3, 2)


@pytest.fixture
def fixed_missions(monkeypatch):
    """Draw answer_correct, complete_lessons and earn_credits every day."""
    templates = [t for t in missions.MISSION_TEMPLATES if t["mission_type"] != "maintain_streak"]
    monkeypatch.setattr(missions, "MISSION_TEMPLATES", templates)
    return {t["mission_type"]: t for t in templates}


def test_three_distinct_missions_per_day(db, learner_id):
    assert ensure_daily_reset(db, learner_id, DAY, rng=random.Random(7)) is True
    drawn = get_missions(db, learner_id, DAY)
    assert len(drawn) == 3
    assert len({m.mission_type for m in drawn}) == 3
    assert all(m.progress == 0 and not m.completed for m in drawn)


def test_no_reset_within_the_same_day(db, learner_id):
    ensure_daily_reset(db, learner_id, DAY)
    assert ensure_daily_reset(db, learner_id, DAY) is False


def test_progress_and_reward_paid_once(db, learner_id, fixed_missions):
    target = fixed_missions["answer_correct"]["target"]
    reward = fixed_missions["answer_correct"]["reward"]
    for _ in range(target - 1):
        assert update_mission_progress(db, learner_id, "answer_correct", 1, DAY) == 0
    assert get_learner(db, learner_id).credits == 0

    assert update_mission_progress(db, learner_id, "answer_correct", 1, DAY) == reward
    assert get_learner(db, learner_id).credits == reward

    assert update_mission_progress(db, learner_id, "answer_correct", 1, DAY) == 0
    assert get_learner(db, learner_id).credits == reward
    mission = next(m for m in get_missions(db, learner_id, DAY) if m.mission_type == "answer_correct")
    assert mission.progress == target
    assert mission.completed is True


def test_progress_clamped_to_target(db, learner_id, fixed_missions):
    reward = fixed_missions["earn_credits"]["reward"]
    assert update_mission_progress(db, learner_id, "earn_credits", 500, DAY) == reward
    mission = next(m for m in get_missions(db, learner_id, DAY) if m.mission_type == "earn_credits")
    assert mission.progress == mission.target


def test_mission_not_drawn_today_ignores_progress(db, learner_id, fixed_missions):
    assert update_mission_progress(db, learner_id, "maintain_streak", 1, DAY) == 0
    assert get_learner(db, learner_id).credits == 0


def test_unknown_mission_type(db, learner_id):
    with pytest.raises(ValueError):
        update_mission_progress(db, learner_id, "collect_stamps", 1, DAY)


def test_non_positive_amount_is_ignored(db, learner_id, fixed_missions):
    assert update_mission_progress(db, learner_id, "answer_correct", 0, DAY) == 0
    assert all(m.progress == 0 for m in get_missions(db, learner_id, DAY))


def test_missions_reset_next_day(db, learner_id, fixed_missions):
    update_mission_progress(db, learner_id, "answer_correct", 2, DAY)
    bump_daily_counter(db, learner_id, "cards_completed", 4, DAY)
    tomorrow = DAY + timedelta(days=1)
    assert all(m.progress == 0 for m in get_missions(db, learner_id, tomorrow))
    assert get_daily_counters(db, learner_id, tomorrow)["cards_completed"] == 0


def test_completed_mission_can_be_earned_again_next_day(db, learner_id, fixed_missions):
    reward = fixed_missions["earn_credits"]["reward"]
    update_mission_progress(db, learner_id, "earn_credits", 50, DAY)
    update_mission_progress(db, learner_id, "earn_credits", 50, DAY + timedelta(days=1))
    assert get_learner(db, learner_id).credits == 2 * reward


def test_reward_counts_toward_todays_credits(db, learner_id, fixed_missions):
    reward = fixed_missions["complete_lessons"]["reward"]
    update_mission_progress(db, learner_id, "complete_lessons", 10, DAY)
    assert get_daily_counters(db, learner_id, DAY)["credits_earned"] == reward


def test_daily_counters(db, learner_id):
    bump_daily_counter(db, learner_id, "correct_answers", 2, DAY)
    bump_daily_counter(db, learner_id, "cards_completed", 1, DAY)
    assert get_daily_counters(db, learner_id, DAY) == {
        "cards_completed": 1, "correct_answers": 2, "credits_earned": 0,
    }
    with pytest.raises(ValueError):
        bump_daily_counter(db, learner_id, "naps", 1, DAY)


def test_reset_for_unknown_learner_writes_nothing(db):
    with pytest.raises(LearnerNotFoundError):
        ensure_daily_reset(db, "ghost", DAY)
    conn = get_connection(db)
    assert conn.execute("SELECT COUNT(*) FROM daily_state").fetchone()[0] == 0
    conn.close()
