import pytest
from unittest.mock import patch

from microlearn.answers import record_answer
from microlearn.app import (
    EXIT_WORDS, SessionExitRequested, session_prompt, session_int_prompt,
    run_card, render_card, cmd_learn, cmd_review, choose_learner,
)
from microlearn.catalog import get_card, list_cards
from microlearn.learners import get_learner, get_learner_by_username, update_user_level, update_user_stats
from microlearn.progression import get_completed_card_ids, get_current_card, mark_card_completed
from microlearn.review import is_in_review_mode
from conftest import START, set_cursor


def test_exit_words_ignore_case_and_padding():
    for word in ("Q", " menu ", "MENU"):
        with patch("microlearn.app.Prompt.ask", return_value=word):
            with pytest.raises(SessionExitRequested):
                session_prompt("Press Enter to continue")


def test_continue_prompt_passes_blank_input_through():
    with patch("microlearn.app.Prompt.ask", return_value="") as ask:
        assert session_prompt("Press Enter to continue", default="") == ""
    assert ask.call_args.kwargs["default"] == ""


def test_answer_prompt_accepts_exit_words_as_hidden_choices():
    with patch("microlearn.app.Prompt.ask", return_value="3") as ask:
        assert session_int_prompt("Your answer", choices=["1", "2", "3"]) == 3
    kwargs = ask.call_args.kwargs
    assert kwargs["choices"] == ["1", "2", "3", *EXIT_WORDS]
    assert kwargs["show_choices"] is False


def test_render_every_card_kind(db):
    for card in list_cards(db)[:3]:
        render_card(card)


def test_run_card_concept_advances(db, learner_id):
    with patch("microlearn.app.Prompt.ask", return_value=""):
        run_card(db, learner_id, get_card(db, "lesson-1-concept"))
    assert get_learner(db, learner_id).cursor == 1


def test_run_card_question_grades_answer(db, learner_id):
    set_cursor(db, learner_id, 2)
    with patch("microlearn.app.Prompt.ask", return_value="2"):
        run_card(db, learner_id, get_card(db, "lesson-1-question"))
    learner = get_learner(db, learner_id)
    assert learner.total_correct == 1
    assert learner.cursor == 3


def test_run_card_exit_leaves_cursor(db, learner_id):
    set_cursor(db, learner_id, 2)
    with patch("microlearn.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            run_card(db, learner_id, get_card(db, "lesson-1-question"))
    learner = get_learner(db, learner_id)
    assert learner.cursor == 2
    assert learner.total_answered == 0


def test_cmd_learn_stops_at_locked_topic(db, learner_id):
    update_user_level(db, learner_id, "intermediate")
    mark_card_completed(db, learner_id, "lesson-1-question", now=START)
    mark_card_completed(db, learner_id, "lesson-2-question", now=START)
    set_cursor(db, learner_id, 8)  # lesson-3-question finishes intro-ai
    with patch("microlearn.app.Prompt.ask", return_value="2"):
        cmd_learn(db, learner_id)
    assert get_learner(db, learner_id).cursor == 9


def test_cmd_learn_exit_mid_session(db, learner_id):
    with patch("microlearn.app.Prompt.ask", side_effect=["", "q"]):
        with pytest.raises(SessionExitRequested):
            cmd_learn(db, learner_id)
    assert get_learner(db, learner_id).cursor == 1


def test_cmd_review_nothing_due(db, learner_id):
    cmd_review(db, learner_id)
    assert is_in_review_mode(db, learner_id) is False


def test_cmd_review_runs_due_questions(db, learner_id):
    record_answer(db, learner_id, "lesson-1-question", 1, False, now=START)
    with patch("microlearn.app.Prompt.ask", return_value="2"):
        cmd_review(db, learner_id)
    assert is_in_review_mode(db, learner_id) is False
    assert get_learner(db, learner_id).cursor == 0
    assert get_learner(db, learner_id).total_correct == 1


def test_cmd_review_exit_closes_session(db, learner_id):
    record_answer(db, learner_id, "lesson-1-question", 1, False, now=START)
    with patch("microlearn.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            cmd_review(db, learner_id)
    assert is_in_review_mode(db, learner_id) is False


def test_choose_learner_creates_then_reuses(db):
    with patch("microlearn.app.Prompt.ask", return_value="grace"):
        first = choose_learner(db)
        second = choose_learner(db)
    assert first == second == get_learner_by_username(db, "grace").id


def test_run_card_completes_the_card_it_showed(db, learner_id):
    for card in list_cards(db)[:6] + list_cards(db)[9:11]:
        mark_card_completed(db, learner_id, card.id, now=START)
    for _ in range(2):
        update_user_stats(db, learner_id, True)
    set_cursor(db, learner_id, 8)
    card = get_current_card(db, learner_id)
    assert card.id == "lesson-4-question"
    with patch("microlearn.app.Prompt.ask", return_value="2"):
        run_card(db, learner_id, card)
    completed = get_completed_card_ids(db, learner_id)
    assert "lesson-4-question" in completed
    assert "lesson-3-question" not in completed
