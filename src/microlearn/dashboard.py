"""Learner statistics and achievements."""
from datetime import date
from typing import Optional

from microlearn.catalog import question_ids_by_topic
from microlearn.learners import get_learner
from microlearn.progression import get_completed_card_ids


def get_level_color(level: str) -> str:
    if level == "advanced":
        return "magenta"
    elif level == "intermediate":
        return "cyan"
    return "green"


def get_accuracy_color(accuracy: float) -> str:
    if accuracy >= 90:
        return "green"
    elif accuracy >= 80:
        return "yellow"
    elif accuracy >= 50:
        return "dark_orange"
    return "red"


def _completed_lessons_by_topic(db_path: str, learner_id: str) -> dict[str, tuple[int, int]]:
    completed = get_completed_card_ids(db_path, learner_id)
    return {
        topic_id: (sum(1 for qid in qids if qid in completed), len(qids))
        for topic_id, qids in question_ids_by_topic(db_path).items()
    }


def get_learner_stats(db_path: str, learner_id: str) -> dict:
    learner = get_learner(db_path, learner_id)
    by_topic = _completed_lessons_by_topic(db_path, learner_id)
    return {
        "username": learner.username,
        "level": learner.current_level,
        "credits": learner.credits,
        "streak": learner.streak,
        "total_answered": learner.total_answered,
        "total_correct": learner.total_correct,
        "accuracy": round(learner.accuracy, 1),
        "completed_lessons": sum(done for done, _ in by_topic.values()),
        "total_lessons": sum(total for _, total in by_topic.values()),
    }


def get_achievements(db_path: str, learner_id: str) -> list[dict]:
    stats = get_learner_stats(db_path, learner_id)
    by_topic = _completed_lessons_by_topic(db_path, learner_id)
    topic_mastered = any(total and done == total for done, total in by_topic.values())
    return [
        {
            "id": "first-lesson",
            "title": "First Steps",
            "description": "Complete your first lesson",
            "earned": stats["completed_lessons"] >= 1,
        },
        {
            "id": "five-streak",
            "title": "On Fire",
            "description": "Maintain a 5-day learning streak",
            "earned": stats["streak"] >= 5,
        },
        {
            "id": "perfect-score",
            "title": "Perfect Score",
            "description": "Answer every question correctly",
            "earned": stats["total_correct"] > 0 and stats["total_correct"] == stats["total_answered"],
        },
        {
            "id": "topic-master",
            "title": "Topic Master",
            "description": "Complete every lesson in a topic",
            "earned": topic_mastered,
        },
        {
            "id": "credit-collector",
            "title": "Credit Collector",
            "description": "Earn 500 credits",
            "earned": stats["credits"] >= 500,
        },
        {
            "id": "ai-enthusiast",
            "title": "AI Enthusiast",
            "description": "Complete 10 lessons",
            "earned": stats["completed_lessons"] >= 10,
        },
    ]


def get_active_days(streak: int, today: Optional[date] = None) -> list[int]:
    """Weekdays (Monday=0) covered by the current streak, today first, at most 7."""
    today = today or date.today()
    weekday = today.weekday()
    return [(weekday - i) % 7 for i in range(max(1, min(streak, 7)))]
