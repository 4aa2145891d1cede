"""Read-only access to the card catalog."""
from typing import Optional

from microlearn.db import get_connection
from microlearn.errors import CardNotFoundError, TopicNotFoundError
from microlearn.models import LearningCard, Topic

_CARD_SELECT = """SELECT c.*, t.title as topic_title
    FROM cards c JOIN topics t ON c.topic_id = t.id"""


def list_cards(db_path: str) -> list[LearningCard]:
    """All cards, ordered by lesson then step (concept, example, question)."""
    conn = get_connection(db_path)
    rows = conn.execute(f"{_CARD_SELECT} ORDER BY c.lesson_index, c.step").fetchall()
    conn.close()
    return [LearningCard.from_row(r) for r in rows]


def count_cards(db_path: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]
    conn.close()
    return count


def get_card(db_path: str, card_id: str) -> LearningCard:
    conn = get_connection(db_path)
    row = conn.execute(f"{_CARD_SELECT} WHERE c.id = ?", (card_id,)).fetchone()
    conn.close()
    if row is None:
        raise CardNotFoundError(card_id)
    return LearningCard.from_row(row)


def get_question_card(
    db_path: str, lesson_index: int, question_id: Optional[str] = None
) -> Optional[LearningCard]:
    """Resolve the question card of a lesson.

    An exact id match wins; otherwise the first question card sharing the
    lesson index is returned, which tolerates cards re-keyed since the
    answer was recorded.
    """
    conn = get_connection(db_path)
    rows = conn.execute(
        f"{_CARD_SELECT} WHERE c.lesson_index = ? AND c.kind = 'question' ORDER BY c.step, c.id",
        (lesson_index,),
    ).fetchall()
    conn.close()
    if not rows:
        return None
    if question_id is not None:
        for row in rows:
            if row["id"] == question_id:
                return LearningCard.from_row(row)
    return LearningCard.from_row(rows[0])


def list_topics(db_path: str) -> list[Topic]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM topics ORDER BY sort_order").fetchall()
    conn.close()
    return [
        Topic(id=r["id"], title=r["title"], order=r["sort_order"], unlock_day=r["unlock_day"])
        for r in rows
    ]


def get_topic(db_path: str, topic_id: str) -> Topic:
    for topic in list_topics(db_path):
        if topic.id == topic_id:
            return topic
    raise TopicNotFoundError(topic_id)


def question_ids_by_topic(db_path: str) -> dict[str, list[str]]:
    """Question card ids per topic; one question card is one lesson."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT id, topic_id FROM cards WHERE kind = 'question' ORDER BY lesson_index"
    ).fetchall()
    conn.close()
    result: dict[str, list[str]] = {}
    for row in rows:
        result.setdefault(row["topic_id"], []).append(row["id"])
    return result
