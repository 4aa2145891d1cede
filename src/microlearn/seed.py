"""Load the card catalog into the database."""
import json
from pathlib import Path

from loguru import logger

from microlearn.db import get_connection
from microlearn.models import CARD_KINDS, LEVELS, content_from_dict, content_to_dict, step_for_kind

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database already holds a catalog."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM topics").fetchone()[0]
    conn.close()
    return count > 0


def load_catalog_file(path: Path = CONTENT_DIR / "catalog.json") -> dict:
    return json.loads(Path(path).read_text())


def card_id(lesson: dict, kind: str) -> str:
    prefix = lesson.get("id") or f"lesson-{lesson['lesson_index']}"
    return f"{prefix}-{kind}"


def seed_catalog(db_path: str, data: dict) -> int:
    """Insert topics and their lessons' cards. Returns the number of cards written.

    Each lesson expands into up to three cards (concept, example, question)
    sharing its lesson_index. Payloads are validated by building the typed
    content before they are stored.
    """
    conn = get_connection(db_path)
    written = 0
    for topic in data["topics"]:
        conn.execute(
            "INSERT OR IGNORE INTO topics (id, title, sort_order, unlock_day) VALUES (?, ?, ?, ?)",
            (topic["id"], topic["title"], topic["order"], topic.get("unlock_day", 1)),
        )
        for lesson in topic["lessons"]:
            difficulty = lesson.get("difficulty", "beginner")
            if difficulty not in LEVELS:
                raise ValueError(f"Unknown difficulty {difficulty!r} in lesson {lesson['lesson_index']}")
            for kind in CARD_KINDS:
                if kind not in lesson:
                    continue
                content = content_from_dict(kind, lesson[kind])
                cursor = conn.execute(
                    """INSERT OR IGNORE INTO cards
                    (id, kind, topic_id, difficulty, lesson_index, step, content)
                    VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        card_id(lesson, kind), kind, topic["id"], difficulty,
                        lesson["lesson_index"], step_for_kind(kind),
                        json.dumps(content_to_dict(content)),
                    ),
                )
                written += cursor.rowcount
    conn.commit()
    conn.close()
    logger.info(f"Seeded {written} cards across {len(data['topics'])} topics")
    return written


def seed_all(db_path: str) -> None:
    """Seed the bundled catalog once."""
    if is_seeded(db_path):
        return
    seed_catalog(db_path, load_catalog_file())
