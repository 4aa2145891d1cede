"""Database initialization and connection management."""
import os
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "MICROLEARN_DB", str(Path.home() / ".microlearn" / "microlearn.db")
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS topics (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    sort_order INTEGER NOT NULL,
    unlock_day INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS cards (
    id TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    topic_id TEXT NOT NULL REFERENCES topics(id),
    difficulty TEXT NOT NULL DEFAULT 'beginner',
    lesson_index INTEGER NOT NULL,
    step INTEGER NOT NULL,
    content TEXT NOT NULL,  -- JSON
    UNIQUE(lesson_index, step)
);

CREATE TABLE IF NOT EXISTS learners (
    id TEXT PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    credits INTEGER NOT NULL DEFAULT 0,
    streak INTEGER NOT NULL DEFAULT 0,
    total_answered INTEGER NOT NULL DEFAULT 0,
    total_correct INTEGER NOT NULL DEFAULT 0,
    current_level TEXT NOT NULL DEFAULT 'beginner',
    start_date TEXT,
    cursor INTEGER NOT NULL DEFAULT 0,
    last_active_date TEXT
);

CREATE TABLE IF NOT EXISTS completed_cards (
    learner_id TEXT NOT NULL REFERENCES learners(id),
    card_id TEXT NOT NULL REFERENCES cards(id),
    completed_at TEXT,
    PRIMARY KEY (learner_id, card_id)
);

CREATE TABLE IF NOT EXISTS answer_records (
    learner_id TEXT NOT NULL REFERENCES learners(id),
    question_id TEXT NOT NULL,
    lesson_index INTEGER NOT NULL,
    is_correct INTEGER NOT NULL,
    answered_at TEXT NOT NULL,
    review_count INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (learner_id, question_id)
);

CREATE TABLE IF NOT EXISTS review_sessions (
    learner_id TEXT PRIMARY KEY REFERENCES learners(id),
    entries TEXT NOT NULL DEFAULT '[]',  -- JSON
    cursor INTEGER NOT NULL DEFAULT 0,
    started_at TEXT
);

CREATE TABLE IF NOT EXISTS topic_unlocks (
    learner_id TEXT NOT NULL REFERENCES learners(id),
    topic_id TEXT NOT NULL REFERENCES topics(id),
    unlocks_at TEXT NOT NULL,
    PRIMARY KEY (learner_id, topic_id)
);

CREATE TABLE IF NOT EXISTS daily_state (
    learner_id TEXT PRIMARY KEY REFERENCES learners(id),
    last_reset TEXT NOT NULL,
    cards_completed INTEGER NOT NULL DEFAULT 0,
    correct_answers INTEGER NOT NULL DEFAULT 0,
    credits_earned INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS daily_missions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id TEXT NOT NULL REFERENCES learners(id),
    mission_type TEXT NOT NULL,
    title TEXT NOT NULL,
    target INTEGER NOT NULL,
    progress INTEGER NOT NULL DEFAULT 0,
    reward INTEGER NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    UNIQUE(learner_id, mission_type)
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
