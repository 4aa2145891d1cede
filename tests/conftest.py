from datetime import datetime

import pytest

from microlearn.db import init_db, get_connection
from microlearn.learners import create_learner
from microlearn.seed import seed_all

# A Monday morning; every test clock is expressed relative to it.
START = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_microlearn.db")
    return db_path


@pytest.fixture
def db(tmp_db):
    """A database with the bundled catalog loaded."""
    init_db(tmp_db)
    seed_all(tmp_db)
    return tmp_db


@pytest.fixture
def learner_id(db):
    return create_learner(db, "ada", now=START).id


def set_cursor(db_path: str, learner_id: str, cursor: int) -> None:
    conn = get_connection(db_path)
    conn.execute("UPDATE learners SET cursor = ? WHERE id = ?", (cursor, learner_id))
    conn.commit()
    conn.close()
