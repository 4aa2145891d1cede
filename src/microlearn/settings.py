"""Key/value settings stored alongside learner data."""
from microlearn.db import get_connection

UNLOCK_POLICIES = ("chained", "static")
DEFAULT_UNLOCK_POLICY = "chained"


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_unlock_policy(db_path: str) -> str:
    return get_setting(db_path, "unlock_policy", DEFAULT_UNLOCK_POLICY)


def set_unlock_policy(db_path: str, policy: str) -> None:
    """Choose how topics unlock: "chained" on prior-topic completion, "static" by day offset."""
    if policy not in UNLOCK_POLICIES:
        raise ValueError(f"Unknown unlock policy: {policy}")
    set_setting(db_path, "unlock_policy", policy)
