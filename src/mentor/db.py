"""Database initialization and connection management."""
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from mentor.errors import StorageError

DEFAULT_DB_PATH = str(Path.home() / ".mentor" / "mentor.db")

# Seconds a writer waits on a locked database before giving up.
BUSY_TIMEOUT = 30.0

SCHEMA = """
CREATE TABLE IF NOT EXISTS chapters (
    class INTEGER NOT NULL,
    subject TEXT NOT NULL,
    total_chapters INTEGER NOT NULL,
    PRIMARY KEY (class, subject)
);

CREATE TABLE IF NOT EXISTS subscriptions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    student_name TEXT NOT NULL,
    student_phone TEXT,
    guardian_name TEXT,
    guardian_phone TEXT,
    class INTEGER NOT NULL,
    subjects TEXT NOT NULL DEFAULT '[]',
    teacher_id TEXT NOT NULL,
    days_per_week INTEGER DEFAULT 0,
    schedule_days TEXT NOT NULL DEFAULT '[]',
    time TEXT DEFAULT '',
    amount REAL DEFAULT 0,
    billing_date INTEGER DEFAULT 1,
    status TEXT NOT NULL DEFAULT 'active',
    total_classes INTEGER DEFAULT 0,
    completed_classes INTEGER DEFAULT 0,
    progress_percent REAL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS subject_plans (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subscription_id INTEGER NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    subject TEXT NOT NULL,
    current_chapter INTEGER NOT NULL DEFAULT 1,
    current_part INTEGER NOT NULL DEFAULT 1,
    parts_done INTEGER NOT NULL DEFAULT 0,
    parts_needed INTEGER NOT NULL DEFAULT 15,
    UNIQUE(subscription_id, subject)
);

CREATE TABLE IF NOT EXISTS progress_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subscription_id INTEGER NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    subject_plan_id INTEGER REFERENCES subject_plans(id) ON DELETE SET NULL,
    subject TEXT NOT NULL,
    chapter INTEGER NOT NULL,
    part INTEGER NOT NULL,
    teacher_id TEXT,
    notes TEXT,
    completed_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS holidays (
    date TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_subscriptions_teacher ON subscriptions(teacher_id, status);
CREATE INDEX IF NOT EXISTS idx_progress_events_subscription ON progress_events(subscription_id, completed_at);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def store_connection(db_path: str, action: str):
    """Yield a plain connection; any sqlite3 failure surfaces as StorageError.

    ``action`` completes the message, e.g. "load progress history".
    """
    conn = None
    try:
        conn = get_connection(db_path)
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        raise StorageError(f"Could not {action}: {e}") from e
    finally:
        if conn is not None:
            conn.close()


@contextmanager
def write_transaction(db_path: str):
    """Yield a connection holding the database write lock.

    ``BEGIN IMMEDIATE`` takes the lock before the first read, so a
    read-modify-write sequence inside the block cannot interleave with
    another writer. Commits on success, rolls back on any exception.
    """
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except BaseException:
        if conn.in_transaction:
            conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
