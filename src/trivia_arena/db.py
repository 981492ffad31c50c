"""Database initialization and connection management."""
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

DEFAULT_DB_PATH = os.environ.get(
    "TRIVIA_ARENA_DB", str(Path.home() / ".trivia_arena" / "arena.db")
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    category TEXT,
    difficulty TEXT DEFAULT 'medium',
    ease_factor REAL DEFAULT 2.5,
    interval_days INTEGER DEFAULT 0,
    repetitions INTEGER DEFAULT 0,
    next_review_at TEXT,
    last_reviewed_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS flashcard_reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    flashcard_id INTEGER NOT NULL REFERENCES flashcards(id) ON DELETE CASCADE,
    quality INTEGER NOT NULL,
    reviewed_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tournaments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    description TEXT,
    creator_id TEXT NOT NULL,
    difficulty TEXT DEFAULT 'medium',
    max_participants INTEGER DEFAULT 16,
    questions_per_match INTEGER DEFAULT 10,
    time_per_question INTEGER DEFAULT 30,
    status TEXT DEFAULT 'registration',
    current_round INTEGER DEFAULT 0,
    bracket_size INTEGER DEFAULT 0,
    winner_id INTEGER,
    started_at TEXT,
    ended_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS tournament_participants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tournament_id INTEGER NOT NULL REFERENCES tournaments(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL,
    username TEXT NOT NULL,
    seed INTEGER,
    eliminated INTEGER DEFAULT 0,
    eliminated_in_round INTEGER,
    total_score INTEGER DEFAULT 0,
    matches_won INTEGER DEFAULT 0,
    matches_played INTEGER DEFAULT 0,
    joined_at TEXT,
    UNIQUE(tournament_id, user_id)
);

CREATE TABLE IF NOT EXISTS tournament_matches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tournament_id INTEGER NOT NULL REFERENCES tournaments(id) ON DELETE CASCADE,
    round INTEGER NOT NULL,
    match_number INTEGER NOT NULL,
    player1_id INTEGER REFERENCES tournament_participants(id),
    player2_id INTEGER REFERENCES tournament_participants(id),
    winner_id INTEGER REFERENCES tournament_participants(id),
    player1_score INTEGER DEFAULT 0,
    player2_score INTEGER DEFAULT 0,
    status TEXT DEFAULT 'waiting',
    next_match_number INTEGER,
    next_slot TEXT,
    UNIQUE(tournament_id, match_number)
);
"""


def to_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def from_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


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


@contextmanager
def immediate_transaction(db_path: str = DEFAULT_DB_PATH):
    """Hold SQLite's write lock for the whole read-modify-write.

    Card reviews and bracket updates both read the current state before
    writing, so two writers must not interleave.
    """
    conn = get_connection(db_path)
    conn.isolation_level = None
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")
    finally:
        conn.close()
