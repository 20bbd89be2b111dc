"""
Database module for the Codeforces Match Bot.

This module handles SQLite database connection and schema initialization.
SQLite is an embedded database - no separate server needed.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Union

from config.settings import DATABASE_PATH

_database_path: Union[Path, str] = DATABASE_PATH

# Thread-local connections (one connection per thread)
_thread_local = threading.local()

# Schema initialization guard (shared across threads)
_schema_lock = threading.Lock()
_schema_initialized = False


def configure_database(path: Union[Path, str]) -> None:
    """
    Switch the database file and reset the schema guard.

    Closes the calling thread's connection so the next get_connection()
    opens the new file. Tests point this at a temporary file.
    """
    global _database_path, _schema_initialized
    close_connection()
    with _schema_lock:
        _database_path = path
        _schema_initialized = False


def get_connection() -> sqlite3.Connection:
    """
    Get the database connection for the current thread, creating it if needed.

    Returns:
        sqlite3.Connection with row_factory set to sqlite3.Row
    """
    conn = getattr(_thread_local, "connection", None)

    if conn is None:
        # Each thread uses its own connection to avoid concurrent cursor misuse.
        conn = sqlite3.connect(str(_database_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row  # Access columns by name
        conn.execute("PRAGMA foreign_keys = ON")
        _thread_local.connection = conn

    global _schema_initialized
    if not _schema_initialized:
        with _schema_lock:
            if not _schema_initialized:
                _init_schema(conn)
                _schema_initialized = True

    return conn


def _init_schema(conn: sqlite3.Connection) -> None:
    """
    Initialize the database schema if tables don't exist.

    Schema:
    - problems: Rated Codeforces problems used to draw match problem sets
    - matches: One row per virtual match (running or finished)
    - match_standings: Final cumulative standings of each match
    """
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS problems (
            contest_id INTEGER NOT NULL,
            problem_index TEXT NOT NULL,
            name TEXT NOT NULL,
            rating INTEGER NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (contest_id, problem_index)
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS matches (
            id INTEGER PRIMARY KEY,
            guild_id INTEGER,
            channel_id INTEGER,
            created_by INTEGER,
            division TEXT NOT NULL,
            participants TEXT NOT NULL,
            problems TEXT NOT NULL,
            tick_interval_seconds INTEGER NOT NULL,
            tick_budget INTEGER NOT NULL,
            ticks_elapsed INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL,
            finished_at TIMESTAMP
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS match_standings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            match_id INTEGER NOT NULL,
            handle TEXT NOT NULL,
            score INTEGER NOT NULL,
            position INTEGER NOT NULL,
            FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE CASCADE
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_problems_rating
        ON problems(rating)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_matches_guild
        ON matches(guild_id)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_standings_match
        ON match_standings(match_id)
    """)

    conn.commit()


def close_connection() -> None:
    """Close the database connection if open."""
    conn = getattr(_thread_local, "connection", None)
    if conn is not None:
        conn.close()
        _thread_local.connection = None
