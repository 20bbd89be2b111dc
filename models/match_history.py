"""
Match history model for the Codeforces Match Bot.

This module stores every virtual match and its final standings so finished
matches can still be listed after the session object is gone.
"""

import json
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from models.database import get_connection

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_INTERRUPTED = "interrupted"


def _row_to_match(row) -> Dict:
    match = dict(row)
    match["participants"] = json.loads(match["participants"])
    match["problems"] = json.loads(match["problems"])
    return match


def get_max_match_id() -> int:
    """Highest match id ever recorded (0 if none)."""
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT MAX(id) AS max_id FROM matches")
    row = cursor.fetchone()
    return row["max_id"] or 0


def record_match_started(summary: Dict) -> None:
    """
    Insert a row for a match that just started.

    Args:
        summary: Output of MatchSession.summary()
    """
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("""
        INSERT INTO matches (
            id, guild_id, channel_id, created_by, division, participants, problems,
            tick_interval_seconds, tick_budget, ticks_elapsed, status, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """, (
        summary["match_id"],
        summary.get("guild_id"),
        summary.get("channel_id"),
        summary.get("created_by"),
        summary["division"],
        json.dumps(summary["participants"]),
        json.dumps(summary["problems"]),
        summary["tick_interval_seconds"],
        summary["tick_budget"],
        summary.get("ticks_elapsed", 0),
        STATUS_RUNNING,
        summary["created_at"],
    ))
    conn.commit()


def record_match_progress(match_id: int, ticks_elapsed: int) -> None:
    conn = get_connection()
    conn.execute(
        "UPDATE matches SET ticks_elapsed = ? WHERE id = ?",
        (ticks_elapsed, match_id),
    )
    conn.commit()


def record_match_finished(
    match_id: int,
    status: str,
    ticks_elapsed: int,
    standings: Sequence[Tuple[str, int]],
) -> None:
    """
    Close a match and store its cumulative standings.

    Args:
        match_id: Match to close
        status: STATUS_COMPLETED or STATUS_CANCELLED
        ticks_elapsed: Ticks that actually ran
        standings: (handle, total score) pairs, best first
    """
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("""
        UPDATE matches
        SET status = ?, ticks_elapsed = ?, finished_at = ?
        WHERE id = ?
    """, (status, ticks_elapsed, datetime.now(timezone.utc).isoformat(), match_id))

    cursor.execute("DELETE FROM match_standings WHERE match_id = ?", (match_id,))
    cursor.executemany("""
        INSERT INTO match_standings (match_id, handle, score, position)
        VALUES (?, ?, ?, ?)
    """, [
        (match_id, handle, score, position)
        for position, (handle, score) in enumerate(standings, start=1)
    ])
    conn.commit()


def mark_unfinished_matches_interrupted() -> int:
    """
    Flag matches left running by a previous process.

    Sessions live in memory only, so anything still "running" at startup
    was cut short by a restart.
    """
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("""
        UPDATE matches
        SET status = ?, finished_at = ?
        WHERE status = ?
    """, (STATUS_INTERRUPTED, datetime.now(timezone.utc).isoformat(), STATUS_RUNNING))
    conn.commit()
    return cursor.rowcount


def get_match(match_id: int) -> Optional[Dict]:
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM matches WHERE id = ?", (match_id,))
    row = cursor.fetchone()
    if row is None:
        return None
    match = _row_to_match(row)
    match["standings"] = get_match_standings(match_id)
    return match


def get_match_standings(match_id: int) -> List[Dict]:
    conn = get_connection()
    cursor = conn.cursor()
    cursor.execute("""
        SELECT handle, score, position
        FROM match_standings
        WHERE match_id = ?
        ORDER BY position
    """, (match_id,))
    return [dict(row) for row in cursor.fetchall()]


def get_recent_matches(guild_id: Optional[int] = None, limit: int = 10) -> List[Dict]:
    """
    Get the most recent finished matches, newest first.

    Args:
        guild_id: Filter by guild (None for every guild)
        limit: Maximum number of matches

    Returns:
        List of match dicts, each with its "standings"
    """
    conn = get_connection()
    cursor = conn.cursor()

    if guild_id is not None:
        where = "WHERE status != ? AND guild_id = ?"
        params = (STATUS_RUNNING, guild_id, limit)
    else:
        where = "WHERE status != ?"
        params = (STATUS_RUNNING, limit)

    cursor.execute(f"""
        SELECT *
        FROM matches
        {where}
        ORDER BY id DESC
        LIMIT ?
    """, params)

    matches = [_row_to_match(row) for row in cursor.fetchall()]
    for match in matches:
        match["standings"] = get_match_standings(match["id"])
    return matches
