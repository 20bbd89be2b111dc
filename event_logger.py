"""
Structured event logging for match and command debugging.

Writes one JSON object per line to the configured EVENT_LOG_PATH.
"""

from __future__ import annotations

import json
import threading
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.settings import EVENT_LOG_PATH

_LOCK = threading.Lock()
_log_path: Path = EVENT_LOG_PATH


def set_event_log_path(path: Path) -> None:
    """Point the event log somewhere else (used by tests)."""
    global _log_path
    _log_path = Path(path)


def get_event_log_path() -> Path:
    return _log_path


def _to_json_safe(value: Any) -> Any:
    """Convert values to JSON-safe representations."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_json_safe(v) for v in value]
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return value


def log_event(event: str, **data: Any) -> None:
    """
    Append a structured event to the JSONL log file.

    Logging should never break bot flows or match ticks. Failures are printed.
    """
    try:
        now_utc = datetime.now(timezone.utc)
        payload = {
            "ts_utc": now_utc.isoformat(),
            "ts_unix_ms": int(now_utc.timestamp() * 1000),
            "event": event,
            **{k: _to_json_safe(v) for k, v in data.items()},
        }

        line = json.dumps(payload, ensure_ascii=False)
        with _LOCK:
            _log_path.parent.mkdir(parents=True, exist_ok=True)
            with _log_path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
    except Exception as exc:
        print(f"⚠️ Error writing event log: {exc}")


def read_recent_events(limit: int = 100, event: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Return the newest events (oldest first), optionally filtered by name.

    Lines that are not valid JSON are skipped.
    """
    with _LOCK:
        if not _log_path.exists():
            return []
        recent: deque = deque(maxlen=max(limit, 0))
        with _log_path.open("r", encoding="utf-8") as fh:
            for raw in fh:
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    payload = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                if event is not None and payload.get("event") != event:
                    continue
                recent.append(payload)
    return list(recent)


def clear_event_log() -> dict:
    """
    Truncate the JSONL event log and return summary stats.
    """
    try:
        with _LOCK:
            _log_path.parent.mkdir(parents=True, exist_ok=True)
            removed_lines = 0
            removed_bytes = 0
            if _log_path.exists():
                removed_bytes = _log_path.stat().st_size
                with _log_path.open("r", encoding="utf-8") as fh:
                    removed_lines = sum(1 for _ in fh)
                _log_path.write_text("", encoding="utf-8")
            else:
                _log_path.touch()

        return {
            "ok": True,
            "log_path": str(_log_path),
            "removed_lines": removed_lines,
            "removed_bytes": removed_bytes,
        }
    except OSError as exc:
        return {
            "ok": False,
            "log_path": str(_log_path),
            "error": str(exc),
        }
