"""
API routes for the admin dashboard.
"""

import asyncio
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel

from config.settings import RECENT_MATCHES_LIMIT
from event_logger import clear_event_log, get_event_log_path, log_event, read_recent_events
from models.match_history import get_match as get_stored_match
from runtime import get_bot_client, get_match_registry
from services.match_registry import MatchRegistry
from web.routes.auth import require_dashboard_auth

router = APIRouter(dependencies=[Depends(require_dashboard_auth)])
JS_SAFE_INTEGER_MAX = 9007199254740991


class ClearLogsRequest(BaseModel):
    confirm: bool = False


def _json_safe(value: Any) -> Any:
    """
    Convert values to JSON-safe primitives for JavaScript clients.

    Discord snowflake IDs exceed JS safe integer range, so convert those
    large integers to strings to avoid precision loss in the browser.
    """
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > JS_SAFE_INTEGER_MAX:
        return str(value)
    return value


def _registry() -> MatchRegistry:
    registry = get_match_registry()
    if registry is None:
        raise HTTPException(status_code=503, detail="Bot is not running.")
    return registry


async def _cancel_on_bot_loop(registry: MatchRegistry, match_id: int) -> bool:
    """
    Cancel a match on the bot's loop when the dashboard runs on another one.
    """
    client = get_bot_client()
    bot_loop = getattr(client, "loop", None) if client is not None else None
    current_loop = asyncio.get_running_loop()

    if bot_loop is None or bot_loop is current_loop or not bot_loop.is_running():
        return await registry.cancel_match(match_id)

    future = asyncio.run_coroutine_threadsafe(registry.cancel_match(match_id), bot_loop)
    return await asyncio.wrap_future(future)


@router.get("/api/overview")
def get_overview() -> Dict[str, Any]:
    """
    Counts for the dashboard header.
    """
    registry = _registry()
    return _json_safe({
        "running_matches": len(registry.active_matches()),
        "catalog_loaded": registry.catalog.is_loaded,
        "catalog_size": registry.catalog.size,
    })


@router.get("/api/matches")
def get_matches(
    guild_id: Optional[int] = Query(default=None),
    limit: int = Query(default=RECENT_MATCHES_LIMIT, ge=1, le=100),
) -> Dict[str, Any]:
    """
    Running matches and recently finished ones.
    """
    registry = _registry()
    return _json_safe({
        "running": [session.summary() for session in registry.active_matches(guild_id)],
        "recent": registry.recent_matches(guild_id, limit),
    })


@router.get("/api/matches/{match_id}")
def get_match_detail(match_id: int) -> Dict[str, Any]:
    """
    One match: live summary while running, stored history afterwards.
    """
    registry = _registry()
    session = registry.get_match(match_id)
    if session is not None:
        return _json_safe({"running": True, **session.summary()})

    stored = get_stored_match(match_id) if registry.persist else None
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Match {match_id} not found.")
    return _json_safe({"running": False, **stored})


@router.post("/api/matches/{match_id}/cancel")
async def cancel_match(match_id: int) -> Dict[str, Any]:
    """
    Cancel a running match from the dashboard.
    """
    registry = _registry()
    if registry.get_match(match_id) is None:
        raise HTTPException(status_code=404, detail=f"No running match {match_id}.")

    cancelled = await _cancel_on_bot_loop(registry, match_id)
    log_event("dashboard_admin_cancel_match", match_id=match_id, cancelled=cancelled)
    return {"match_id": match_id, "cancelled": cancelled}


@router.get("/api/catalog")
def get_catalog() -> Dict[str, Any]:
    """
    Problems per rating bucket.
    """
    catalog = _registry().catalog
    return {
        "loaded": catalog.is_loaded,
        "size": catalog.size,
        "buckets": {str(rating): count for rating, count in catalog.bucket_sizes().items()},
    }


@router.get("/api/events")
def get_events(
    limit: int = Query(default=100, ge=1, le=1000),
    event: Optional[str] = Query(default=None),
) -> List[Dict[str, Any]]:
    """
    Newest runtime events, optionally filtered by event name.
    """
    return _json_safe(read_recent_events(limit, event))


@router.post("/api/events/clear")
def clear_runtime_logs(payload: ClearLogsRequest) -> Dict[str, Any]:
    """
    Clear the runtime event log file.
    """
    if not payload.confirm:
        raise HTTPException(
            status_code=400,
            detail="Confirmation required. Send {\"confirm\": true}.",
        )

    result = clear_event_log()
    if not result.get("ok"):
        raise HTTPException(
            status_code=500,
            detail=f"Failed to clear logs: {result.get('error', 'unknown error')}",
        )

    # Record this action after truncation so the fresh file has an audit entry.
    log_event(
        "dashboard_admin_clear_logs",
        removed_lines=result.get("removed_lines", 0),
        removed_bytes=result.get("removed_bytes", 0),
    )
    result["logged_action"] = True
    return result


@router.get("/api/events/download")
def download_runtime_logs() -> FileResponse:
    """
    Download the runtime event log file.
    """
    log_path = get_event_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    if not log_path.exists():
        log_path.touch()

    return FileResponse(
        path=log_path,
        media_type="application/jsonl",
        filename=log_path.name,
    )
