"""
FastAPI app for the admin dashboard.
"""

from html import escape

from fastapi import Depends, FastAPI
from fastapi.responses import HTMLResponse

from runtime import get_match_registry
from web.routes.auth import require_dashboard_auth
from web.routes.dashboard import router as dashboard_router

app = FastAPI(
    title="Codeforces Match Bot Dashboard",
    description="Admin dashboard for virtual matches, the problem catalog and runtime events.",
    version="1.0.0",
)

app.include_router(dashboard_router, tags=["dashboard"])


def _render_rows(rows, columns) -> str:
    if not rows:
        return f"<tr><td colspan='{len(columns)}'>—</td></tr>"
    return "".join(
        "<tr>" + "".join(f"<td>{escape(str(row.get(col, '')))}</td>" for col in columns) + "</tr>"
        for row in rows
    )


@app.get("/", response_class=HTMLResponse, dependencies=[Depends(require_dashboard_auth)])
def dashboard_index() -> str:
    """
    Serve a plain overview page; the JSON API under /api has the details.
    """
    registry = get_match_registry()
    if registry is None:
        return "<h1>Codeforces Match Bot</h1><p>Bot is not running.</p>"

    running = [
        {
            "match": f"#{s.match_id}",
            "division": s.division,
            "progress": f"{s.ticks_elapsed}/{s.tick_budget}",
            "players": ", ".join(s.participants),
        }
        for s in registry.active_matches()
    ]
    recent = [
        {
            "match": f"#{m['id']}",
            "division": m["division"],
            "status": m["status"],
            "winner": m["standings"][0]["handle"] if m.get("standings") else "",
        }
        for m in registry.recent_matches()
    ]
    catalog = registry.catalog

    return (
        "<html><head><title>Codeforces Match Bot</title></head><body>"
        "<h1>Codeforces Match Bot</h1>"
        f"<p>Catalog: {catalog.size} problems"
        f"{'' if catalog.is_loaded else ' (failed to load)'}</p>"
        "<h2>Running</h2><table><tr><th>Match</th><th>Division</th><th>Progress</th><th>Players</th></tr>"
        f"{_render_rows(running, ['match', 'division', 'progress', 'players'])}</table>"
        "<h2>Recent</h2><table><tr><th>Match</th><th>Division</th><th>Status</th><th>Winner</th></tr>"
        f"{_render_rows(recent, ['match', 'division', 'status', 'winner'])}</table>"
        "</body></html>"
    )
