"""
Rating graph rendering through QuickChart.

The chart is rendered and hosted by QuickChart; we only build the Chart.js
config and ask for a short URL to embed.
"""

import asyncio
from datetime import datetime
from typing import Dict, Sequence, Tuple

import aiohttp

from config.settings import HTTP_TIMEOUT_SECONDS, QUICKCHART_CREATE_URL
from services.errors import ExternalFetchError

# (background, border) pairs, picked by color_index
CHART_COLORS = (
    ("rgba(54, 162, 235, 0.5)", "rgba(54, 162, 235, 1.0)"),
    ("rgba(255, 99, 132, 0.5)", "rgba(255, 99, 132, 1.0)"),
)


def build_rating_chart_config(
    handle: str,
    history: Sequence[Tuple[datetime, int]],
    color_index: int = 0,
) -> Dict:
    """
    Build a Chart.js line chart of a rating history.

    Args:
        handle: Codeforces handle (dataset label)
        history: (timestamp, rating) pairs, oldest first
        color_index: Which CHART_COLORS pair to use
    """
    background, border = CHART_COLORS[color_index % len(CHART_COLORS)]
    return {
        "type": "line",
        "data": {
            "labels": [ts.strftime("%Y-%m-%d") for ts, _ in history],
            "datasets": [
                {
                    "label": handle,
                    "backgroundColor": background,
                    "borderColor": border,
                    "data": [rating for _, rating in history],
                }
            ],
        },
        "options": {
            "legend": {"display": False},
            "elements": {"point": {"radius": 0}},
            "layout": {"padding": {"left": 30, "right": 30, "top": 30, "bottom": 30}},
            "scales": {"xAxes": [{"display": False}]},
        },
    }


async def create_chart_url(
    config: Dict,
    width: int = 450,
    height: int = 340,
    background_color: str = "#fff",
) -> str:
    """
    Ask QuickChart to host a chart and return its short URL.

    Raises:
        ExternalFetchError: If QuickChart is unreachable or refuses the chart
    """
    payload = {
        "chart": config,
        "width": width,
        "height": height,
        "backgroundColor": background_color,
    }
    timeout = aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(QUICKCHART_CREATE_URL, json=payload) as resp:
                data = await resp.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
        raise ExternalFetchError(f"Chart rendering failed: {exc}") from exc

    if not isinstance(data, dict) or not data.get("success") or not data.get("url"):
        raise ExternalFetchError("Chart rendering failed: QuickChart returned no URL")
    return data["url"]
