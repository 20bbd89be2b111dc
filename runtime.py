"""
Process-wide runtime references shared across bot and dashboard.
"""

from typing import Optional

import discord

from services.match_registry import MatchRegistry

_bot_client: Optional[discord.Client] = None
_match_registry: Optional[MatchRegistry] = None


def set_bot_client(client: discord.Client) -> None:
    global _bot_client
    _bot_client = client


def get_bot_client() -> Optional[discord.Client]:
    return _bot_client


def set_match_registry(registry: Optional[MatchRegistry]) -> None:
    global _match_registry
    _match_registry = registry


def get_match_registry() -> Optional[MatchRegistry]:
    return _match_registry
