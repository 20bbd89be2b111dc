"""
Discord reporter for match sessions.

Posts every match update to the channel the match was started from.
"""

from typing import Sequence

import discord

from models.problem import AssignedProblem, ScoreEntry
from services.embeds import (
    build_match_cancelled_embed,
    build_match_over_embed,
    build_match_started_embed,
    build_problems_embed,
    build_scoreboard_embed,
    build_tick_failed_embed,
)
from services.match_session import MatchReporter, MatchSession


class ChannelReporter(MatchReporter):
    """
    Sends match updates as embeds to a text channel.

    Send errors propagate; MatchSession logs them and carries on.
    """

    def __init__(self, channel: discord.abc.Messageable, mentions: str = ""):
        self.channel = channel
        self.mentions = mentions

    async def match_started(self, session: MatchSession) -> None:
        await self.channel.send(
            content=self.mentions or None,
            embed=build_match_started_embed(session),
        )

    async def scoreboard(self, session: MatchSession, entries: Sequence[ScoreEntry]) -> None:
        await self.channel.send(embed=build_scoreboard_embed(session, entries))

    async def problems(self, session: MatchSession, problems: Sequence[AssignedProblem]) -> None:
        await self.channel.send(embed=build_problems_embed(session, problems))

    async def tick_failed(self, session: MatchSession, error: Exception) -> None:
        await self.channel.send(embed=build_tick_failed_embed(session, error))

    async def match_over(self, session: MatchSession) -> None:
        await self.channel.send(
            content=self.mentions or None,
            embed=build_match_over_embed(session),
        )

    async def match_cancelled(self, session: MatchSession) -> None:
        await self.channel.send(embed=build_match_cancelled_embed(session))
