"""
Matches Cog for the Codeforces Match Bot.

This module contains the virtual match commands: start, cancel and list.
"""

import discord
from discord import app_commands
from discord.ext import commands

from config.settings import DEFAULT_TICK_INTERVAL_MINUTES, MAX_MATCH_PARTICIPANTS
from event_logger import log_event
from services.embeds import build_error_embed, build_matches_list_embed
from services.errors import MatchError
from services.reporting import ChannelReporter

MATCH_USAGE = "/cf_match {div} {time} [users]"
CANCEL_USAGE = "/cf_cancel {match}"


class MatchesCog(commands.Cog):
    """
    Cog containing virtual match commands.

    Commands:
    - /cf_match: Start a virtual match
    - /cf_cancel: Stop a running match
    - /cf_matches: Running and recent matches in this server
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def registry(self):
        return self.bot.registry

    @app_commands.command(
        name="cf_match",
        description="Start a virtual match with random Codeforces problems"
    )
    @app_commands.describe(
        division="Division: 1, 2 or 3",
        time="Number of scoreboard updates before the match ends",
        users=f"Codeforces handles separated by spaces (max {MAX_MATCH_PARTICIPANTS})",
        interval_minutes="Minutes between scoreboard updates",
    )
    async def match_command(
        self,
        interaction: discord.Interaction,
        division: str,
        time: int,
        users: str,
        interval_minutes: int = DEFAULT_TICK_INTERVAL_MINUTES,
    ):
        """
        Start a virtual match.

        Every update fetches the players' latest submissions, awards points
        for accepted ones and lowers the value of unsolved problems.

        Usage: /cf_match division:2 time:60 users:tourist Petr
        """
        if interval_minutes < 1:
            await interaction.response.send_message(
                embed=build_error_embed(MATCH_USAGE, "Interval must be at least one minute!"),
                ephemeral=True,
            )
            return

        # Handle lookup can take longer than the interaction window
        await interaction.response.defer()

        try:
            session = await self.registry.start_match(
                division,
                interval_minutes * 60,
                time,
                [users],
                ChannelReporter(interaction.channel),
                guild_id=interaction.guild_id,
                channel_id=interaction.channel_id,
                created_by=interaction.user.id,
            )
        except MatchError as exc:
            print(f"⚠️ Invalid match: {exc}")
            await interaction.followup.send(embed=build_error_embed(MATCH_USAGE, str(exc)))
            return
        except Exception as exc:
            print(f"❌ Error starting match: {exc}")
            log_event("match_start_failed", guild_id=interaction.guild_id, error=exc)
            await interaction.followup.send(
                embed=build_error_embed(MATCH_USAGE, "Something went wrong starting the match, try again later.")
            )
            return

        await interaction.followup.send(
            f"✅ Match #{session.match_id} is on! First update in {interval_minutes} minute(s).",
            ephemeral=True,
        )

    @app_commands.command(
        name="cf_cancel",
        description="Stop a running virtual match"
    )
    @app_commands.describe(match_id="Match number shown when it started")
    async def cancel_command(self, interaction: discord.Interaction, match_id: int):
        """
        Cancel a running match.

        Only the member who started it, or members with Manage Server, can cancel.

        Usage: /cf_cancel match_id:3
        """
        session = self.registry.get_match(match_id)
        if session is None or session.guild_id != interaction.guild_id:
            await interaction.response.send_message(
                embed=build_error_embed(CANCEL_USAGE, f"No running match #{match_id}"),
                ephemeral=True,
            )
            return

        permissions = getattr(interaction.user, "guild_permissions", None)
        is_manager = bool(permissions and permissions.manage_guild)
        if interaction.user.id != session.created_by and not is_manager:
            await interaction.response.send_message(
                embed=build_error_embed(CANCEL_USAGE, "Only the match creator or a server manager can cancel it."),
                ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True)
        cancelled = await self.registry.cancel_match(match_id)
        if cancelled:
            await interaction.followup.send(f"🛑 Match #{match_id} cancelled.", ephemeral=True)
        else:
            await interaction.followup.send(f"ℹ️ Match #{match_id} had already finished.", ephemeral=True)

    @app_commands.command(
        name="cf_matches",
        description="List running and recent virtual matches"
    )
    async def matches_command(self, interaction: discord.Interaction):
        """
        Show running matches and the latest finished ones.

        Usage: /cf_matches
        """
        guild_id = interaction.guild_id
        embed = build_matches_list_embed(
            self.registry.active_matches(guild_id),
            self.registry.recent_matches(guild_id),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot: commands.Bot):
    """
    Setup function for loading the cog.

    Called by bot.load_extension().
    """
    await bot.add_cog(MatchesCog(bot))
