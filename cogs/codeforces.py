"""
Codeforces Cog for the Codeforces Match Bot.

This module contains the one-shot lookup commands: profile, rating graph
and contest problem list.
"""

import random

import discord
from discord import app_commands
from discord.ext import commands

from event_logger import log_event
from services.charts import build_rating_chart_config, create_chart_url
from services.embeds import (
    build_contest_embed,
    build_error_embed,
    build_graph_embed,
    build_profile_embed,
    build_warning_embed,
)
from services.errors import CodeforcesNotFoundError, ExternalFetchError


class CodeforcesCog(commands.Cog):
    """
    Cog containing Codeforces lookup commands.

    Commands:
    - /cf_profile: Rating, rank and avatar of a handle
    - /cf_graph: Rating history chart of a handle
    - /cf_contest: Problems of a contest
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def client(self):
        return self.bot.registry.client

    @app_commands.command(
        name="cf_profile",
        description="Show a Codeforces profile"
    )
    @app_commands.describe(handle="Codeforces handle")
    async def profile_command(self, interaction: discord.Interaction, handle: str):
        """
        Show rating, rank and avatar for a handle.

        Usage: /cf_profile handle:tourist
        """
        usage = "/cf_profile {handle}"
        print(f"🔎 Getting Codeforces profile for {handle}")
        await interaction.response.defer()

        try:
            users = await self.client.fetch_user_info([handle])
        except CodeforcesNotFoundError:
            await interaction.followup.send(
                embed=build_error_embed(usage, f"Error getting profile for {handle}")
            )
            return
        except ExternalFetchError as exc:
            log_event("lookup_failed", command="cf_profile", handle=handle, error=str(exc))
            await interaction.followup.send(embed=build_error_embed(usage, str(exc)))
            return

        await interaction.followup.send(embed=build_profile_embed(users[0]))

    @app_commands.command(
        name="cf_graph",
        description="Show the rating graph of a Codeforces user"
    )
    @app_commands.describe(handle="Codeforces handle")
    async def graph_command(self, interaction: discord.Interaction, handle: str):
        """
        Draw the rating history of a handle.

        Usage: /cf_graph handle:tourist
        """
        usage = "/cf_graph {handle}"
        print(f"🔎 Getting Codeforces graph for {handle}")
        await interaction.response.defer()

        try:
            history = await self.client.fetch_user_rating(handle)
        except CodeforcesNotFoundError:
            await interaction.followup.send(embed=build_error_embed(usage, f"Bad username: {handle}"))
            return
        except ExternalFetchError as exc:
            log_event("lookup_failed", command="cf_graph", handle=handle, error=str(exc))
            await interaction.followup.send(embed=build_error_embed(usage, str(exc)))
            return

        if not history:
            await interaction.followup.send(
                embed=build_warning_embed(handle, f"User {handle} does not have any contests")
            )
            return

        config = build_rating_chart_config(handle, history, color_index=random.randint(0, 1))
        try:
            image_url = await create_chart_url(config)
        except ExternalFetchError as exc:
            log_event("lookup_failed", command="cf_graph", handle=handle, error=str(exc))
            await interaction.followup.send(embed=build_error_embed(usage, str(exc)))
            return

        max_rating = max(rating for _, rating in history)
        await interaction.followup.send(embed=build_graph_embed(handle, max_rating, image_url))

    @app_commands.command(
        name="cf_contest",
        description="List the problems of a Codeforces contest"
    )
    @app_commands.describe(contest_id="Contest number, e.g. 1850")
    async def contest_command(self, interaction: discord.Interaction, contest_id: int):
        """
        List a contest's problems with links.

        Usage: /cf_contest contest_id:1850
        """
        usage = "/cf_contest {contest}"
        await interaction.response.defer()

        try:
            contest, problems = await self.client.fetch_contest_problems(contest_id)
        except CodeforcesNotFoundError:
            await interaction.followup.send(
                embed=build_error_embed(usage, f"Invalid contest ID: {contest_id}")
            )
            return
        except ExternalFetchError as exc:
            log_event("lookup_failed", command="cf_contest", contest_id=contest_id, error=str(exc))
            await interaction.followup.send(embed=build_error_embed(usage, str(exc)))
            return

        print(f"✅ Contest #{contest_id} successfully queried")
        await interaction.followup.send(embed=build_contest_embed(contest_id, contest, problems))


async def setup(bot: commands.Bot):
    """
    Setup function for loading the cog.

    Called by bot.load_extension().
    """
    await bot.add_cog(CodeforcesCog(bot))
