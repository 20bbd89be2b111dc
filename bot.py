"""
Bot class for the Codeforces Match Bot.

This module contains the CodeforcesBot class which extends commands.Bot.

The bot owns one MatchRegistry: the catalog, the Codeforces client and
every running virtual match live there.
"""

from typing import Optional

import discord
from discord.ext import commands

from runtime import set_bot_client, set_match_registry
from services.match_registry import MatchRegistry

EXTENSIONS = (
    "cogs.codeforces",
    "cogs.matches",
    "cogs.catalog",
)


class CodeforcesBot(commands.Bot):
    """
    Custom Bot class for the Codeforces commands.

    Inherits from commands.Bot to override setup_hook(), which is the
    best place to load the catalog and cogs before connecting.
    """

    def __init__(self, registry: Optional[MatchRegistry] = None):
        intents = discord.Intents.default()

        super().__init__(
            command_prefix="!",
            intents=intents,
        )
        self.registry = registry or MatchRegistry()
        set_bot_client(self)
        set_match_registry(self.registry)

    async def setup_hook(self):
        """
        Called before the bot connects to Discord.

        Here we:
        1. Load the problem catalog (a failure only disables new matches)
        2. Load the cogs with slash commands
        3. Sync the command tree
        """
        if not self.registry.load():
            print("⚠️ Problem catalog unavailable, /cf_match will fail until /cf_catalog_sync runs")

        for extension in EXTENSIONS:
            try:
                await self.load_extension(extension)
                print(f"✓ Loaded {extension}")
            except commands.ExtensionError as e:
                print(f"✗ Failed to load {extension}: {e}")

        # Sync slash commands globally
        await self.tree.sync()
        print("✅ Slash commands synced globally")

    async def on_ready(self):
        """
        Called when the bot has connected to Discord.
        """
        print(f"🤖 Logged in as {self.user} (ID: {self.user.id})")
        print(f"📡 Connected to {len(self.guilds)} server(s):")

        for guild in self.guilds:
            print(f"   • {guild.name} (ID: {guild.id})")

        print("─" * 40)
        catalog = self.registry.catalog
        if catalog.size:
            print(f"📚 {catalog.size} problems in the catalog ({len(catalog.ratings())} ratings)")
        else:
            print("⚠️ Catalog is empty. Run /cf_catalog_sync in any server.")
        print("─" * 40)

        await self.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.watching,
                name="Codeforces 🏁",
            )
        )

    async def close(self):
        """Cancel running matches and close HTTP sessions before disconnecting."""
        await self.registry.shutdown()
        await super().close()
