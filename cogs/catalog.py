"""
Catalog Cog for the Codeforces Match Bot.

Admin-only commands to inspect and refresh the problem catalog that
match problem sets are drawn from.
"""

import discord
from discord import app_commands
from discord.ext import commands

from services.embeds import build_catalog_embed, build_sync_result_embed
from services.errors import MatchError


class CatalogCog(commands.Cog):
    """
    Problem catalog administration.

    Commands:
    - /cf_catalog: Problems per rating bucket
    - /cf_catalog_sync: Pull rated problems from Codeforces and reload
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(
        name="cf_catalog",
        description="[ADMIN] Show the problem catalog"
    )
    @app_commands.default_permissions(administrator=True)
    async def catalog_command(self, interaction: discord.Interaction):
        catalog = self.bot.registry.catalog
        await interaction.response.send_message(
            embed=build_catalog_embed(catalog.bucket_sizes(), catalog.is_loaded),
            ephemeral=True,
        )

    @app_commands.command(
        name="cf_catalog_sync",
        description="[ADMIN] Refresh the problem catalog from Codeforces"
    )
    @app_commands.default_permissions(administrator=True)
    async def catalog_sync_command(self, interaction: discord.Interaction):
        """
        Download the Codeforces problemset and reload the catalog.

        Usage: /cf_catalog_sync
        """
        await interaction.response.defer(ephemeral=True)
        registry = self.bot.registry

        try:
            stored = await registry.sync_catalog()
        except MatchError as exc:
            print(f"❌ Catalog sync failed: {exc}")
            await interaction.followup.send(
                embed=build_sync_result_embed(0, registry.catalog.size, error=str(exc)),
                ephemeral=True,
            )
            return
        except Exception as exc:
            print(f"❌ Catalog sync failed: {exc}")
            await interaction.followup.send(
                embed=build_sync_result_embed(0, registry.catalog.size, error=f"Unexpected error: {exc}"),
                ephemeral=True,
            )
            return

        print(f"✅ Catalog synced ({stored} problems)")
        await interaction.followup.send(
            embed=build_sync_result_embed(stored, registry.catalog.size),
            ephemeral=True,
        )


async def setup(bot: commands.Bot):
    """
    Setup function for loading the cog.

    Called by bot.load_extension().
    """
    await bot.add_cog(CatalogCog(bot))
