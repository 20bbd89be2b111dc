import sqlite3
import unittest
from unittest import mock

from cogs.catalog import CatalogCog
from cogs.matches import MATCH_USAGE, MatchesCog
from models.catalog import ProblemCatalog
from services.errors import StorageError

from match_fixtures import use_temp_storage


def make_interaction():
    interaction = mock.Mock()
    interaction.guild_id = 7
    interaction.channel_id = 8
    interaction.user.id = 9
    interaction.response.defer = mock.AsyncMock()
    interaction.response.send_message = mock.AsyncMock()
    interaction.followup.send = mock.AsyncMock()
    return interaction


def sent_embed(interaction):
    return interaction.followup.send.await_args.kwargs["embed"]


class CommandFailureReplyTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        use_temp_storage(self)
        self.bot = mock.Mock()
        self.bot.registry.catalog = ProblemCatalog()

    async def test_match_storage_error_gets_a_usage_reply(self):
        self.bot.registry.start_match = mock.AsyncMock(side_effect=StorageError("Bot storage is unavailable"))
        interaction = make_interaction()

        cog = MatchesCog(self.bot)
        await cog.match_command.callback(cog, interaction, "2", 3, "alice")

        embed = sent_embed(interaction)
        self.assertEqual(embed.description, "Bot storage is unavailable")
        self.assertEqual(embed.fields[0].value, f"`{MATCH_USAGE}`")

    async def test_unexpected_match_error_still_gets_a_reply(self):
        self.bot.registry.start_match = mock.AsyncMock(side_effect=RuntimeError("boom"))
        interaction = make_interaction()
        cog = MatchesCog(self.bot)

        await cog.match_command.callback(cog, interaction, "2", 3, "alice")

        interaction.response.defer.assert_awaited_once()
        self.assertIn("Something went wrong", sent_embed(interaction).description)

    async def test_catalog_sync_failure_gets_a_reply(self):
        self.bot.registry.sync_catalog = mock.AsyncMock(side_effect=sqlite3.OperationalError("locked"))
        interaction = make_interaction()
        cog = CatalogCog(self.bot)

        await cog.catalog_sync_command.callback(cog, interaction)

        embed = sent_embed(interaction)
        self.assertEqual(embed.title, "⚠️ Catalog sync failed")
        self.assertIn("locked", embed.description)


if __name__ == "__main__":
    unittest.main()
