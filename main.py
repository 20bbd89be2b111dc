"""
=============================================================================
Codeforces Match Bot - Virtual contests for Discord servers
=============================================================================

Looks up Codeforces profiles, rating graphs and contests, and runs small
virtual matches: random problems per division, points that decay every
update, and a live scoreboard fed by the players' real submissions.

Discord.py Version: 2.0+
=============================================================================
"""

import sys

from bot import CodeforcesBot
from config.settings import DISCORD_TOKEN
from web.server import start_dashboard_server


def main() -> None:
    if not DISCORD_TOKEN:
        print("❌ ERROR: DISCORD_TOKEN not found!")
        print("Make sure your .env file contains DISCORD_TOKEN=your_token_here")
        sys.exit(1)

    print("🚀 Starting Codeforces Match Bot...")
    bot = CodeforcesBot()
    start_dashboard_server()
    bot.run(DISCORD_TOKEN)


if __name__ == "__main__":
    main()
