"""
Cogs module for the Codeforces Match Bot.

This module contains Discord slash commands organized as Cogs.
"""

from cogs.codeforces import CodeforcesCog
from cogs.matches import MatchesCog
from cogs.catalog import CatalogCog

__all__ = [
    "CodeforcesCog",
    "MatchesCog",
    "CatalogCog",
]
