"""
Embed builders for the Codeforces Match Bot.

This module contains stateless functions that turn Codeforces data and
match state into Discord embeds. Nothing here talks to Discord or the API.
"""

from datetime import datetime
from typing import Dict, Optional, Sequence

import discord

from config.settings import CODEFORCES_URL
from models.problem import AssignedProblem, ProblemId, ScoreEntry

MEDALS = ["🥇", "🥈", "🥉"]

# Discord caps embed field values at 1024 characters and descriptions at 4096
FIELD_LIMIT = 1024
DESCRIPTION_LIMIT = 4096


def _clip(text: str, limit: int = FIELD_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def profile_url(handle: str) -> str:
    return f"{CODEFORCES_URL}/profile/{handle}"


def problem_url(problem_id: ProblemId) -> str:
    return f"{CODEFORCES_URL}/contest/{problem_id.contest_id}/problem/{problem_id.index}"


def format_problem_line(assigned: AssignedProblem) -> str:
    """
    Format an assigned problem for display.

    Example:
        "97: [Two Buttons](<https://codeforces.com/contest/520/problem/B>) [1400]"
    """
    return f"{assigned.points}: [{assigned.name}](<{problem_url(assigned.problem_id)}>) [{assigned.rating}]"


def format_problem_list(problems: Sequence[AssignedProblem]) -> str:
    if not problems:
        return "Every problem has been solved!"
    return "\n".join(format_problem_line(assigned) for assigned in problems)


def format_scoreboard_lines(entries: Sequence) -> str:
    """
    Format (handle, score) pairs or ScoreEntry objects as ranked lines.
    """
    lines = []
    for i, entry in enumerate(entries):
        if isinstance(entry, ScoreEntry):
            handle, score = entry.handle, entry.score
        else:
            handle, score = entry
        medal = MEDALS[i] if i < 3 else f"`{i + 1}.`"
        lines.append(f"{medal} `{handle}`: {score} points")
    return "\n".join(lines) if lines else "—"


# =============================================================================
# GENERIC
# =============================================================================

def build_error_embed(usage: str, message: str) -> discord.Embed:
    """
    Failure notice naming the command usage and the reason.
    """
    embed = discord.Embed(
        title="❌ Error",
        description=message,
        color=discord.Color.red(),
    )
    embed.add_field(name="Usage", value=f"`{usage}`", inline=False)
    return embed


def build_warning_embed(title: str, message: str) -> discord.Embed:
    return discord.Embed(
        title=f"⚠️ {title}",
        description=message,
        color=discord.Color.orange(),
    )


# =============================================================================
# CODEFORCES LOOKUPS
# =============================================================================

def build_profile_embed(user: Dict) -> discord.Embed:
    """
    Build a profile summary from a Codeforces user object.

    Unrated users have no rating or rank, so they show as 0 / newbie.
    """
    handle = user.get("handle", "?")
    rating = user.get("rating", 0)
    rank = user.get("rank", "newbie")
    max_rating = user.get("maxRating")

    description = (
        f"Profile: [{handle}]({profile_url(handle)})\n"
        f"Rating: {rating}\n"
        f"Rank: {rank}"
    )
    if max_rating is not None:
        description += f"\nMax Rating: {max_rating} ({user.get('maxRank', rank)})"

    embed = discord.Embed(
        title=handle,
        description=description,
        color=discord.Color.green(),
    )

    avatar = user.get("titlePhoto") or user.get("avatar")
    if avatar:
        if avatar.startswith("//"):
            avatar = f"https:{avatar}"
        embed.set_thumbnail(url=avatar)
    return embed


def build_graph_embed(handle: str, max_rating: int, image_url: str) -> discord.Embed:
    embed = discord.Embed(
        title=handle,
        description=f"Max Rating: {max_rating}",
        color=discord.Color.green(),
    )
    embed.set_image(url=image_url)
    return embed


def build_contest_embed(contest_id: int, contest: Dict, problems: Sequence[Dict]) -> discord.Embed:
    """
    List a contest's problems with links (and points when the contest has them).
    """
    lines = []
    for problem in problems:
        index = problem.get("index", "?")
        name = problem.get("name", "?")
        url = f"{CODEFORCES_URL}/contest/{contest_id}/problem/{index}"
        points = problem.get("points")
        if points is None:
            lines.append(f" {index}: [{name}](<{url}>)")
        else:
            lines.append(f" {index} ({points:g}): [{name}](<{url}>)")

    title = f"There are {len(problems)} problems in contest #{contest_id}"
    embed = discord.Embed(
        title=title,
        description=_clip("\n".join(lines), DESCRIPTION_LIMIT) or "—",
        color=discord.Color.green(),
    )
    if contest.get("name"):
        embed.set_author(name=contest["name"])
    return embed


# =============================================================================
# MATCHES
# =============================================================================

def build_match_started_embed(session) -> discord.Embed:
    embed = discord.Embed(
        title=f"🏁 Starting contest #{session.match_id}",
        description=format_problem_list(session.active_problems),
        color=discord.Color.green(),
        timestamp=session.created_at,
    )
    embed.add_field(
        name="👥 Participants",
        value=_clip(", ".join(f"`{h}`" for h in session.participants)),
        inline=False,
    )
    minutes = session.tick_interval_seconds / 60
    embed.add_field(name="🗂️ Division", value=str(session.division), inline=True)
    embed.add_field(
        name="⏱️ Updates",
        value=f"{session.tick_budget} × every {minutes:g} min",
        inline=True,
    )
    embed.set_footer(text="Only accepted submissions made after the start count.")
    return embed


def build_scoreboard_embed(session, entries: Sequence[ScoreEntry]) -> discord.Embed:
    embed = discord.Embed(
        title=f"📊 Scoreboard update for match {session.match_id}",
        description=format_scoreboard_lines(entries),
        color=discord.Color.green(),
        timestamp=datetime.now(),
    )
    embed.add_field(
        name="🏆 Total",
        value=_clip(format_scoreboard_lines(session.standings())),
        inline=False,
    )
    embed.set_footer(text=f"Update {session.ticks_elapsed + 1}/{session.tick_budget}")
    return embed


def build_problems_embed(session, problems: Sequence[AssignedProblem]) -> discord.Embed:
    return discord.Embed(
        title=f"📉 Updated Points for Contest #{session.match_id}",
        description=format_problem_list(problems),
        color=discord.Color.green(),
    )


def build_tick_failed_embed(session, error: Exception) -> discord.Embed:
    embed = discord.Embed(
        title=f"⚠️ Could not update match {session.match_id}",
        description=str(error),
        color=discord.Color.orange(),
    )
    embed.set_footer(text="The match keeps going, we'll try again next update.")
    return embed


def build_match_over_embed(session) -> discord.Embed:
    embed = discord.Embed(
        title=f"🏁 Update for Contest #{session.match_id}",
        description="Match is over!",
        color=discord.Color.gold(),
        timestamp=datetime.now(),
    )
    embed.add_field(
        name="🏆 Final Standings",
        value=_clip(format_scoreboard_lines(session.standings())),
        inline=False,
    )
    return embed


def build_match_cancelled_embed(session) -> discord.Embed:
    embed = discord.Embed(
        title=f"🛑 Contest #{session.match_id} cancelled",
        description=f"Stopped after {session.ticks_elapsed}/{session.tick_budget} updates.",
        color=discord.Color.dark_grey(),
    )
    embed.add_field(
        name="🏆 Standings",
        value=_clip(format_scoreboard_lines(session.standings())),
        inline=False,
    )
    return embed


def build_matches_list_embed(active: Sequence, recent: Sequence[Dict]) -> discord.Embed:
    """
    Overview of running matches (sessions) and recently finished ones (history rows).
    """
    embed = discord.Embed(
        title="🗒️ Virtual Matches",
        color=discord.Color.blue(),
        timestamp=datetime.now(),
    )

    if active:
        lines = [
            f"**#{s.match_id}** div {s.division} • {s.ticks_elapsed}/{s.tick_budget} • "
            + ", ".join(f"`{h}`" for h in s.participants)
            for s in active
        ]
        embed.add_field(name="▶️ Running", value=_clip("\n".join(lines)), inline=False)
    else:
        embed.add_field(name="▶️ Running", value="No matches running.", inline=False)

    if recent:
        lines = []
        for match in recent:
            standings = match.get("standings") or []
            leader = f"🥇 `{standings[0]['handle']}` ({standings[0]['score']})" if standings else "—"
            lines.append(f"**#{match['id']}** div {match['division']} • {match['status']} • {leader}")
        embed.add_field(name="📜 Recent", value=_clip("\n".join(lines)), inline=False)

    return embed


def build_catalog_embed(bucket_sizes: Dict[int, int], loaded: bool) -> discord.Embed:
    embed = discord.Embed(
        title="📚 Problem Catalog",
        color=discord.Color.blue() if loaded else discord.Color.red(),
    )
    if not bucket_sizes:
        embed.description = (
            "The catalog is empty." if loaded else "The catalog failed to load."
        )
        return embed

    total = sum(bucket_sizes.values())
    embed.description = f"**{total}** problems in {len(bucket_sizes)} rating buckets"
    embed.add_field(
        name="Ratings",
        value=_clip("\n".join(f"`{rating}`: {count}" for rating, count in bucket_sizes.items())),
        inline=False,
    )
    return embed


def build_sync_result_embed(stored: int, catalog_size: int, error: Optional[str] = None) -> discord.Embed:
    if error:
        return build_warning_embed("Catalog sync failed", error)
    return discord.Embed(
        title="✅ Catalog synced",
        description=f"Stored {stored} problems. The catalog now holds {catalog_size}.",
        color=discord.Color.green(),
    )
