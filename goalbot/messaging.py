# goalbot/messaging.py

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

import requests

from goalbot.config import CONFIG, Config
from goalbot.destinations import DestinationRegistry
from goalbot.extract import CLOCK_FALLBACK, GameFacts, Goal
from goalbot.sources.nhl import ScheduledGame

logger = logging.getLogger(__name__)

ET = ZoneInfo("America/New_York")


# ---------------------------------------------------------------------------
# Embed colors
# ---------------------------------------------------------------------------

GOAL_COLOR = 0x4CAF50
PERIOD_COLOR = 0x1976D2
FINAL_COLOR = 0x9C27B0
NEXT_GAME_COLOR = 0x00205B

EMBED_COLORS = {
    "goal": GOAL_COLOR,
    "period": PERIOD_COLOR,
    "final": FINAL_COLOR,
}


# ---------------------------------------------------------------------------
# Message formatting
# ---------------------------------------------------------------------------

def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def team_logo_url(abbrev: Optional[str], cfg: Config = CONFIG) -> Optional[str]:
    if not abbrev:
        return None
    return cfg.nhl_logo_url.format(abbrev=abbrev)


def _field(name: str, value: Any, inline: bool = True) -> Dict[str, Any]:
    return {"name": name, "value": str(value), "inline": inline}


def _scoreboard_fields(facts: GameFacts) -> List[Dict[str, Any]]:
    return [
        _field(facts.away_abbrev, facts.away_score),
        _field("VS", f"{facts.period_label} {facts.clock or CLOCK_FALLBACK}"),
        _field(facts.home_abbrev, facts.home_score),
    ]


def build_goal_embed(
    goal: Goal,
    facts: GameFacts,
    cfg: Config = CONFIG,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Title carries both team codes and the score right after the goal.
    Shot type is only listed when upstream gave one.
    """
    prefix = f"🚨 {goal.team_abbrev} GOAL!" if goal.team_abbrev else "🚨 GOAL!"
    title = (
        f"{prefix} {facts.away_abbrev} {goal.away_score} - "
        f"{goal.home_score} {facts.home_abbrev}"
    )

    fields = [
        _field("Scorer", goal.scorer, inline=False),
        _field("Assists", goal.assists, inline=False),
        _field("Strength", goal.strength),
        _field("Period", f"{goal.period_label} {goal.time_in_period}"),
    ]
    if goal.shot_type:
        fields.append(_field("Shot Type", goal.shot_type))

    embed: Dict[str, Any] = {
        "title": title,
        "color": GOAL_COLOR,
        "fields": fields,
        "timestamp": _timestamp(now),
    }

    logo = team_logo_url(goal.team_abbrev or cfg.team_abbrev, cfg)
    if logo:
        embed["thumbnail"] = {"url": logo}
    return embed


def build_period_embed(facts: GameFacts, cfg: Config = CONFIG, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "title": f"Period update: Now {facts.period_label}",
        "color": PERIOD_COLOR,
        "fields": _scoreboard_fields(facts),
        "thumbnail": {"url": team_logo_url(cfg.team_abbrev, cfg)},
        "footer": {"text": f"Game Status: {facts.state or 'LIVE'}"},
        "timestamp": _timestamp(now),
    }


def build_final_embed(facts: GameFacts, cfg: Config = CONFIG, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "title": (
            f"Game Final: {facts.away_abbrev} {facts.away_score} - "
            f"{facts.home_score} {facts.home_abbrev}"
        ),
        "color": FINAL_COLOR,
        "fields": _scoreboard_fields(facts),
        "thumbnail": {"url": team_logo_url(cfg.team_abbrev, cfg)},
        "footer": {"text": "Game Status: Final"},
        "timestamp": _timestamp(now),
    }


def format_game_time(start: Optional[datetime]) -> str:
    """
    "Saturday, October 18, 7:00 PM EDT"
    """
    if start is None:
        return "TBD"
    local = start.astimezone(ET)
    hour = local.hour % 12 or 12
    return f"{local:%A, %B} {local.day}, {hour}:{local:%M %p} {local.tzname()}"


def build_next_game_embed(
    game: Optional[ScheduledGame],
    cfg: Config = CONFIG,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    if game is None:
        return {
            "title": f"No upcoming {cfg.team_abbrev} games found",
            "color": PERIOD_COLOR,
            "description": f"There are no scheduled {cfg.team_abbrev} games in the near future.",
            "timestamp": _timestamp(now),
        }

    return {
        "title": f"Next {cfg.team_abbrev} Game",
        "color": NEXT_GAME_COLOR,
        "description": f"{game.away_name} at {game.home_name}",
        "fields": [
            _field("Game Time", format_game_time(game.start_time_utc), inline=False),
            _field("Venue", game.venue or "TBD", inline=False),
        ],
        "thumbnail": {"url": team_logo_url(cfg.team_abbrev, cfg)},
        "footer": {"text": "Data from NHL API"},
        "timestamp": _timestamp(now),
    }


# ---------------------------------------------------------------------------
# Discord sending
# ---------------------------------------------------------------------------

def send_discord_message(
    *,
    api_base: str,
    bot_token: str,
    channel_id: str,
    embed: Dict[str, Any],
    timeout: int = 10,
    user_agent: str = CONFIG.discord_user_agent,
) -> None:
    """
    Post a single embed to a channel via the Discord REST API.
    """
    resp = requests.post(
        f"{api_base.rstrip('/')}/channels/{channel_id}/messages",
        json={"embeds": [embed]},
        headers={
            "User-Agent": user_agent,
            "Authorization": f"Bot {bot_token}",
            "Content-Type": "application/json",
        },
        timeout=timeout,
    )
    resp.raise_for_status()


# ---------------------------------------------------------------------------
# Notification orchestration
# ---------------------------------------------------------------------------

def broadcast(
    embed: Dict[str, Any],
    *,
    registry: DestinationRegistry,
    cfg: Config = CONFIG,
    send: Callable[..., None] = send_discord_message,
) -> List[str]:
    """
    Deliver one embed to every configured channel.
    A failing channel is logged and skipped; returns the channel ids that got it.
    """
    destinations = registry.items()

    if not cfg.discord_bot_token:
        logger.info("[DISCORD DISABLED] %s", embed.get("title"))
        logger.debug("[embed] %s", json.dumps(embed))
        return []

    delivered: List[str] = []
    for guild_id, channel_id in destinations:
        try:
            send(
                api_base=cfg.discord_api_base,
                bot_token=cfg.discord_bot_token,
                channel_id=channel_id,
                embed=embed,
                timeout=cfg.http_timeout_seconds,
                user_agent=cfg.discord_user_agent,
            )
        except Exception as e:
            logger.error("[DISCORD ERROR] guild=%s channel=%s: %s", guild_id, channel_id, e)
            continue
        delivered.append(channel_id)

    return delivered
