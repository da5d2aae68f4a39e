# goalbot/config.py
# acts as central place for all runtime settings


import os
from dataclasses import dataclass, field
from typing import Dict

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


MIN_POLL_INTERVAL_MS = 1000


def clamp_poll_interval(ms: int) -> int:
    # 0 or negative would spin the poll loop
    return max(int(ms), MIN_POLL_INTERVAL_MS)


def parse_channel_seed(raw: str) -> Dict[str, str]:
    """
    DISCORD_CHANNELS="guild_id:channel_id,guild_id:channel_id"
    Malformed pairs are ignored.
    """
    out: Dict[str, str] = {}
    for pair in (raw or "").split(","):
        guild_id, sep, channel_id = pair.strip().partition(":")
        if sep and guild_id.strip() and channel_id.strip():
            out[guild_id.strip()] = channel_id.strip()
    return out


@dataclass(frozen=True)
class Config:
    # Team we announce for (NHL three-letter code)
    team_abbrev: str = "TOR"

    # Polling interval for the live game loop
    poll_interval_ms: int = 60000

    # Upper bound on a game's length, used to decide if a scheduled game can still be live
    game_window_hours: int = 4

    # Extra time past the window before a tracked game that never ended is dropped
    stale_game_grace_hours: int = 2

    # NHL endpoints (public JSON)
    nhl_api_base: str = "https://api-web.nhle.com/v1"
    nhl_logo_url: str = "https://assets.nhle.com/logos/nhl/svg/{abbrev}_light.svg"

    # Discord REST
    discord_api_base: str = "https://discord.com/api/v10"
    discord_user_agent: str = "DiscordBot (goalbot, 0.1.0)"
    discord_bot_token: str = ""
    discord_channels: Dict[str, str] = field(default_factory=dict)

    http_timeout_seconds: int = 30

    # Seed a new game's cursor from the goals already on the board instead of
    # announcing all of them (off = announce everything after a restart)
    skip_backlog_on_start: bool = False

    log_level: str = "INFO"

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0


def config_from_env() -> Config:
    """
    Load settings from environment variables (and .env, if present).
    """
    defaults = Config()
    return Config(
        team_abbrev=(os.getenv("NHL_TEAM_ABBREV") or defaults.team_abbrev).upper(),
        poll_interval_ms=clamp_poll_interval(_env_int("POLL_INTERVAL_MS", defaults.poll_interval_ms)),
        game_window_hours=_env_int("GAME_WINDOW_HOURS", defaults.game_window_hours),
        stale_game_grace_hours=_env_int("STALE_GAME_GRACE_HOURS", defaults.stale_game_grace_hours),
        nhl_api_base=os.getenv("NHL_API_BASE") or defaults.nhl_api_base,
        discord_api_base=os.getenv("DISCORD_API_BASE") or defaults.discord_api_base,
        discord_user_agent=os.getenv("DISCORD_USER_AGENT") or defaults.discord_user_agent,
        discord_bot_token=os.getenv("DISCORD_BOT_TOKEN") or "",
        discord_channels=parse_channel_seed(os.getenv("DISCORD_CHANNELS", "")),
        http_timeout_seconds=_env_int("HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds),
        skip_backlog_on_start=_env_bool("SKIP_BACKLOG_ON_START", defaults.skip_backlog_on_start),
        log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
    )


CONFIG = config_from_env()
