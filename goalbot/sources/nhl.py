# goalbot/sources/nhl.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import requests

from goalbot.config import CONFIG, Config

logger = logging.getLogger(__name__)


HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; goalbot/1.0)"
}

# gameState values reported by the NHL API
IN_PROGRESS_STATES = ("LIVE", "CRIT")
TERMINAL_STATES = ("FINAL", "OFF")


@dataclass
class ScheduledGame:
    game_id: str
    start_time_utc: Optional[datetime]
    state: str  # FUT, PRE, LIVE, CRIT, FINAL, OFF

    home_abbrev: str
    away_abbrev: str
    home_name: str
    away_name: str

    venue: Optional[str] = None


def _localized(obj) -> str:
    # NHL wraps display strings as {"default": "..."}
    if isinstance(obj, dict):
        return obj.get("default") or ""
    return obj or ""


def _parse_start(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).astimezone(timezone.utc)
    except ValueError:
        return None


def _team_name(team: dict) -> str:
    place = _localized(team.get("placeName"))
    common = _localized(team.get("commonName"))
    name = f"{place} {common}".strip()
    return name or team.get("abbrev") or "TBD"


def parse_schedule(data: dict) -> List[ScheduledGame]:
    """
    club-schedule payload -> ScheduledGame list (in upstream order).
    Entries without an id are dropped.
    """
    games: List[ScheduledGame] = []

    for g in (data or {}).get("games") or []:
        if g.get("id") is None:
            continue

        home = g.get("homeTeam") or {}
        away = g.get("awayTeam") or {}

        games.append(
            ScheduledGame(
                game_id=str(g.get("id")),
                start_time_utc=_parse_start(g.get("startTimeUTC")),
                state=(g.get("gameState") or "").upper(),
                home_abbrev=home.get("abbrev") or "HOME",
                away_abbrev=away.get("abbrev") or "AWAY",
                home_name=_team_name(home),
                away_name=_team_name(away),
                venue=_localized(g.get("venue")) or None,
            )
        )

    return games


def select_live_game(
    games: List[ScheduledGame],
    now: datetime,
    window: timedelta,
) -> Optional[ScheduledGame]:
    """
    A game is live when it has started, start + window is still ahead of us,
    and the API reports it in progress.
    """
    for g in games:
        if g.start_time_utc is None:
            continue
        if g.start_time_utc > now:
            continue
        if g.start_time_utc + window <= now:
            continue
        if g.state in IN_PROGRESS_STATES:
            return g
    return None


def select_next_game(games: List[ScheduledGame], now: datetime) -> Optional[ScheduledGame]:
    upcoming = [g for g in games if g.start_time_utc is not None and g.start_time_utc > now]
    if not upcoming:
        return None
    return min(upcoming, key=lambda g: g.start_time_utc)


class NhlClient:
    """
    Thin wrapper over api-web.nhle.com.

    Every fetch returns None when the data is unavailable (network error,
    non-2xx status, body that is not JSON). Callers retry on the next cycle.
    """

    def __init__(self, cfg: Config = CONFIG, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.session = session or requests.Session()
        self.session.headers.update(HEADERS)

    def _get_json(self, path: str) -> Optional[dict]:
        url = f"{self.cfg.nhl_api_base.rstrip('/')}/{path.lstrip('/')}"
        try:
            resp = self.session.get(url, timeout=self.cfg.http_timeout_seconds)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            logger.warning("[nhl] fetch failed %s: %s", url, e)
            return None
        except ValueError as e:
            logger.warning("[nhl] bad JSON from %s: %s", url, e)
            return None

        if not isinstance(data, dict):
            logger.warning("[nhl] unexpected payload from %s: %s", url, type(data).__name__)
            return None
        return data

    def fetch_schedule(self, window: str = "week") -> Optional[List[ScheduledGame]]:
        """
        window: "week" or "month" around today, or "season" for the whole
        current season (crosses month boundaries).
        """
        if window == "season":
            path = f"club-schedule-season/{self.cfg.team_abbrev}/now"
        else:
            path = f"club-schedule/{self.cfg.team_abbrev}/{window}/now"
        data = self._get_json(path)
        if data is None:
            return None
        return parse_schedule(data)

    def fetch_current_live_game(self, now: Optional[datetime] = None) -> Optional[ScheduledGame]:
        games = self.fetch_schedule("week")
        if not games:
            return None
        now = now or datetime.now(timezone.utc)
        return select_live_game(games, now, timedelta(hours=self.cfg.game_window_hours))

    def fetch_next_scheduled_game(self, now: Optional[datetime] = None) -> Optional[ScheduledGame]:
        games = self.fetch_schedule("season")
        if not games:
            return None
        return select_next_game(games, now or datetime.now(timezone.utc))

    def fetch_live_status(self, game_id: str) -> Optional[dict]:
        return self._get_json(f"gamecenter/{game_id}/landing")

    def fetch_event_log(self, game_id: str) -> Optional[dict]:
        return self._get_json(f"gamecenter/{game_id}/play-by-play")
