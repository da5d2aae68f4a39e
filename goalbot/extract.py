# goalbot/extract.py
#
# Turns a landing snapshot + play-by-play log into plain facts the poller
# can diff against its tracking record.

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from goalbot.sources.nhl import TERMINAL_STATES

# Clock value recorded once a game is over
FINAL_CLOCK = "Final"

SCORER_FALLBACK = "Unknown"
ASSISTS_FALLBACK = "Unassisted"
STRENGTH_FALLBACK = "EV"
PERIOD_FALLBACK = "P1"
CLOCK_FALLBACK = "TBD"

REGULATION_PERIODS = 3


@dataclass(frozen=True)
class GameContext:
    home_team_id: Optional[int]
    away_team_id: Optional[int]
    home_abbrev: str = "HOME"
    away_abbrev: str = "AWAY"

    def side_of(self, team_id) -> Optional[str]:
        if team_id is None:
            return None
        if team_id == self.home_team_id:
            return "home"
        if team_id == self.away_team_id:
            return "away"
        return None

    def abbrev_of(self, team_id) -> Optional[str]:
        side = self.side_of(team_id)
        if side == "home":
            return self.home_abbrev
        if side == "away":
            return self.away_abbrev
        return None


@dataclass
class Goal:
    index: int  # position in the scoring-event list, stable as the log grows
    scorer: str
    assists: str
    strength: str
    period_label: str
    time_in_period: str
    home_score: int
    away_score: int
    team_abbrev: Optional[str]
    shot_type: Optional[str] = None


@dataclass
class GameFacts:
    game_id: str
    state: str
    is_final: bool

    home_abbrev: str
    away_abbrev: str
    home_team_id: Optional[int]
    away_team_id: Optional[int]

    home_score: int
    away_score: int

    period_label: str
    clock: str

    goals: List[Goal] = field(default_factory=list)


def _safe_int(x, default: int = 0) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def _text(x) -> str:
    if isinstance(x, dict):
        x = x.get("default")
    if x is None:
        return ""
    return str(x).strip()


# ---------------------------------------------------------------------------
# Scoring events
# ---------------------------------------------------------------------------

def extract_scoring_events(event_log: Optional[dict]) -> List[dict]:
    """
    Goals only, in the order the log lists them. Index i of the result always
    refers to the same goal as long as the upstream log only appends.
    """
    plays = (event_log or {}).get("plays") or []
    return [p for p in plays if (p.get("typeDescKey") or "").lower() == "goal"]


def format_period_label(descriptor: Optional[dict]) -> str:
    """
    {"number": 2, "periodType": "REG"} -> "P2"
    OT / SO render as fixed labels whatever their number.
    """
    if not descriptor:
        return PERIOD_FALLBACK

    period_type = (descriptor.get("periodType") or "").upper()
    if period_type == "OT":
        return "OT"
    if period_type == "SO":
        return "SO"

    number = _safe_int(descriptor.get("number"), default=0)
    if number <= 0:
        return PERIOD_FALLBACK
    if number > REGULATION_PERIODS:
        return "OT"
    return f"P{number}"


def _skater_counts(situation_code) -> Optional[tuple]:
    """
    NHL situationCode: away goalie, away skaters, home skaters, home goalie.
    Returns (away_skaters, home_skaters) as characters.
    """
    code = _text(situation_code)
    if len(code) == 4:
        return code[1], code[2]
    if len(code) == 2:
        return code[0], code[1]
    return None


def classify_strength(play: dict, context: GameContext) -> str:
    """
    First match wins:
      1. explicit strength tag from upstream
      2. penalty shot
      3. empty net
      4. skater counts from the situation code (PP / SH), else EV
    """
    details = play.get("details") or {}

    explicit = _text(details.get("strength") or play.get("strength"))
    if explicit:
        return explicit.upper()

    shot_type = _text(details.get("shotType")).lower().replace(" ", "-")
    if shot_type == "penalty-shot":
        return "PS"

    modifier = _text(details.get("goalModifier")).lower().replace(" ", "-")
    if modifier == "empty-net" or details.get("emptyNet") is True:
        return "EN"

    counts = _skater_counts(play.get("situationCode"))
    side = context.side_of(details.get("eventOwnerTeamId"))
    if counts is None or side is None:
        return STRENGTH_FALLBACK

    away, home = counts
    if away == home:
        return STRENGTH_FALLBACK

    own, other = (home, away) if side == "home" else (away, home)
    return "PP" if own > other else "SH"


def _roster_names(event_log: Optional[dict]) -> Dict[int, str]:
    names: Dict[int, str] = {}
    for spot in (event_log or {}).get("rosterSpots") or []:
        player_id = spot.get("playerId")
        if player_id is None:
            continue
        name = f"{_text(spot.get('firstName'))} {_text(spot.get('lastName'))}".strip()
        if not name:
            continue
        number = spot.get("sweaterNumber")
        names[player_id] = f"{name} #{number}" if number not in (None, "") else name
    return names


def build_goal(
    index: int,
    play: dict,
    context: GameContext,
    roster: Dict[int, str],
    fallback_home: int = 0,
    fallback_away: int = 0,
) -> Goal:
    details = play.get("details") or {}

    scorer = roster.get(details.get("scoringPlayerId")) or _text(details.get("scoringPlayerName"))

    assists = []
    for key in ("assist1PlayerId", "assist2PlayerId"):
        name = roster.get(details.get(key))
        if name:
            assists.append(name)

    shot_type = _text(details.get("shotType")) or None

    return Goal(
        index=index,
        scorer=scorer or SCORER_FALLBACK,
        assists=", ".join(assists) or ASSISTS_FALLBACK,
        strength=classify_strength(play, context) or STRENGTH_FALLBACK,
        period_label=format_period_label(play.get("periodDescriptor")),
        time_in_period=_text(play.get("timeInPeriod")) or CLOCK_FALLBACK,
        home_score=_safe_int(details.get("homeScore"), default=fallback_home),
        away_score=_safe_int(details.get("awayScore"), default=fallback_away),
        team_abbrev=context.abbrev_of(details.get("eventOwnerTeamId")),
        shot_type=shot_type,
    )


# ---------------------------------------------------------------------------
# Whole-game facts
# ---------------------------------------------------------------------------

def game_context(live_status: Optional[dict], event_log: Optional[dict]) -> GameContext:
    # Prefer the play-by-play team blocks; the landing snapshot carries the same ids
    home = (event_log or {}).get("homeTeam") or (live_status or {}).get("homeTeam") or {}
    away = (event_log or {}).get("awayTeam") or (live_status or {}).get("awayTeam") or {}
    return GameContext(
        home_team_id=home.get("id"),
        away_team_id=away.get("id"),
        home_abbrev=home.get("abbrev") or "HOME",
        away_abbrev=away.get("abbrev") or "AWAY",
    )


def extract_game_facts(game_id: str, live_status: dict, event_log: dict) -> GameFacts:
    home = live_status.get("homeTeam") or {}
    away = live_status.get("awayTeam") or {}

    state = (live_status.get("gameState") or "").upper()
    is_final = state in TERMINAL_STATES

    home_score = _safe_int(home.get("score"))
    away_score = _safe_int(away.get("score"))

    clock_obj = live_status.get("clock") or {}
    if is_final:
        clock = FINAL_CLOCK
    else:
        clock = _text(clock_obj.get("timeRemaining")) or CLOCK_FALLBACK

    context = game_context(live_status, event_log)
    roster = _roster_names(event_log)

    goals = [
        build_goal(i, play, context, roster, fallback_home=home_score, fallback_away=away_score)
        for i, play in enumerate(extract_scoring_events(event_log))
    ]

    return GameFacts(
        game_id=str(game_id),
        state=state,
        is_final=is_final,
        home_abbrev=context.home_abbrev,
        away_abbrev=context.away_abbrev,
        home_team_id=context.home_team_id,
        away_team_id=context.away_team_id,
        home_score=home_score,
        away_score=away_score,
        period_label=format_period_label(live_status.get("periodDescriptor")),
        clock=clock,
        goals=goals,
    )
