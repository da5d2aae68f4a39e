"""Tests for `goalbot.sources.nhl`."""

from datetime import datetime, timedelta, timezone

import requests

from goalbot.config import Config
from goalbot.sources.nhl import NhlClient, parse_schedule, select_live_game, select_next_game

NOW = datetime(2024, 10, 19, 1, 0, tzinfo=timezone.utc)


class _Resp:
    def __init__(self, payload=None, status=200, bad_json=False):
        self.payload = payload
        self.status = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = responses
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        result = self.responses.get(url.rsplit("/v1/", 1)[-1])
        if isinstance(result, Exception):
            raise result
        return result


def _schedule_game(game_id, start, state):
    return {
        "id": game_id,
        "startTimeUTC": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "gameState": state,
        "venue": {"default": "Scotiabank Arena"},
        "homeTeam": {"abbrev": "TOR", "placeName": {"default": "Toronto"}, "commonName": {"default": "Maple Leafs"}},
        "awayTeam": {"abbrev": "BOS", "placeName": {"default": "Boston"}},
    }


SCHEDULE = {
    "games": [
        _schedule_game(1, NOW - timedelta(days=2), "OFF"),
        _schedule_game(2, NOW - timedelta(hours=1), "LIVE"),
        _schedule_game(3, NOW + timedelta(days=2), "FUT"),
        _schedule_game(4, NOW + timedelta(days=1), "FUT"),
    ]
}


def _client(responses):
    return NhlClient(Config(nhl_api_base="https://nhl.test/v1"), session=FakeSession(responses))


def test_parse_schedule_fields():
    games = parse_schedule(SCHEDULE)
    assert [g.game_id for g in games] == ["1", "2", "3", "4"]
    g = games[1]
    assert g.state == "LIVE"
    assert g.home_name == "Toronto Maple Leafs"
    assert g.away_name == "Boston"
    assert g.venue == "Scotiabank Arena"
    assert g.start_time_utc == NOW - timedelta(hours=1)


def test_live_game_needs_state_and_window():
    games = parse_schedule(SCHEDULE)
    window = timedelta(hours=4)
    assert select_live_game(games, NOW, window).game_id == "2"

    # past the window, even if upstream still says LIVE
    assert select_live_game(games, NOW + timedelta(hours=4), window) is None

    # started but not reported in progress
    pre = parse_schedule({"games": [_schedule_game(9, NOW - timedelta(minutes=5), "PRE")]})
    assert select_live_game(pre, NOW, window) is None


def test_next_game_is_earliest_future_start():
    games = parse_schedule(SCHEDULE)
    assert select_next_game(games, NOW).game_id == "4"
    assert select_next_game(games, NOW + timedelta(days=5)) is None


def test_fetch_current_and_next_game():
    client = _client({
        "club-schedule/TOR/week/now": _Resp(SCHEDULE),
        "club-schedule-season/TOR/now": _Resp(SCHEDULE),
    })
    assert client.fetch_current_live_game(now=NOW).game_id == "2"
    assert client.fetch_next_scheduled_game(now=NOW).game_id == "4"


def test_failures_become_none():
    client = _client({
        "club-schedule/TOR/week/now": requests.ConnectionError("connection refused"),
        "gamecenter/2/landing": _Resp(status=503),
        "gamecenter/2/play-by-play": _Resp(bad_json=True),
        "gamecenter/3/landing": _Resp(payload=["not", "a", "dict"]),
    })
    assert client.fetch_current_live_game(now=NOW) is None
    assert client.fetch_live_status("2") is None
    assert client.fetch_event_log("2") is None
    assert client.fetch_live_status("3") is None


def test_fetch_snapshots():
    landing = {"gameState": "LIVE"}
    pbp = {"plays": []}
    client = _client({
        "gamecenter/2/landing": _Resp(landing),
        "gamecenter/2/play-by-play": _Resp(pbp),
    })
    assert client.fetch_live_status("2") == landing
    assert client.fetch_event_log("2") == pbp
    assert client.session.urls == [
        "https://nhl.test/v1/gamecenter/2/landing",
        "https://nhl.test/v1/gamecenter/2/play-by-play",
    ]


def test_live_game_window_edges():
    window = timedelta(hours=4)

    starting_now = parse_schedule({"games": [_schedule_game(5, NOW, "LIVE")]})
    assert select_live_game(starting_now, NOW, window).game_id == "5"

    window_closing = parse_schedule({"games": [_schedule_game(6, NOW - window, "LIVE")]})
    assert select_live_game(window_closing, NOW, window) is None

    just_inside = parse_schedule({"games": [_schedule_game(7, NOW - window + timedelta(seconds=1), "LIVE")]})
    assert select_live_game(just_inside, NOW, window).game_id == "7"


def test_next_game_across_month_boundary():
    now = datetime(2024, 11, 1, 2, 0, tzinfo=timezone.utc)
    season = {
        "games": [
            _schedule_game(10, datetime(2024, 10, 31, 23, 0, tzinfo=timezone.utc), "OFF"),
            _schedule_game(11, datetime(2024, 11, 3, 0, 0, tzinfo=timezone.utc), "FUT"),
            _schedule_game(12, datetime(2024, 12, 1, 0, 0, tzinfo=timezone.utc), "FUT"),
        ]
    }
    client = _client({"club-schedule-season/TOR/now": _Resp(season)})

    assert client.fetch_next_scheduled_game(now=now).game_id == "11"
    assert client.session.urls == ["https://nhl.test/v1/club-schedule-season/TOR/now"]
