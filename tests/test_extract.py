"""Tests for `goalbot.extract`."""

import pytest

from goalbot.extract import (
    FINAL_CLOCK,
    GameContext,
    classify_strength,
    extract_game_facts,
    extract_scoring_events,
    format_period_label,
)
from factories import MTL_ID, TOR_ID, event_log, goal_play, live_status, other_play, three_goal_log

CTX = GameContext(home_team_id=TOR_ID, away_team_id=MTL_ID, home_abbrev="TOR", away_abbrev="MTL")


def _bare_goal(**extra):
    play = {"typeDescKey": "goal", "details": {"eventOwnerTeamId": TOR_ID}}
    play.update(extra)
    return play


# ---------------------------------------------------------------------------
# extract_scoring_events
# ---------------------------------------------------------------------------

def test_scoring_events_keep_order_and_skip_other_plays():
    goals = extract_scoring_events(three_goal_log())
    assert [g["eventId"] for g in goals] == [101, 103, 104]


def test_scoring_event_indices_stable_as_log_grows():
    log = three_goal_log()
    before = extract_scoring_events(log)

    log["plays"].append(other_play(105, "shot-on-goal"))
    log["plays"].append(goal_play(106, home_score=3, away_score=1))
    after = extract_scoring_events(log)

    assert after[: len(before)] == before
    assert after[-1]["eventId"] == 106


def test_scoring_events_empty_inputs():
    assert extract_scoring_events(None) == []
    assert extract_scoring_events({}) == []
    assert extract_scoring_events({"plays": None}) == []


# ---------------------------------------------------------------------------
# format_period_label
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "descriptor, expected",
    [
        ({"number": 1, "periodType": "REG"}, "P1"),
        ({"number": 3, "periodType": "REG"}, "P3"),
        ({"number": 4, "periodType": "OT"}, "OT"),
        ({"number": 7, "periodType": "OT"}, "OT"),
        ({"number": 5, "periodType": "SO"}, "SO"),
        ({"number": 4}, "OT"),
        (None, "P1"),
        ({}, "P1"),
    ],
)
def test_format_period_label(descriptor, expected):
    assert format_period_label(descriptor) == expected


# ---------------------------------------------------------------------------
# classify_strength
# ---------------------------------------------------------------------------

def test_explicit_strength_beats_situation_code():
    play = _bare_goal(situationCode="1451")
    play["details"]["strength"] = "sh"
    # skater counts alone would say PP for the home side
    assert classify_strength(play, CTX) == "SH"


def test_penalty_shot_beats_empty_net_and_code():
    play = _bare_goal(situationCode="0641")
    play["details"].update({"shotType": "penalty-shot", "goalModifier": "empty-net"})
    assert classify_strength(play, CTX) == "PS"


def test_empty_net_beats_situation_code():
    play = _bare_goal(situationCode="0651")
    play["details"]["goalModifier"] = "empty-net"
    assert classify_strength(play, CTX) == "EN"


def test_even_strength_when_skater_counts_match():
    assert classify_strength(_bare_goal(situationCode="1551"), CTX) == "EV"


def test_power_play_and_short_handed_from_code():
    # away 4 skaters, home 5
    home_goal = _bare_goal(situationCode="1451")
    assert classify_strength(home_goal, CTX) == "PP"

    away_goal = _bare_goal(situationCode="1451")
    away_goal["details"]["eventOwnerTeamId"] = MTL_ID
    assert classify_strength(away_goal, CTX) == "SH"


def test_two_character_code():
    assert classify_strength(_bare_goal(situationCode="45"), CTX) == "PP"
    assert classify_strength(_bare_goal(situationCode="55"), CTX) == "EV"


def test_strength_defaults_to_even():
    assert classify_strength({"typeDescKey": "goal"}, CTX) == "EV"
    unknown_side = _bare_goal(situationCode="1451")
    unknown_side["details"]["eventOwnerTeamId"] = 999
    assert classify_strength(unknown_side, CTX) == "EV"


# ---------------------------------------------------------------------------
# extract_game_facts
# ---------------------------------------------------------------------------

def test_game_facts_from_snapshots():
    facts = extract_game_facts("2024020001", live_status(home=2, away=1, period=2, clock="15:31"), three_goal_log())

    assert facts.game_id == "2024020001"
    assert (facts.home_abbrev, facts.away_abbrev) == ("TOR", "MTL")
    assert (facts.home_score, facts.away_score) == (2, 1)
    assert facts.period_label == "P2"
    assert facts.clock == "15:31"
    assert not facts.is_final
    assert [g.index for g in facts.goals] == [0, 1, 2]

    first = facts.goals[0]
    assert first.scorer == "Auston Matthews #34"
    assert first.assists == "William Nylander #88, Mitch Marner #16"
    assert first.team_abbrev == "TOR"
    assert first.shot_type == "wrist"
    assert first.time_in_period == "03:12"

    second = facts.goals[1]
    assert second.team_abbrev == "MTL"
    assert second.assists == "Unassisted"
    assert (second.home_score, second.away_score) == (1, 1)


def test_final_state_uses_final_clock():
    facts = extract_game_facts("1", live_status(state="OFF", home=3, away=2, clock="00:00"), event_log([]))
    assert facts.is_final
    assert facts.clock == FINAL_CLOCK


def test_goal_fallbacks_when_fields_missing():
    log = {"plays": [{"typeDescKey": "goal"}]}
    facts = extract_game_facts("1", {"gameState": "LIVE"}, log)

    goal = facts.goals[0]
    assert goal.scorer == "Unknown"
    assert goal.assists == "Unassisted"
    assert goal.strength == "EV"
    assert goal.period_label == "P1"
    assert goal.time_in_period == "TBD"
    assert goal.shot_type is None
    assert facts.clock == "TBD"
    assert facts.period_label == "P1"
