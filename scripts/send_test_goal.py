import argparse
import os

from goalbot.config import CONFIG
from goalbot.extract import GameFacts, Goal
from goalbot.messaging import build_goal_embed, send_discord_message


def simulated_goal(team: str, scorer: str, period: int, time: str, strength: str):
    # tracked team is home, anybody else is the visitor
    home_scores = team == CONFIG.team_abbrev
    home = CONFIG.team_abbrev
    away = "OPP" if home_scores else team

    goal = Goal(
        index=0,
        scorer=scorer,
        assists="William Nylander #88, Mitchell Marner #16",
        strength=strength,
        period_label="OT" if period > 3 else f"P{period}",
        time_in_period=time,
        home_score=2 if home_scores else 1,
        away_score=1 if home_scores else 2,
        team_abbrev=team,
        shot_type="wrist",
    )
    facts = GameFacts(
        game_id="0",
        state="LIVE",
        is_final=False,
        home_abbrev=home,
        away_abbrev=away,
        home_team_id=None,
        away_team_id=None,
        home_score=goal.home_score,
        away_score=goal.away_score,
        period_label=goal.period_label,
        clock=time,
        goals=[goal],
    )
    return goal, facts


def main():
    p = argparse.ArgumentParser(description="Post a simulated goal embed to one Discord channel")
    p.add_argument("channel_id")
    p.add_argument("--team", default=CONFIG.team_abbrev)
    p.add_argument("--scorer", default="Auston Matthews #34")
    p.add_argument("--period", type=int, default=1)
    p.add_argument("--time", default="10:00")
    p.add_argument("--strength", default="EV", choices=["EV", "PP", "SH", "EN", "PS"])
    args = p.parse_args()

    token = os.environ["DISCORD_BOT_TOKEN"]

    goal, facts = simulated_goal(args.team.upper(), args.scorer, args.period, args.time, args.strength)
    send_discord_message(
        api_base=CONFIG.discord_api_base,
        bot_token=token,
        channel_id=args.channel_id,
        embed=build_goal_embed(goal, facts),
        timeout=CONFIG.http_timeout_seconds,
    )
    print("Sent test goal to channel", args.channel_id)


if __name__ == "__main__":
    main()
