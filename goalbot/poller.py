# goalbot/poller.py

import argparse
import dataclasses
import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from goalbot.config import CONFIG, Config, clamp_poll_interval
from goalbot.destinations import DestinationRegistry
from goalbot.extract import FINAL_CLOCK, GameFacts, extract_game_facts
from goalbot.messaging import (
    broadcast,
    build_final_embed,
    build_goal_embed,
    build_period_embed,
)
from goalbot.sources.nhl import NhlClient
from goalbot.tracking import TrackingRecord, TrackingStore, utc_now

logger = logging.getLogger(__name__)

Embed = Dict[str, Any]


class PollCycle:
    """
    One pass over the live game: fetch, extract, diff against the tracking
    record, announce what is new, update the record.

    Calls to run() never overlap; a call made while another is in flight is
    skipped.
    """

    def __init__(
        self,
        client: NhlClient,
        store: TrackingStore,
        registry: DestinationRegistry,
        cfg: Config = CONFIG,
        dispatch: Optional[Callable[[Embed], Any]] = None,
    ):
        self.client = client
        self.store = store
        self.registry = registry
        self.cfg = cfg
        self.dispatch = dispatch or self._broadcast
        self._in_flight = threading.Lock()

    def _broadcast(self, embed: Embed):
        return broadcast(embed, registry=self.registry, cfg=self.cfg)

    def run(self, now: Optional[datetime] = None) -> Optional[List[Embed]]:
        """
        Returns the embeds sent this cycle, or None if the tick was skipped.
        Errors never escape.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.warning("[poller] previous cycle still running, skipping tick")
            return None

        sent: List[Embed] = []
        try:
            for game_id in self._games_to_poll(now or utc_now()):
                # one broken game must not hold up the others
                try:
                    sent.extend(self.poll_game(game_id))
                except Exception:
                    logger.exception("[poller] polling game %s failed", game_id)
        except Exception:
            logger.exception("[poller] cycle failed")
        finally:
            self._in_flight.release()
        return sent

    def _games_to_poll(self, now: datetime) -> List[str]:
        game_ids: List[str] = []

        live = self.client.fetch_current_live_game(now=now)
        if live is not None and not self.store.is_finished(live.game_id):
            _, created = self.store.ensure(live.game_id, started_at=live.start_time_utc)
            if created:
                logger.info("[TRACKING] started game %s", live.game_id)
            game_ids.append(live.game_id)

        # keep following tracked games until we see them end, or give up once
        # they are well past any possible end time
        give_up_after = timedelta(hours=self.cfg.game_window_hours + self.cfg.stale_game_grace_hours)
        for record in self.store:
            if record.game_id in game_ids:
                continue
            if record.started_at is not None and record.started_at + give_up_after <= now:
                logger.warning("[TRACKING] game %s never reported an end, dropping it", record.game_id)
                self.store.remove(record.game_id)
                continue
            game_ids.append(record.game_id)

        return game_ids

    def poll_game(self, game_id: str) -> List[Embed]:
        sent: List[Embed] = []

        def emit(embed: Embed) -> None:
            self.dispatch(embed)
            sent.append(embed)

        record, created = self.store.ensure(game_id)
        if created:
            logger.info("[TRACKING] started game %s", game_id)

        live_status = self.client.fetch_live_status(game_id)
        if live_status is None:
            logger.info("[poller] no live status for %s, retrying next cycle", game_id)
            return sent

        event_log = self.client.fetch_event_log(game_id)
        if event_log is None:
            logger.info("[poller] no event log for %s, retrying next cycle", game_id)
            return sent

        facts = extract_game_facts(game_id, live_status, event_log)

        if record.last_update_time is None and self.cfg.skip_backlog_on_start and facts.goals:
            record.advance_cursor(facts.goals[-1].index)
            logger.info("[TRACKING] %s: %d goals already on the board, not announcing", game_id, len(facts.goals))

        for goal in facts.goals[record.last_processed_event_index + 1:]:
            logger.info(
                "[GOAL] %s #%d %s (%s) %s %s",
                game_id, goal.index, goal.scorer, goal.strength, goal.period_label, goal.time_in_period,
            )
            emit(build_goal_embed(goal, facts, self.cfg))
            record.advance_cursor(goal.index)

        if record.last_period_label and facts.period_label != record.last_period_label:
            logger.info("[PERIOD] %s: %s -> %s", game_id, record.last_period_label, facts.period_label)
            emit(build_period_embed(facts, self.cfg))

        if facts.is_final and record.last_clock_value != FINAL_CLOCK:
            logger.info(
                "[FINAL] %s %d - %d %s",
                facts.away_abbrev, facts.away_score, facts.home_score, facts.home_abbrev,
            )
            emit(build_final_embed(facts, self.cfg))
            self.store.mark_finished(game_id)
            return sent

        _refresh(record, facts)
        return sent


def _refresh(record: TrackingRecord, facts: GameFacts) -> None:
    record.refresh(
        home_score=facts.home_score,
        away_score=facts.away_score,
        period_label=facts.period_label,
        clock=facts.clock,
    )


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

def run_forever(cycle: PollCycle, interval_seconds: float, stop: threading.Event) -> None:
    while not stop.is_set():
        cycle.run()
        stop.wait(interval_seconds)


def start_in_background(cycle: PollCycle, interval_seconds: float) -> Tuple[threading.Thread, threading.Event]:
    """
    Run the poll loop on a daemon thread. Set the returned event to stop it.
    """
    stop = threading.Event()
    thread = threading.Thread(
        target=run_forever,
        args=(cycle, interval_seconds, stop),
        name="goalbot-poller",
        daemon=True,
    )
    thread.start()
    return thread, stop


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Live poller: NHL gamecenter -> goal / period / final posts on Discord")
    p.add_argument("--interval-ms", type=int, default=CONFIG.poll_interval_ms)
    p.add_argument("--team", type=str, default=CONFIG.team_abbrev, help="NHL team code, e.g. TOR")
    p.add_argument("--log-level", type=str, default=CONFIG.log_level)
    p.add_argument("--skip-backlog", action="store_true", default=CONFIG.skip_backlog_on_start,
                   help="Do not announce goals already scored when a game is first picked up")
    p.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    cfg = dataclasses.replace(
        CONFIG,
        poll_interval_ms=clamp_poll_interval(args.interval_ms),
        team_abbrev=args.team.upper(),
        skip_backlog_on_start=args.skip_backlog,
    )

    registry = DestinationRegistry(cfg.discord_channels)
    if not len(registry):
        logger.warning("No Discord channels configured (DISCORD_CHANNELS); updates will only be logged")

    cycle = PollCycle(NhlClient(cfg), TrackingStore(), registry, cfg)

    if args.once:
        cycle.run()
        return

    logger.info("Polling NHL for %s every %.0fs", cfg.team_abbrev, cfg.poll_interval_seconds)

    stop = threading.Event()
    try:
        run_forever(cycle, cfg.poll_interval_seconds, stop)
    except KeyboardInterrupt:
        logger.info("Stopping poller")
        stop.set()


if __name__ == "__main__":
    main()
