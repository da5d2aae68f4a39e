# goalbot/tracking.py

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Set, Tuple


@dataclass
class TrackingRecord:
    """
    What we have already announced for one game. Lives in memory only;
    a restart starts every game over at cursor -1.
    """
    game_id: str

    # scheduled start, or when we first saw the game
    started_at: Optional[datetime] = None

    last_update_time: Optional[datetime] = None
    last_period_label: str = ""
    last_home_score: int = 0
    last_away_score: int = 0
    last_clock_value: str = ""

    # highest scoring-event index already announced, -1 = none
    last_processed_event_index: int = -1

    def advance_cursor(self, index: int) -> None:
        # never moves backwards
        if index > self.last_processed_event_index:
            self.last_processed_event_index = index

    def refresh(self, home_score: int, away_score: int, period_label: str, clock: str) -> None:
        self.last_home_score = home_score
        self.last_away_score = away_score
        self.last_period_label = period_label
        self.last_clock_value = clock
        self.last_update_time = utc_now()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TrackingStore:
    """
    game_id -> TrackingRecord, plus the ids of games whose end was already
    announced in this process (those are never tracked again).

    Only the poll loop touches the store, so there is no locking.
    """

    def __init__(self):
        self._records: Dict[str, TrackingRecord] = {}
        self._finished: Set[str] = set()

    def __contains__(self, game_id) -> bool:
        return str(game_id) in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TrackingRecord]:
        return iter(list(self._records.values()))

    def game_ids(self):
        return list(self._records.keys())

    def get(self, game_id) -> Optional[TrackingRecord]:
        return self._records.get(str(game_id))

    def ensure(self, game_id, started_at: Optional[datetime] = None) -> Tuple[TrackingRecord, bool]:
        """
        Returns (record, created).
        """
        key = str(game_id)
        record = self._records.get(key)
        if record is not None:
            return record, False
        record = TrackingRecord(game_id=key, started_at=started_at or utc_now())
        self._records[key] = record
        return record, True

    def remove(self, game_id) -> bool:
        return self._records.pop(str(game_id), None) is not None

    def mark_finished(self, game_id) -> None:
        self.remove(game_id)
        self._finished.add(str(game_id))

    def is_finished(self, game_id) -> bool:
        return str(game_id) in self._finished
