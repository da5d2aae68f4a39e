# goalbot/destinations.py

import threading
from typing import Dict, List, Optional, Tuple


class DestinationRegistry:
    """
    guild_id -> channel_id. One channel per guild, last write wins.

    Written by the command layer, read by the dispatcher, so access is locked.
    """

    def __init__(self, seed: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._channels: Dict[str, str] = {}
        for guild_id, channel_id in (seed or {}).items():
            self.configure(guild_id, channel_id)

    def configure(self, guild_id, channel_id) -> None:
        with self._lock:
            self._channels[str(guild_id)] = str(channel_id)

    def remove(self, guild_id) -> bool:
        with self._lock:
            return self._channels.pop(str(guild_id), None) is not None

    def get(self, guild_id) -> Optional[str]:
        with self._lock:
            return self._channels.get(str(guild_id))

    def items(self) -> List[Tuple[str, str]]:
        # snapshot; callers may iterate while commands mutate the registry
        with self._lock:
            return list(self._channels.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)
