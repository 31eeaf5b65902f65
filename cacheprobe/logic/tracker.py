"""
Infer cache age from a reverse proxy that only reports a hit counter.

Varnish style caches expose `x-cache: MISS` or `x-cache: HIT: <n>` but no Age
header. When the counter drops (or a MISS shows up) the cached object was
refilled, so the time since that reset approximates the object's age.
"""
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from cacheprobe.utils.logger import logger

MISS = "MISS"
HIT_COUNT = re.compile(r"(?P<hit>\d+)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TrackerState:
    last_hit_count: int = 1
    reset_in_progress: bool = False
    reset_timestamp: Optional[datetime] = None


class HitCounterTracker:
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self.state = TrackerState()

    @staticmethod
    def hit_count(status: Optional[str]) -> int:
        match = HIT_COUNT.search(status or "")
        return int(match.group("hit")) if match else 0

    def observe(self, status: Optional[str], now: Optional[datetime] = None) -> None:
        """
        Feed one sample of the tracked layer's status header.
        """
        state = self.state
        count = self.hit_count(status)

        # The latch keeps a MISS/HIT wobble during one refill from moving the
        # timestamp; only the start of the episode is recorded.
        if not state.reset_in_progress and (status == MISS or count < state.last_hit_count):
            state.reset_in_progress = True
            state.reset_timestamp = now or self.clock()
            logger.info(f"Cache reset detected (status={status!r}, hits {state.last_hit_count} -> {count})")

        state.last_hit_count = count

        if state.reset_in_progress and status != MISS:
            state.reset_in_progress = False

    def age_since_reset(self, now: Optional[datetime] = None) -> Union[int, float]:
        reset = self.state.reset_timestamp
        if reset is None:
            return math.nan

        elapsed = (now or self.clock()) - reset
        return abs(int(elapsed.total_seconds()))
