"""
Weekly generation quota bookkeeping.

The event log in the quota store is the only source of truth. The
advisory cache is a per-process projection of it, refreshed after every
authoritative read and consulted only when the store is unreachable.

Check and record are not atomic: two concurrent attempts for the same
user can both pass check and both record, exceeding the limit by one.
Callers serialize attempts per user; remaining is clamped at zero.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from ai_project_planner.config.loader import QuotaConfig
from ai_project_planner.storage.models import GenerationEvent

from .errors import QuotaRecordError

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UsageWindow:
    """Quota limit and the rolling period it applies to."""
    limit: int = 10
    duration: timedelta = timedelta(days=7)

    @classmethod
    def from_config(cls, config: QuotaConfig) -> "UsageWindow":
        return cls(limit=config.weekly_limit, duration=timedelta(days=config.window_days))


@dataclass(frozen=True)
class UsageStatus:
    """Quota status derived from the events inside the window.

    reset_time is only set once the limit is reached. degraded marks a
    status computed from the advisory cache instead of the quota store.
    """
    has_reached_limit: bool
    remaining: int
    reset_time: Optional[datetime] = None
    degraded: bool = False

    def used(self, limit: int) -> int:
        """Number of generations consumed, for display."""
        return limit - self.remaining


def compute_usage_status(
    events: Iterable[GenerationEvent],
    window: UsageWindow,
    now: datetime,
    degraded: bool = False
) -> UsageStatus:
    """Compute quota status from a user's events.

    Events older than now - window.duration are ignored, so callers may
    pass an unfiltered list.

    Args:
        events: Generation events of a single user
        window: Limit and rolling period
        now: Reference time
        degraded: Whether the events came from the advisory cache

    Returns:
        UsageStatus with remaining clamped to [0, limit]
    """
    window_start = now - window.duration
    in_window = [e.timestamp for e in events if e.timestamp >= window_start]
    count = len(in_window)

    reset_time = None
    if count >= window.limit:
        reset_time = min(in_window) + window.duration

    return UsageStatus(
        has_reached_limit=count >= window.limit,
        remaining=max(0, window.limit - count),
        reset_time=reset_time,
        degraded=degraded
    )


@dataclass
class AdvisoryCache:
    """Process-local mirror of recent generation events per user.

    Never authoritative. Rebuilt from the quota store on every successful
    check and appended to after every successful record.
    """
    events: Dict[str, List[GenerationEvent]] = field(default_factory=dict)

    def refresh(self, user_id: str, events: Iterable[GenerationEvent]) -> None:
        self.events[user_id] = sorted(events, key=lambda e: e.timestamp)

    def mirror(self, event: GenerationEvent) -> None:
        self.events.setdefault(event.user_id, []).append(event)

    def events_for(self, user_id: str) -> List[GenerationEvent]:
        return list(self.events.get(user_id, []))


class UsageLedger:
    """Computes and records per-user generation quota.

    Args:
        store: Quota store exposing list_events(user_id, since) and
            insert_event(user_id, timestamp, project_id)
        window: Limit and rolling period
        cache: Advisory cache; a fresh one is created when omitted
        clock: Callable returning the current UTC time
    """

    def __init__(
        self,
        store,
        window: Optional[UsageWindow] = None,
        cache: Optional[AdvisoryCache] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.window = window or UsageWindow()
        self.cache = cache if cache is not None else AdvisoryCache()
        self.clock = clock

    def check(self, user_id: str) -> UsageStatus:
        """Return the user's quota status.

        Falls back to the advisory cache when the store cannot be read;
        the result is then marked degraded and the attempt should still
        be permitted.
        """
        now = self.clock()
        since = now - self.window.duration
        try:
            events = self.store.list_events(user_id, since)
        except Exception as e:
            logger.warning("Quota store unreachable for user %s, using advisory cache: %s", user_id, e)
            return compute_usage_status(self.cache.events_for(user_id), self.window, now, degraded=True)

        self.cache.refresh(user_id, events)
        return compute_usage_status(events, self.window, now)

    def record(self, user_id: str, project_id: Optional[str] = None) -> GenerationEvent:
        """Durably record a generation, then mirror it into the cache.

        Raises:
            QuotaRecordError: If the quota store rejected the write
        """
        try:
            event = self.store.insert_event(user_id, self.clock(), project_id)
        except Exception as e:
            logger.error("Failed to record generation for user %s: %s", user_id, e)
            raise QuotaRecordError(str(e)) from e

        try:
            self.cache.mirror(event)
        except Exception:
            # The durable write succeeded; a stale cache only affects display.
            logger.warning("Failed to mirror generation event into advisory cache", exc_info=True)

        logger.info("Recorded generation for user %s (project %s)", user_id, project_id)
        return event
