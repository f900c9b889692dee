"""
Domain events and the in-process event log.

Events are frozen pydantic models so they can be journaled as JSON lines.
Each mutating operation publishes its events through
``EventLog.transaction()``: nothing reaches subscribers unless the whole
operation completes.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger()

E = TypeVar("E", bound="DomainEvent")


class DomainEvent(BaseModel):
    """Base event. ``sequence`` is assigned when the event is published."""
    model_config = ConfigDict(frozen=True)

    event: str = ""
    match_id: Optional[int] = None
    sequence: int = 0

    def __init__(self, **data):
        data.setdefault("event", type(self).__name__)
        super().__init__(**data)


# --- Registry events ---

class MatchAdded(DomainEvent):
    match_name: str
    players: str
    start_time: int
    end_time: int


class SampleMatchesSeeded(DomainEvent):
    match_ids: list[int] = Field(default_factory=list)


class MatchUnderway(DomainEvent):
    pass


class MatchCancelled(DomainEvent):
    pass


class OutcomeDeclared(DomainEvent):
    outcome_kind: int
    winner: str
    first_scorer: str
    scoreline: str


class TimeUpdated(DomainEvent):
    current_time: int


class MatchPending(DomainEvent):
    seconds_to_start: int


class MatchPendingCompletion(DomainEvent):
    seconds_past_end: int


# --- Ledger events ---

class OracleAddressSet(DomainEvent):
    oracle_address: str


class BetPlaced(DomainEvent):
    bet_id: int
    bettor: str
    bet_type: str
    prediction: str
    stake: int


class CategoryOutcome(DomainEvent):
    """Common shape of the three per-category settlement events."""
    winning_value: str
    pool_total: int
    total_distributed: int
    winners: list[str] = Field(default_factory=list)


class WinnerOutcome(CategoryOutcome):
    pass


class ScorelineOutcome(CategoryOutcome):
    pass


class FirstscorerOutcome(CategoryOutcome):
    pass


class BetsRefunded(DomainEvent):
    bet_type: Optional[str] = None  # None when the whole match was refunded
    total_refunded: int
    bettors: list[str] = Field(default_factory=list)


class PayoutDeferred(DomainEvent):
    bettor: str
    amount: int


class PayoutWithdrawn(DomainEvent):
    bettor: str
    amount: int


class EventLog:
    """
    Ordered, append-only log of published domain events.

    Subscribers are called synchronously in publish order. ``drain()`` hands
    back everything published since the previous drain.
    """

    def __init__(self):
        self._events: list[DomainEvent] = []
        self._undrained = 0
        self._subscribers: list[Callable[[DomainEvent], None]] = []
        self._batches: list[list[DomainEvent]] = []
        self.logger = logger.bind(component="event_log")

    def subscribe(self, callback: Callable[[DomainEvent], None]) -> None:
        self._subscribers.append(callback)

    def emit(self, event: DomainEvent) -> None:
        """Queue an event in the innermost open transaction, or publish it."""
        if self._batches:
            self._batches[-1].append(event)
        else:
            self._publish([event])

    @contextmanager
    def transaction(self) -> Iterator["EventLog"]:
        """
        Buffer events for one operation.

        On success the batch is published in emission order; on error it is
        discarded. Nested transactions (re-entrant calls) publish their own
        batch when they complete.
        """
        batch: list[DomainEvent] = []
        self._batches.append(batch)
        try:
            yield self
        except BaseException:
            self._batches.pop()
            if batch:
                self.logger.debug("Discarded event batch", count=len(batch))
            raise
        self._batches.pop()
        self._publish(batch)

    def _publish(self, batch: list[DomainEvent]) -> None:
        for event in batch:
            published = event.model_copy(update={"sequence": len(self._events) + 1})
            self._events.append(published)
            for callback in self._subscribers:
                callback(published)

    def drain(self) -> list[DomainEvent]:
        """Return events published since the last drain."""
        fresh = self._events[self._undrained:]
        self._undrained = len(self._events)
        return fresh

    @property
    def events(self) -> list[DomainEvent]:
        return list(self._events)

    def of_type(self, event_type: Type[E]) -> list[E]:
        return [e for e in self._events if isinstance(e, event_type)]

    def __len__(self) -> int:
        return len(self._events)
