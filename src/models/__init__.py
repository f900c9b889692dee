"""Match, bet and settlement models plus domain events."""

from src.models.schemas import (
    Bet,
    BetType,
    CategorySettlement,
    MarketPhase,
    Match,
    MatchStatus,
    OutcomeKind,
    Payout,
    PayoutMode,
    Pool,
    Settlement,
    UnclaimedPoolPolicy,
)
from src.models.events import DomainEvent, EventLog

__all__ = [
    "Bet",
    "BetType",
    "CategorySettlement",
    "MarketPhase",
    "Match",
    "MatchStatus",
    "OutcomeKind",
    "Payout",
    "PayoutMode",
    "Pool",
    "Settlement",
    "UnclaimedPoolPolicy",
    "DomainEvent",
    "EventLog",
]
