"""
Data models for the match registry and the betting ledger.

Matches and bets are plain dataclasses. Matches are frozen: every status
transition stores a replaced copy so outcome fields can never be edited in
place once declared.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional


class MatchStatus(str, Enum):
    """Lifecycle status of a match as recorded by the registry."""
    AWAITING = "awaiting"
    UNDERWAY = "underway"
    PENDING_COMPLETION = "pending_completion"  # past end_time, no outcome yet
    DECIDED = "decided"
    CANCELLED = "cancelled"

    @property
    def is_underway(self) -> bool:
        return self in (MatchStatus.UNDERWAY, MatchStatus.PENDING_COMPLETION)

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.DECIDED, MatchStatus.CANCELLED)


class OutcomeKind(IntEnum):
    """Outcome code passed to declare_outcome."""
    UNDECIDED = 1
    DRAW = 2
    DECIDED = 3

    @classmethod
    def parse(cls, value: int) -> Optional["OutcomeKind"]:
        """Convert a raw outcome code, returning None for unknown codes."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


class BetType(str, Enum):
    """The three wager categories."""
    WINNER = "Winner"
    SCORELINE = "Scoreline"
    FIRST_SCORER = "FirstScorer"

    @classmethod
    def from_string(cls, value) -> Optional["BetType"]:
        """Exact, case-sensitive lookup by category name."""
        if isinstance(value, cls):
            return value
        for bet_type in cls:
            if bet_type.value == value:
                return bet_type
        return None


class MarketPhase(str, Enum):
    """Ledger view of a match."""
    OPEN = "open"
    CLOSED = "closed"
    SETTLED = "settled"


class PayoutMode(str, Enum):
    PUSH = "push"
    PULL = "pull"


class UnclaimedPoolPolicy(str, Enum):
    """What happens to a category pool nobody predicted correctly."""
    RETAIN = "retain"
    REFUND = "refund"


@dataclass(frozen=True)
class Match:
    """A match record owned by the registry."""
    match_id: int
    match_name: str
    players: str
    start_time: int  # epoch seconds
    end_time: int
    status: MatchStatus = MatchStatus.AWAITING
    created_at: int = 0

    # Outcome (set once by declare_outcome)
    outcome_kind: Optional[OutcomeKind] = None
    winner: str = ""
    first_scorer: str = ""
    scoreline: str = ""

    @property
    def has_outcome(self) -> bool:
        return self.outcome_kind is not None

    def outcome_for(self, bet_type: BetType) -> str:
        """Declared outcome value for one wager category."""
        if bet_type == BetType.WINNER:
            return self.winner
        if bet_type == BetType.SCORELINE:
            return self.scoreline
        return self.first_scorer

    def to_log(self) -> dict:
        """Convert to loggable dict."""
        return {
            "match_id": self.match_id,
            "match_name": self.match_name,
            "status": self.status.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "winner": self.winner or None,
        }


@dataclass(frozen=True)
class Bet:
    """A single escrowed wager."""
    bet_id: int
    match_id: int
    bet_type: BetType
    bettor: str
    prediction: str
    stake: int  # wei
    placed_at: int = 0


@dataclass
class Pool:
    """
    Running stake totals for one (match, bet type).

    Updated incrementally as bets arrive; ``total`` always equals the sum of
    ``by_prediction``.
    """
    match_id: int
    bet_type: BetType
    total: int = 0
    by_prediction: dict[str, int] = field(default_factory=dict)

    def add(self, prediction: str, stake: int) -> None:
        self.by_prediction[prediction] = self.by_prediction.get(prediction, 0) + stake
        self.total += stake

    def stake_on(self, prediction: str) -> int:
        return self.by_prediction.get(prediction, 0)


@dataclass(frozen=True)
class Payout:
    """Amount owed to one winning bettor."""
    bettor: str
    stake: int
    amount: int


@dataclass
class CategorySettlement:
    """Result of settling one wager category of a match."""
    bet_type: BetType
    winning_value: str
    pool_total: int = 0
    winning_stake: int = 0
    payouts: list[Payout] = field(default_factory=list)
    dust: int = 0
    retained: int = 0
    refunded: int = 0

    @property
    def total_distributed(self) -> int:
        return sum(p.amount for p in self.payouts)

    @property
    def has_winners(self) -> bool:
        return self.winning_stake > 0


@dataclass
class Settlement:
    """Per-match settlement record; its existence marks the match settled."""
    match_id: int
    settled_at: int
    cancelled: bool = False
    categories: dict[BetType, CategorySettlement] = field(default_factory=dict)

    @property
    def total_distributed(self) -> int:
        return sum(c.total_distributed for c in self.categories.values())

    @property
    def total_retained(self) -> int:
        return sum(c.retained + c.dust for c in self.categories.values())
