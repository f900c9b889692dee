"""
Bet5050 - pari-mutuel betting ledger.

Accepts escrowed wagers on three categories of a registry match (Winner,
Scoreline, FirstScorer) while the match is AWAITING, and settles each
category exactly once after the registry declares an outcome.

Ledger view of a match:

    OPEN (bets accepted) ──> CLOSED (registry says started) ──> SETTLED

Settlement computes every payout and records the match as SETTLED before any
funds move, so a recipient that calls back into check_outcome during its
transfer only sees a settled match.
"""

from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Optional

import structlog

from src.errors import (
    AlreadySettledError,
    AuthorizationError,
    InvalidArgumentError,
    InvalidStateError,
    TransferRejectedError,
)
from src.ledger.bank import Bank
from src.ledger.payout import refund_payouts, settle_category
from src.models.events import (
    BetPlaced,
    BetsRefunded,
    EventLog,
    FirstscorerOutcome,
    OracleAddressSet,
    PayoutDeferred,
    PayoutWithdrawn,
    ScorelineOutcome,
    WinnerOutcome,
)
from src.models.schemas import (
    Bet,
    BetType,
    CategorySettlement,
    MarketPhase,
    Match,
    MatchStatus,
    Payout,
    PayoutMode,
    Pool,
    Settlement,
    UnclaimedPoolPolicy,
)
from src.oracle.registry import MatchRegistry
from src.utils.addresses import new_address, normalize_address

logger = structlog.get_logger()

OUTCOME_EVENTS = {
    BetType.WINNER: WinnerOutcome,
    BetType.SCORELINE: ScorelineOutcome,
    BetType.FIRST_SCORER: FirstscorerOutcome,
}

LEDGER_BUSY = "Ledger busy with a payout"

CLOSED_REASONS = {
    MatchStatus.UNDERWAY: "Match is underway",
    MatchStatus.PENDING_COMPLETION: "Match is underway",
    MatchStatus.DECIDED: "Match has finished",
    MatchStatus.CANCELLED: "Match is cancelled",
}


class BettingLedger:
    """
    Escrow, pool accounting and settlement for wagers on registry matches.

    Features:
    - Bets accepted only while the registry reports the match AWAITING
    - Incremental per-prediction and per-category pools
    - Proportional payouts with dust kept by the ledger
    - At-most-once settlement, marked before any transfer
    - Push payouts with pull fallback, or pull-only payouts
    """

    def __init__(
        self,
        owner: str,
        bank: Bank,
        events: Optional[EventLog] = None,
        address: Optional[str] = None,
        min_stake_wei: int = 1,
        payout_mode: PayoutMode = PayoutMode.PUSH,
        unclaimed_pool_policy: UnclaimedPoolPolicy = UnclaimedPoolPolicy.RETAIN,
        restrict_settlement_to_owner: bool = False,
    ):
        self.owner = normalize_address(owner)
        self.address = normalize_address(address) if address else new_address()
        self.bank = bank
        self.events = events or EventLog()
        self.min_stake_wei = min_stake_wei
        self.payout_mode = PayoutMode(payout_mode)
        self.unclaimed_pool_policy = UnclaimedPoolPolicy(unclaimed_pool_policy)
        self.restrict_settlement_to_owner = restrict_settlement_to_owner
        self.logger = logger.bind(component="betting_ledger")

        self._oracle: Optional[MatchRegistry] = None

        # State
        self._bets: dict[int, list[Bet]] = {}
        self._pools: dict[tuple[int, BetType], Pool] = {}
        self._settlements: dict[int, Settlement] = {}
        self._withdrawable: dict[str, int] = {}
        self._retained_total = 0
        self._next_bet_id = 1
        self._busy = False

    # ------------------------------------------------------------------
    # Re-entrancy
    # ------------------------------------------------------------------

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """
        Hold the ledger for one mutating call.

        Receive hooks run while a payout is in flight; any ledger mutation
        they attempt is refused, which the bank turns into a rejected
        transfer.
        """
        if self._busy:
            self.logger.warning("Re-entrant ledger call refused")
            raise InvalidStateError(LEDGER_BUSY)
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    # ------------------------------------------------------------------
    # Oracle binding
    # ------------------------------------------------------------------

    def set_oracle_address(self, caller: str, registry: MatchRegistry) -> str:
        """Bind the ledger to the registry it reads matches and outcomes from."""
        if normalize_address(caller) != self.owner:
            raise AuthorizationError(caller)
        if self._oracle is not None and self._oracle is not registry and self._bets:
            raise InvalidStateError("Cannot change oracle with bets recorded")

        with self.events.transaction():
            self._oracle = registry
            self.events.emit(OracleAddressSet(oracle_address=registry.address))
        self.logger.info("Oracle bound", oracle_address=registry.address)
        return registry.address

    def get_oracle_address(self) -> Optional[str]:
        return self._oracle.address if self._oracle else None

    def _require_oracle(self) -> MatchRegistry:
        if self._oracle is None:
            raise InvalidStateError("Oracle address not set")
        return self._oracle

    def get_match(self, match_id: int) -> Match:
        """Proxy to the registry's match record."""
        return self._require_oracle().get_match(match_id)

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    def place_bet(
        self,
        caller: str,
        match_id: int,
        bet_type,
        prediction: str,
        value: int,
    ) -> Bet:
        """
        Escrow ``value`` wei on a prediction for one category of a match.

        Raises:
            NotFoundError: match unknown to the registry
            InvalidStateError: match no longer AWAITING, or a payout is in flight
            InvalidArgumentError: bad category, stake, prediction or balance
        """
        with self._exclusive():
            oracle = self._require_oracle()
            bettor = normalize_address(caller)

            match = oracle.get_match(match_id)
            if match.status != MatchStatus.AWAITING:
                reason = CLOSED_REASONS[match.status]
                self.logger.debug("Bet rejected", match_id=match_id, reason=reason)
                raise InvalidStateError(reason, match_id)

            category = BetType.from_string(bet_type)
            if category is None:
                raise InvalidArgumentError("Bet item invalid", match_id)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidArgumentError("Stake must be greater than zero", match_id)
            if value < self.min_stake_wei:
                raise InvalidArgumentError("Stake below minimum", match_id)
            if not prediction:
                raise InvalidArgumentError("Prediction must not be empty", match_id)

            with self.events.transaction():
                # Escrow first: an insufficient balance aborts before any bookkeeping
                self.bank.transfer(bettor, self.address, value)

                bet = Bet(
                    bet_id=self._next_bet_id,
                    match_id=match_id,
                    bet_type=category,
                    bettor=bettor,
                    prediction=prediction,
                    stake=value,
                    placed_at=oracle.clock.now(),
                )
                self._next_bet_id += 1
                self._bets.setdefault(match_id, []).append(bet)
                self._pool(match_id, category).add(prediction, value)

                self.events.emit(BetPlaced(
                    match_id=match_id,
                    bet_id=bet.bet_id,
                    bettor=bettor,
                    bet_type=category.value,
                    prediction=prediction,
                    stake=value,
                ))

            self.logger.info(
                "Bet placed",
                match_id=match_id,
                bet_id=bet.bet_id,
                bettor=bettor,
                bet_type=category.value,
                prediction=prediction,
                stake=value,
            )
            return bet

    def _pool(self, match_id: int, bet_type: BetType) -> Pool:
        key = (match_id, bet_type)
        if key not in self._pools:
            self._pools[key] = Pool(match_id=match_id, bet_type=bet_type)
        return self._pools[key]

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def check_outcome(self, caller: str, match_id: int) -> Settlement:
        """
        Settle every category of a decided (or cancelled) match, once.

        Raises:
            AlreadySettledError: the match was settled before
            NotFoundError: match unknown to the registry
            InvalidStateError: no outcome declared yet, or a payout is in flight
        """
        with self._exclusive():
            caller = normalize_address(caller)
            if self.restrict_settlement_to_owner and caller != self.owner:
                raise AuthorizationError(caller)
            oracle = self._require_oracle()

            if match_id in self._settlements:
                self.logger.warning("Repeated settlement attempt", match_id=match_id, caller=caller)
                raise AlreadySettledError(match_id)

            match = oracle.get_match(match_id)
            if match.status == MatchStatus.CANCELLED:
                settlement = self._plan_refund(match_id, oracle.clock.now())
            elif match.status == MatchStatus.DECIDED:
                settlement = self._plan_settlement(match, oracle.clock.now())
            else:
                raise InvalidStateError("Match outcome not declared", match_id)

            with self.events.transaction():
                # Mark settled before paying anyone
                self._settlements[match_id] = settlement
                self._retained_total += settlement.total_retained

                if settlement.cancelled:
                    payouts = [p for c in settlement.categories.values() for p in c.payouts]
                    self._pay_all(match_id, payouts)
                    self.events.emit(BetsRefunded(
                        match_id=match_id,
                        total_refunded=settlement.total_distributed,
                        bettors=sorted({p.bettor for p in payouts}),
                    ))
                else:
                    for category in settlement.categories.values():
                        self._pay_all(match_id, category.payouts)
                        self._emit_category(match_id, category)

            self.logger.info(
                "Match settled",
                match_id=match_id,
                cancelled=settlement.cancelled,
                distributed=settlement.total_distributed,
                retained=settlement.total_retained,
            )
            return settlement

    def _plan_settlement(self, match: Match, now: int) -> Settlement:
        settlement = Settlement(match_id=match.match_id, settled_at=now)
        refund_unclaimed = self.unclaimed_pool_policy == UnclaimedPoolPolicy.REFUND
        for bet_type in BetType:
            settlement.categories[bet_type] = settle_category(
                bet_type,
                match.outcome_for(bet_type),
                self.get_pool(match.match_id, bet_type),
                self.get_bets(match.match_id, bet_type),
                refund_unclaimed=refund_unclaimed,
            )
        return settlement

    def _plan_refund(self, match_id: int, now: int) -> Settlement:
        settlement = Settlement(match_id=match_id, settled_at=now, cancelled=True)
        for bet_type in BetType:
            pool = self.get_pool(match_id, bet_type)
            category = CategorySettlement(bet_type=bet_type, winning_value="", pool_total=pool.total)
            category.payouts = refund_payouts(self.get_bets(match_id, bet_type))
            category.refunded = category.total_distributed
            settlement.categories[bet_type] = category
        return settlement

    def _emit_category(self, match_id: int, category: CategorySettlement) -> None:
        if category.refunded:
            self.events.emit(BetsRefunded(
                match_id=match_id,
                bet_type=category.bet_type.value,
                total_refunded=category.refunded,
                bettors=[p.bettor for p in category.payouts],
            ))
        event_cls = OUTCOME_EVENTS[category.bet_type]
        self.events.emit(event_cls(
            match_id=match_id,
            winning_value=category.winning_value,
            pool_total=category.pool_total,
            total_distributed=category.total_distributed - category.refunded,
            winners=[] if category.refunded else [p.bettor for p in category.payouts],
        ))
        if not category.has_winners:
            self.logger.info(
                "No winning bets",
                match_id=match_id,
                bet_type=category.bet_type.value,
                winning_value=category.winning_value,
                retained=category.retained,
                refunded=category.refunded,
            )

    def _pay_all(self, match_id: int, payouts: list[Payout]) -> None:
        for payout in payouts:
            if payout.amount > 0:
                self._pay(match_id, payout.bettor, payout.amount)

    def _pay(self, match_id: int, bettor: str, amount: int) -> None:
        if self.payout_mode == PayoutMode.PULL:
            self._credit(bettor, amount)
            return
        try:
            self.bank.transfer(self.address, bettor, amount)
        except TransferRejectedError:
            self._credit(bettor, amount)
            self.events.emit(PayoutDeferred(match_id=match_id, bettor=bettor, amount=amount))
            self.logger.warning("Payout deferred to withdrawal", match_id=match_id, bettor=bettor, amount=amount)

    def _credit(self, bettor: str, amount: int) -> None:
        self._withdrawable[bettor] = self._withdrawable.get(bettor, 0) + amount

    def withdraw(self, caller: str) -> int:
        """
        Pay out the caller's withdrawable balance.

        The balance is cleared before the transfer and restored if the
        transfer is rejected.
        """
        with self._exclusive():
            bettor = normalize_address(caller)
            amount = self._withdrawable.get(bettor, 0)
            if amount <= 0:
                raise InvalidArgumentError("Nothing to withdraw")

            with self.events.transaction():
                self._withdrawable[bettor] = 0
                try:
                    self.bank.transfer(self.address, bettor, amount)
                except TransferRejectedError:
                    self._withdrawable[bettor] = self._withdrawable.get(bettor, 0) + amount
                    raise
                self.events.emit(PayoutWithdrawn(bettor=bettor, amount=amount))
            self.logger.info("Payout withdrawn", bettor=bettor, amount=amount)
            return amount

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_bets(
        self,
        match_id: int,
        bet_type: Optional[BetType] = None,
        bettor: Optional[str] = None,
    ) -> list[Bet]:
        bets = self._bets.get(match_id, [])
        if bet_type is not None:
            bets = [b for b in bets if b.bet_type == bet_type]
        if bettor is not None:
            bettor = normalize_address(bettor)
            bets = [b for b in bets if b.bettor == bettor]
        return list(bets)

    def get_pool(self, match_id: int, bet_type: BetType) -> Pool:
        """Snapshot of a category pool."""
        pool = self._pools.get((match_id, bet_type))
        if pool is None:
            return Pool(match_id=match_id, bet_type=bet_type)
        return replace(pool, by_prediction=dict(pool.by_prediction))

    def get_market_phase(self, match_id: int) -> MarketPhase:
        if match_id in self._settlements:
            return MarketPhase.SETTLED
        if self.get_match(match_id).status == MatchStatus.AWAITING:
            return MarketPhase.OPEN
        return MarketPhase.CLOSED

    def get_settlement(self, match_id: int) -> Optional[Settlement]:
        return self._settlements.get(match_id)

    def is_settled(self, match_id: int) -> bool:
        return match_id in self._settlements

    def withdrawable_of(self, address: str) -> int:
        return self._withdrawable.get(normalize_address(address), 0)

    @property
    def escrow_balance(self) -> int:
        """Wei currently held by the ledger account."""
        return self.bank.balance_of(self.address)

    @property
    def retained_total(self) -> int:
        """Unclaimed pools plus rounding dust kept across all settlements."""
        return self._retained_total
