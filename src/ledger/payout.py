"""
Pari-mutuel payout arithmetic.

Winners of a category split the whole category pool in proportion to their
stake:

    payout_i = P * s_i // W

where P is the category pool and W the sum of winning stakes. Floor division
leaves at most (number of winners - 1) wei of dust, which stays with the
ledger and is recorded on the category settlement.
"""

from typing import Iterable

from src.models.schemas import Bet, BetType, CategorySettlement, Payout, Pool


def winning_bets(bets: Iterable[Bet], outcome_value: str) -> list[Bet]:
    """Bets whose prediction equals the declared value exactly (case-sensitive)."""
    return [bet for bet in bets if bet.prediction == outcome_value]


def aggregate_stakes(bets: Iterable[Bet]) -> dict[str, int]:
    """Sum stakes per bettor, preserving first-bet order."""
    stakes: dict[str, int] = {}
    for bet in bets:
        stakes[bet.bettor] = stakes.get(bet.bettor, 0) + bet.stake
    return stakes


def proportional_payouts(pool_total: int, stakes: dict[str, int]) -> list[Payout]:
    """
    Split ``pool_total`` across bettors in proportion to their stake.

    Args:
        pool_total: Category pool P in wei
        stakes: Winning stake per bettor

    Returns:
        One Payout per bettor with a positive stake
    """
    winning_stake = sum(stakes.values())
    if winning_stake <= 0:
        return []
    return [
        Payout(bettor=bettor, stake=stake, amount=pool_total * stake // winning_stake)
        for bettor, stake in stakes.items()
        if stake > 0
    ]


def settle_category(
    bet_type: BetType,
    outcome_value: str,
    pool: Pool,
    bets: list[Bet],
    refund_unclaimed: bool = False,
) -> CategorySettlement:
    """
    Compute the settlement of one category without moving any funds.

    With no winning bet the pool is either retained or, with
    ``refund_unclaimed``, every stake is returned to its bettor.
    """
    result = CategorySettlement(
        bet_type=bet_type,
        winning_value=outcome_value,
        pool_total=pool.total,
    )
    winners = winning_bets(bets, outcome_value)
    result.winning_stake = sum(bet.stake for bet in winners)

    if winners:
        result.payouts = proportional_payouts(pool.total, aggregate_stakes(winners))
        result.dust = pool.total - result.total_distributed
    elif refund_unclaimed:
        result.payouts = refund_payouts(bets)
        result.refunded = result.total_distributed
    else:
        result.retained = pool.total
    return result


def refund_payouts(bets: Iterable[Bet]) -> list[Payout]:
    """Return every stake to the bettor who placed it."""
    return [
        Payout(bettor=bettor, stake=stake, amount=stake)
        for bettor, stake in aggregate_stakes(bets).items()
    ]
