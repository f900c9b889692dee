"""Tests for the pari-mutuel payout arithmetic."""

import pytest

from src.ledger.payout import (
    aggregate_stakes,
    proportional_payouts,
    refund_payouts,
    settle_category,
    winning_bets,
)
from src.models.schemas import Bet, BetType, Pool


def make_bets(entries, bet_type=BetType.WINNER):
    return [
        Bet(bet_id=i, match_id=1, bet_type=bet_type, bettor=bettor, prediction=prediction, stake=stake)
        for i, (bettor, prediction, stake) in enumerate(entries, start=1)
    ]


def make_pool(bets, bet_type=BetType.WINNER):
    pool = Pool(match_id=1, bet_type=bet_type)
    for bet in bets:
        pool.add(bet.prediction, bet.stake)
    return pool


class TestProportionalPayouts:
    """payout_i = P * s_i // W."""

    def test_equal_stakes(self):
        payouts = proportional_payouts(90, {"a": 10, "b": 10, "c": 10})
        assert [p.amount for p in payouts] == [30, 30, 30]

    def test_weighted(self):
        payouts = proportional_payouts(1000, {"a": 1, "b": 3})
        assert {p.bettor: p.amount for p in payouts} == {"a": 250, "b": 750}

    def test_floor_never_overpays(self):
        pool_total = 10**18 + 7
        stakes = {"a": 3, "b": 5, "c": 11}
        payouts = proportional_payouts(pool_total, stakes)

        paid = sum(p.amount for p in payouts)
        assert paid <= pool_total
        assert pool_total - paid < len(stakes)

    def test_no_winning_stake(self):
        assert proportional_payouts(100, {}) == []
        assert proportional_payouts(100, {"a": 0}) == []

    def test_zero_stake_entries_skipped(self):
        payouts = proportional_payouts(100, {"a": 0, "b": 5})
        assert [p.bettor for p in payouts] == ["b"]


class TestWinningBets:

    def test_exact_match_only(self):
        bets = make_bets([("a", "Messi", 1), ("b", "messi", 1), ("c", "Messi ", 1)])
        assert [b.bettor for b in winning_bets(bets, "Messi")] == ["a"]

    def test_aggregate_preserves_order(self):
        bets = make_bets([("b", "x", 1), ("a", "x", 2), ("b", "x", 3)])
        assert list(aggregate_stakes(bets).items()) == [("b", 4), ("a", 2)]

    def test_refund_payouts(self):
        bets = make_bets([("a", "x", 2), ("b", "y", 3), ("a", "z", 5)])
        assert {p.bettor: p.amount for p in refund_payouts(bets)} == {"a": 7, "b": 3}


class TestSettleCategory:

    def test_with_winners(self):
        bets = make_bets([("a", "Neymar", 2), ("b", "Neymar", 2), ("c", "Messi", 2)], BetType.FIRST_SCORER)
        result = settle_category(BetType.FIRST_SCORER, "Messi", make_pool(bets, BetType.FIRST_SCORER), bets)

        assert result.pool_total == 6
        assert result.winning_stake == 2
        assert [(p.bettor, p.amount) for p in result.payouts] == [("c", 6)]
        assert result.dust == 0
        assert result.retained == 0

    def test_retains_unclaimed_pool(self):
        bets = make_bets([("a", "1-0", 4), ("b", "2-0", 6)], BetType.SCORELINE)
        result = settle_category(BetType.SCORELINE, "0-0", make_pool(bets, BetType.SCORELINE), bets)

        assert result.payouts == []
        assert result.retained == 10
        assert not result.has_winners

    def test_refunds_unclaimed_pool(self):
        bets = make_bets([("a", "1-0", 4), ("b", "2-0", 6)], BetType.SCORELINE)
        result = settle_category(
            BetType.SCORELINE, "0-0", make_pool(bets, BetType.SCORELINE), bets, refund_unclaimed=True
        )

        assert result.refunded == 10
        assert result.retained == 0
        assert {p.bettor: p.amount for p in result.payouts} == {"a": 4, "b": 6}

    def test_records_dust(self):
        bets = make_bets([("a", "x", 1), ("b", "x", 1), ("c", "x", 1), ("d", "y", 1)])
        result = settle_category(BetType.WINNER, "x", make_pool(bets), bets)

        assert result.total_distributed == 3
        assert result.dust == 1

    def test_empty_category(self):
        result = settle_category(BetType.WINNER, "Liverpool", make_pool([]), [])

        assert result.pool_total == 0
        assert result.total_distributed == 0
        assert result.retained == 0


@pytest.mark.parametrize("stakes,pool_total", [
    ({"a": 1}, 1),
    ({"a": 2, "b": 2}, 4),
    ({"a": 7, "b": 13, "c": 1}, 999),
])
def test_winners_split_whole_pool_up_to_dust(stakes, pool_total):
    payouts = proportional_payouts(pool_total, stakes)
    assert 0 <= pool_total - sum(p.amount for p in payouts) < len(stakes)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
