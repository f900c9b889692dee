"""
Betting ledger.

- bank: account balances and transfers
- payout: pari-mutuel payout arithmetic
- bet5050: escrow, pools and settlement
"""

from src.ledger.bank import Bank
from src.ledger.bet5050 import BettingLedger

__all__ = [
    "Bank",
    "BettingLedger",
]
