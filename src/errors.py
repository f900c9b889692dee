"""
Exceptions raised by the match registry and the betting ledger.

Every failure carries a stable ``reason`` string so callers can assert on the
exact precondition that was violated.

Bet5050Error (base)
├── AuthorizationError     - caller is not the owner of the component
├── NotFoundError          - referenced match does not exist
├── InvalidStateError      - operation not allowed in the current state
├── InvalidArgumentError   - bad bet type, stake, address or outcome code
├── AlreadySettledError    - settlement already executed for the match
└── TransferRejectedError  - recipient refused an incoming transfer
"""

from typing import Optional


class Bet5050Error(Exception):
    """Base class for all registry and ledger errors."""

    def __init__(self, reason: str, match_id: Optional[int] = None):
        self.reason = reason
        self.match_id = match_id
        super().__init__(reason)

    def __str__(self) -> str:
        if self.match_id is not None:
            return f"[match {self.match_id}] {self.reason}"
        return self.reason


class AuthorizationError(Bet5050Error):
    """Caller is not the designated administrator."""

    def __init__(self, caller: str, reason: str = "Caller is not the owner"):
        super().__init__(reason)
        self.caller = caller


class NotFoundError(Bet5050Error):
    """Referenced match id is unknown to the registry."""

    def __init__(self, match_id: int, reason: str = "Match does not exist"):
        super().__init__(reason, match_id)


class InvalidStateError(Bet5050Error):
    pass


class InvalidArgumentError(Bet5050Error):
    pass


class AlreadySettledError(Bet5050Error):
    """Settlement for this match has already run."""

    def __init__(self, match_id: int, reason: str = "Match already settled"):
        super().__init__(reason, match_id)


class TransferRejectedError(Bet5050Error):
    """The recipient's receive hook refused the funds."""

    def __init__(self, recipient: str, amount: int, cause: Optional[BaseException] = None):
        super().__init__("Transfer rejected")
        self.recipient = recipient
        self.amount = amount
        self.cause = cause
