"""
In-memory account balances.

Stands in for the native currency of the deploying environment: bettors hold
wei balances here, stakes move to the ledger's own account, and payouts move
back. Accounts may register a receive hook which runs after every incoming
transfer, the same way a contract fallback runs on payment.
"""

from typing import Callable, Dict, Optional

import structlog

from src.errors import InvalidArgumentError, TransferRejectedError
from src.utils.addresses import normalize_address

logger = structlog.get_logger()

ReceiveHook = Callable[[str, int], None]  # (sender, amount)


class Bank:
    """Wei balances keyed by checksum address."""

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._hooks: Dict[str, ReceiveHook] = {}
        self.logger = logger.bind(component="bank")

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def mint(self, address: str, amount: int) -> None:
        """Credit an account out of thin air (funding test or demo accounts)."""
        if amount <= 0:
            raise InvalidArgumentError("Amount must be greater than zero")
        address = normalize_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount

    def register_receiver(self, address: str, hook: Optional[ReceiveHook]) -> None:
        """Install (or with None, remove) the receive hook for an account."""
        address = normalize_address(address)
        if hook is None:
            self._hooks.pop(address, None)
        else:
            self._hooks[address] = hook

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move ``amount`` wei from sender to recipient.

        The recipient's hook runs after balances are updated. If it raises,
        the transfer is undone and TransferRejectedError is raised. A hook
        that already spent the incoming funds cannot reject them: the
        transfer stands.
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        if amount <= 0:
            raise InvalidArgumentError("Amount must be greater than zero")
        if self._balances.get(sender, 0) < amount:
            raise InvalidArgumentError("Insufficient balance")

        self._balances[sender] -= amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

        hook = self._hooks.get(recipient)
        if hook is None:
            return
        try:
            hook(sender, amount)
        except Exception as e:
            if self._balances.get(recipient, 0) < amount:
                self.logger.error(
                    "Recipient rejected a transfer it already spent",
                    sender=sender,
                    recipient=recipient,
                    amount=amount,
                    balance=self._balances.get(recipient, 0),
                    error=str(e),
                )
                return
            self._balances[recipient] -= amount
            self._balances[sender] += amount
            self.logger.warning(
                "Transfer rejected by recipient",
                sender=sender,
                recipient=recipient,
                amount=amount,
                error=str(e),
            )
            raise TransferRejectedError(recipient, amount, cause=e) from e
