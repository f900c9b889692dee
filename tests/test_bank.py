"""Tests for in-memory balances, receive hooks and address handling."""

import pytest

from src.errors import InvalidArgumentError, TransferRejectedError
from src.ledger.bank import Bank
from src.utils.addresses import new_address, normalize_address


class TestAddresses:

    def test_checksums_lowercase_input(self, accounts):
        assert normalize_address(accounts[1].lower()) == accounts[1]

    @pytest.mark.parametrize("address", ["", "0x1234", "not an address", None])
    def test_rejects_invalid(self, address):
        with pytest.raises(InvalidArgumentError) as exc:
            normalize_address(address)
        assert exc.value.reason == "Invalid address"

    def test_new_addresses_are_distinct(self):
        first, second = new_address(), new_address()
        assert first != second
        assert normalize_address(first) == first


class TestBank:

    def test_mint_and_balance(self, accounts):
        bank = Bank()
        assert bank.balance_of(accounts[1]) == 0

        bank.mint(accounts[1], 50)
        bank.mint(accounts[1].lower(), 25)

        assert bank.balance_of(accounts[1]) == 75

    def test_mint_requires_positive_amount(self, accounts):
        with pytest.raises(InvalidArgumentError):
            Bank().mint(accounts[1], 0)

    def test_transfer(self, accounts):
        bank = Bank()
        bank.mint(accounts[1], 100)

        bank.transfer(accounts[1], accounts[2], 40)

        assert bank.balance_of(accounts[1]) == 60
        assert bank.balance_of(accounts[2]) == 40

    def test_insufficient_balance(self, accounts):
        bank = Bank()
        bank.mint(accounts[1], 10)

        with pytest.raises(InvalidArgumentError) as exc:
            bank.transfer(accounts[1], accounts[2], 11)

        assert exc.value.reason == "Insufficient balance"
        assert bank.balance_of(accounts[1]) == 10

    def test_hook_sees_credited_balance(self, accounts):
        bank = Bank()
        bank.mint(accounts[1], 100)
        seen = []
        bank.register_receiver(accounts[2], lambda sender, amount: seen.append(
            (sender, amount, bank.balance_of(accounts[2]))
        ))

        bank.transfer(accounts[1], accounts[2], 30)

        assert seen == [(accounts[1], 30, 30)]

    def test_rejecting_hook_reverts_transfer(self, accounts):
        bank = Bank()
        bank.mint(accounts[1], 100)

        def reject(sender, amount):
            raise RuntimeError("no thanks")

        bank.register_receiver(accounts[2], reject)

        with pytest.raises(TransferRejectedError) as exc:
            bank.transfer(accounts[1], accounts[2], 30)

        assert exc.value.recipient == accounts[2]
        assert exc.value.amount == 30
        assert bank.balance_of(accounts[1]) == 100
        assert bank.balance_of(accounts[2]) == 0

    def test_spent_funds_cannot_be_rejected(self, accounts):
        bank = Bank()
        bank.mint(accounts[1], 100)

        def spend_then_reject(sender, amount):
            bank.transfer(accounts[2], accounts[3], amount)
            raise RuntimeError("too late")

        bank.register_receiver(accounts[2], spend_then_reject)
        bank.transfer(accounts[1], accounts[2], 30)

        assert bank.balance_of(accounts[1]) == 70
        assert bank.balance_of(accounts[2]) == 0
        assert bank.balance_of(accounts[3]) == 30

    def test_unregister_hook(self, accounts):
        bank = Bank()
        bank.mint(accounts[1], 100)
        bank.register_receiver(accounts[2], lambda sender, amount: 1 / 0)
        bank.register_receiver(accounts[2], None)

        bank.transfer(accounts[1], accounts[2], 30)

        assert bank.balance_of(accounts[2]) == 30


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
