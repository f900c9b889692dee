"""Account address helpers."""

from eth_account import Account
from web3 import Web3

from src.errors import InvalidArgumentError


def normalize_address(address: str) -> str:
    """
    Return the EIP-55 checksum form of an address.

    Raises:
        InvalidArgumentError: if the value is not a 20-byte hex address
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidArgumentError("Invalid address")
    return Web3.to_checksum_address(address)


def new_address() -> str:
    """Generate a fresh random address for a component with no configured one."""
    return Account.create().address
