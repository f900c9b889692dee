"""Utility modules."""

from src.utils.logging import setup_logging, EventJournal
from src.utils.addresses import normalize_address, new_address

__all__ = [
    "setup_logging",
    "EventJournal",
    "normalize_address",
    "new_address",
]
