"""Match registry (oracle) and its clock."""

from src.oracle.clock import RegistryClock, to_timestamp
from src.oracle.registry import MatchRegistry

__all__ = [
    "MatchRegistry",
    "RegistryClock",
    "to_timestamp",
]
