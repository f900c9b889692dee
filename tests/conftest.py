"""Shared fixtures: deterministic accounts, a funded bank, a registry and a ledger."""

import pytest
from eth_account import Account
from web3 import Web3

from config.settings import OracleSettings
from src.ledger.bank import Bank
from src.ledger.bet5050 import BettingLedger
from src.models.events import EventLog
from src.oracle.clock import RegistryClock
from src.oracle.registry import MatchRegistry

STARTING_BALANCE = Web3.to_wei(100, "ether")

# 2022-04-22 14:48:02 UTC to 16:48:02 UTC
KICKOFF = 1650638882
FULL_TIME = 1650646082


@pytest.fixture
def accounts():
    """Ten deterministic addresses; accounts[0] administers both components."""
    return [Account.from_key("0x" + f"{i:064x}").address for i in range(1, 11)]


@pytest.fixture
def owner(accounts):
    return accounts[0]


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def clock():
    return RegistryClock(pinned=KICKOFF - 3600)


@pytest.fixture
def bank(accounts):
    bank = Bank()
    for address in accounts:
        bank.mint(address, STARTING_BALANCE)
    return bank


@pytest.fixture
def registry(owner, events, clock):
    return MatchRegistry(
        owner=owner,
        events=events,
        clock=clock,
        sample_matches=OracleSettings().sample_matches,
    )


@pytest.fixture
def ledger(owner, bank, events, registry):
    ledger = BettingLedger(owner=owner, bank=bank, events=events)
    ledger.set_oracle_address(owner, registry)
    events.drain()
    return ledger


@pytest.fixture
def match_id(registry, owner, events):
    """A fresh AWAITING match."""
    match_id = registry.add_match(
        owner,
        "Liverpool vs Chelsea",
        "MoSalah,SadioMane,Lukaku,Kante",
        KICKOFF,
        FULL_TIME,
    )
    events.drain()
    return match_id


@pytest.fixture
def decide(registry, owner):
    """Start a match and declare its outcome in one step."""
    def _decide(match_id, winner, first_scorer, scoreline, kind=3):
        registry.set_match_underway(owner, match_id)
        return registry.declare_outcome(owner, match_id, kind, winner, first_scorer, scoreline)
    return _decide
