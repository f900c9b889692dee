"""
Bet5050 - Application wiring.

Builds the bank, event log, match registry and betting ledger from settings
and binds the ledger to the registry.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from config.settings import Settings, settings as default_settings
from src.ledger.bank import Bank
from src.ledger.bet5050 import BettingLedger
from src.models.events import EventLog
from src.oracle.registry import MatchRegistry
from src.utils.logging import EventJournal, setup_logging

logger = structlog.get_logger()


@dataclass
class Bet5050System:
    """The cooperating components of one deployment."""
    bank: Bank
    events: EventLog
    registry: MatchRegistry
    ledger: BettingLedger
    journal: Optional[EventJournal] = None

    def close(self) -> None:
        if self.journal:
            self.journal.close()


def build_system(settings: Optional[Settings] = None, configure_logging: bool = True) -> Bet5050System:
    """
    Create a registry and a ledger bound to it.

    Raises:
        ValueError: if no administrator address is configured
    """
    settings = settings or default_settings
    log = logger.bind(component="bootstrap")

    if configure_logging:
        setup_logging(settings.log_level, settings.log_dir)

    oracle_owner = settings.oracle.owner_address or settings.owner_address
    ledger_owner = settings.ledger.owner_address or settings.owner_address
    if not oracle_owner or not ledger_owner:
        log.error("Owner address required (OWNER_ADDRESS or ORACLE__OWNER_ADDRESS/LEDGER__OWNER_ADDRESS)")
        raise ValueError("Missing owner address")

    events = EventLog()
    journal = None
    if settings.journal_enabled:
        journal = EventJournal(settings.log_dir)
        events.subscribe(journal.record)

    bank = Bank()
    registry = MatchRegistry(
        owner=oracle_owner,
        events=events,
        address=settings.oracle.address or None,
        draw_label=settings.oracle.draw_label,
        sample_matches=settings.oracle.sample_matches,
    )
    ledger = BettingLedger(
        owner=ledger_owner,
        bank=bank,
        events=events,
        address=settings.ledger.address or None,
        min_stake_wei=settings.ledger.min_stake_wei,
        payout_mode=settings.ledger.payout_mode,
        unclaimed_pool_policy=settings.ledger.unclaimed_pool_policy,
        restrict_settlement_to_owner=settings.ledger.restrict_settlement_to_owner,
    )
    ledger.set_oracle_address(ledger_owner, registry)

    log.info(
        "Bet5050 ready",
        registry=registry.address,
        ledger=ledger.address,
        payout_mode=ledger.payout_mode.value,
        unclaimed_pool_policy=ledger.unclaimed_pool_policy.value,
        journal=journal is not None,
    )
    return Bet5050System(bank=bank, events=events, registry=registry, ledger=ledger, journal=journal)
