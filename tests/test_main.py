"""Tests for settings loading and application wiring."""

import pytest
from pydantic import ValidationError

from config.settings import LedgerSettings, OracleSettings, Settings
from src.main import build_system
from src.models.schemas import PayoutMode, UnclaimedPoolPolicy


def make_settings(**overrides):
    return Settings(_env_file=None, **overrides)


class TestSettings:

    def test_defaults(self):
        settings = make_settings()

        assert settings.ledger.payout_mode == PayoutMode.PUSH
        assert settings.ledger.unclaimed_pool_policy == UnclaimedPoolPolicy.RETAIN
        assert settings.ledger.min_stake_wei == 1
        assert settings.oracle.draw_label == "Draw"
        assert [m.match_name for m in settings.oracle.sample_matches] == [
            "Team A vs Team B",
            "Macquiao vs Payweather",
        ]

    def test_nested_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER__PAYOUT_MODE", "pull")
        monkeypatch.setenv("LEDGER__UNCLAIMED_POOL_POLICY", "refund")
        monkeypatch.setenv("ORACLE__DRAW_LABEL", "Tie")

        settings = make_settings()

        assert settings.ledger.payout_mode == PayoutMode.PULL
        assert settings.ledger.unclaimed_pool_policy == UnclaimedPoolPolicy.REFUND
        assert settings.oracle.draw_label == "Tie"

    def test_min_stake_must_be_positive(self):
        with pytest.raises(ValidationError):
            LedgerSettings(min_stake_wei=0)


class TestBuildSystem:

    def test_requires_owner(self):
        with pytest.raises(ValueError, match="Missing owner address"):
            build_system(make_settings(), configure_logging=False)

    def test_wires_ledger_to_registry(self, owner):
        system = build_system(make_settings(owner_address=owner), configure_logging=False)

        assert system.registry.get_owner() == owner
        assert system.ledger.get_oracle_address() == system.registry.get_address()
        assert system.journal is None

        system.registry.seed_sample_matches(owner)
        assert len(system.registry.get_all_matches()) == 2

    def test_component_owners_and_policies(self, accounts):
        settings = make_settings(
            owner_address=accounts[0],
            oracle=OracleSettings(owner_address=accounts[1], draw_label="Tie"),
            ledger=LedgerSettings(
                payout_mode=PayoutMode.PULL,
                unclaimed_pool_policy=UnclaimedPoolPolicy.REFUND,
                min_stake_wei=100,
            ),
        )

        system = build_system(settings, configure_logging=False)

        assert system.registry.get_owner() == accounts[1]
        assert system.ledger.owner == accounts[0]
        assert system.ledger.payout_mode == PayoutMode.PULL
        assert system.ledger.unclaimed_pool_policy == UnclaimedPoolPolicy.REFUND
        assert system.ledger.min_stake_wei == 100

    def test_journal_records_events(self, owner, tmp_path):
        settings = make_settings(owner_address=owner, journal_enabled=True, log_dir=str(tmp_path))
        system = build_system(settings, configure_logging=False)

        system.registry.seed_sample_matches(owner)
        system.close()

        lines = system.journal.current_file.read_text().splitlines()
        # OracleAddressSet, two MatchAdded, SampleMatchesSeeded
        assert len(lines) == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
