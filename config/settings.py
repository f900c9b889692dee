"""
Configuration settings for the Bet5050 match oracle and betting ledger.
Uses pydantic-settings for validation and environment variable loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.models.schemas import PayoutMode, UnclaimedPoolPolicy


class SampleMatch(BaseModel):
    """One entry of the bootstrap data created by seed_sample_matches."""

    match_name: str
    players: str
    start_time: int
    end_time: int


def _default_sample_matches() -> list[SampleMatch]:
    # 2018-08-15 06:06 UTC to 08:06 UTC
    return [
        SampleMatch(
            match_name="Team A vs Team B",
            players="playerA, playerB, playerC",
            start_time=1534313160,
            end_time=1534320360,
        ),
        SampleMatch(
            match_name="Macquiao vs Payweather",
            players="playerD, playerE, playerF",
            start_time=1534313160,
            end_time=1534320360,
        ),
    ]


class OracleSettings(BaseSettings):
    """Match registry settings."""

    owner_address: str = Field(default="", description="Administrator allowed to mutate the registry")
    address: str = Field(default="", description="Registry address; random when empty")

    # Stored as the winner of a drawn match; Winner bets on this label win
    draw_label: str = "Draw"

    sample_matches: list[SampleMatch] = Field(default_factory=_default_sample_matches)


class LedgerSettings(BaseSettings):
    """Betting ledger settings."""

    owner_address: str = Field(default="", description="Administrator of the ledger")
    address: str = Field(default="", description="Escrow account address; random when empty")

    min_stake_wei: int = 1

    # push: pay winners inside check_outcome; pull: credit withdrawable balances
    payout_mode: PayoutMode = PayoutMode.PUSH

    # retain: a pool nobody predicted stays in the ledger; refund: stakes go back
    unclaimed_pool_policy: UnclaimedPoolPolicy = UnclaimedPoolPolicy.RETAIN

    restrict_settlement_to_owner: bool = False

    @field_validator("min_stake_wei")
    @classmethod
    def _positive_stake(cls, v: int) -> int:
        if v < 1:
            raise ValueError("min_stake_wei must be at least 1")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    journal_enabled: bool = False  # Write every event to logs/events_<date>.jsonl

    # Sub-settings
    oracle: OracleSettings = Field(default_factory=OracleSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)

    # Fallback administrator for both components
    owner_address: Optional[str] = None


# Global settings instance
settings = Settings()
