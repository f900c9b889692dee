"""Configuration module."""

from config.settings import settings, Settings, OracleSettings, LedgerSettings

__all__ = [
    "settings",
    "Settings",
    "OracleSettings",
    "LedgerSettings",
]
