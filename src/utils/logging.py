"""
Logging setup and the event journal.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper

from src.models.events import DomainEvent


def setup_logging(log_level: str = "INFO", log_dir: str = "logs") -> None:
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
    """
    Path(log_dir).mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            TimeStamper(fmt="iso"),
            JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


class EventJournal:
    """
    Writes every published domain event to a daily JSON-lines file.

    Subscribe ``journal.record`` to an EventLog.
    """

    def __init__(self, log_dir: str = "logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = structlog.get_logger("event_journal")

        self._current_date: Optional[str] = None
        self._current_file: Optional[Path] = None
        self._file_handle = None

    def _get_log_file(self) -> Path:
        """Get current day's journal file, rotating if needed."""
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")

        if today != self._current_date:
            if self._file_handle:
                self._file_handle.close()

            self._current_date = today
            self._current_file = self.log_dir / f"events_{today}.jsonl"
            self._file_handle = open(self._current_file, "a")

        return self._current_file

    def record(self, event: DomainEvent) -> None:
        """Append one event as a JSON line."""
        self._get_log_file()

        self._file_handle.write(event.model_dump_json() + "\n")
        self._file_handle.flush()

        self.logger.debug(
            "event_recorded",
            event_name=event.event,
            match_id=event.match_id,
            sequence=event.sequence,
        )

    @property
    def current_file(self) -> Optional[Path]:
        return self._current_file

    def close(self) -> None:
        """Close journal file handle."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None
            self._current_date = None
