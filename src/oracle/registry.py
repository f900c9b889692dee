"""
Match Registry - the oracle's authoritative record of matches.

Owns match lifecycle and declared outcomes:

    AWAITING ──> UNDERWAY ──> (PENDING_COMPLETION) ──> DECIDED
        └──────> CANCELLED

Only the administrator set at construction may mutate the registry. Every
mutator validates its preconditions before touching state and publishes its
events through a single EventLog transaction.
"""

from dataclasses import replace
from typing import Iterable, Optional

import structlog

from src.errors import (
    AuthorizationError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from src.models.events import (
    EventLog,
    MatchAdded,
    MatchCancelled,
    MatchPending,
    MatchPendingCompletion,
    MatchUnderway,
    OutcomeDeclared,
    SampleMatchesSeeded,
    TimeUpdated,
)
from src.models.schemas import Match, MatchStatus, OutcomeKind
from src.oracle.clock import RegistryClock, to_timestamp
from src.utils.addresses import new_address, normalize_address

logger = structlog.get_logger()

NOT_ADDED_OR_UNDERWAY = "Match not yet added, or already underway"
NOT_UNDERWAY = "Match is not underway"


class MatchRegistry:
    """
    Oracle component recording match lifecycle and ground-truth outcomes.

    Match ids come from a counter starting at 1 and are never reused, even
    for cancelled matches.
    """

    def __init__(
        self,
        owner: str,
        events: Optional[EventLog] = None,
        clock: Optional[RegistryClock] = None,
        address: Optional[str] = None,
        draw_label: str = "Draw",
        sample_matches: Optional[Iterable] = None,
    ):
        self.owner = normalize_address(owner)
        self.address = normalize_address(address) if address else new_address()
        self.events = events or EventLog()
        self.clock = clock or RegistryClock()
        self.draw_label = draw_label
        self.sample_matches = list(sample_matches or [])
        self.logger = logger.bind(component="match_registry")

        self._matches: dict[int, Match] = {}
        self._next_id = 1

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _only_owner(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            self.logger.warning("Rejected non-owner call", caller=caller)
            raise AuthorizationError(caller)

    def _require_match(self, match_id: int, reason: str = "Match does not exist") -> Match:
        match = self._matches.get(match_id)
        if match is None:
            raise NotFoundError(match_id, reason)
        return match

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_match(
        self,
        caller: str,
        name: str,
        players: str,
        start_time: int,
        end_time: int,
    ) -> int:
        """
        Register a new match in AWAITING status.

        Returns:
            The new match id
        """
        self._only_owner(caller)
        if start_time >= end_time:
            raise InvalidArgumentError("Start time must be before end time")

        with self.events.transaction():
            match_id = self._insert(name, players, start_time, end_time)
        return match_id

    def _insert(self, name: str, players: str, start_time: int, end_time: int) -> int:
        match_id = self._next_id
        self._next_id += 1
        self._matches[match_id] = Match(
            match_id=match_id,
            match_name=name,
            players=players,
            start_time=int(start_time),
            end_time=int(end_time),
            created_at=self.clock.now(),
        )
        self.events.emit(MatchAdded(
            match_id=match_id,
            match_name=name,
            players=players,
            start_time=int(start_time),
            end_time=int(end_time),
        ))
        self.logger.info("Match added", match_id=match_id, match_name=name)
        return match_id

    def seed_sample_matches(self, caller: str) -> list[int]:
        """Create the configured sample matches, oldest first."""
        self._only_owner(caller)
        for sample in self.sample_matches:
            if sample.start_time >= sample.end_time:
                raise InvalidArgumentError("Start time must be before end time")

        with self.events.transaction():
            match_ids = [
                self._insert(s.match_name, s.players, s.start_time, s.end_time)
                for s in self.sample_matches
            ]
            self.events.emit(SampleMatchesSeeded(match_ids=match_ids))
        return match_ids

    def set_match_underway(self, caller: str, match_id: int) -> Match:
        """AWAITING -> UNDERWAY."""
        self._only_owner(caller)
        match = self._require_match(match_id)
        if match.status != MatchStatus.AWAITING:
            raise InvalidStateError(NOT_ADDED_OR_UNDERWAY, match_id)

        with self.events.transaction():
            match = self._transition(match, MatchStatus.UNDERWAY)
            self.events.emit(MatchUnderway(match_id=match_id))
        return match

    def set_match_cancelled(self, caller: str, match_id: int) -> Match:
        """AWAITING -> CANCELLED."""
        self._only_owner(caller)
        match = self._require_match(match_id, NOT_ADDED_OR_UNDERWAY)
        if match.status != MatchStatus.AWAITING:
            raise InvalidStateError(NOT_ADDED_OR_UNDERWAY, match_id)

        with self.events.transaction():
            match = self._transition(match, MatchStatus.CANCELLED)
            self.events.emit(MatchCancelled(match_id=match_id))
        return match

    def declare_outcome(
        self,
        caller: str,
        match_id: int,
        outcome_kind: int,
        winner: str,
        first_scorer: str,
        scoreline: str,
    ) -> Match:
        """
        Record the final outcome of an underway match.

        The three outcome fields are written once and never change. A DRAW
        stores the configured draw label as the winner.
        """
        self._only_owner(caller)
        match = self._require_match(match_id)
        if not match.status.is_underway:
            raise InvalidStateError(NOT_UNDERWAY, match_id)

        kind = OutcomeKind.parse(outcome_kind)
        if kind is None or kind == OutcomeKind.UNDECIDED:
            raise InvalidArgumentError("Outcome kind invalid", match_id)
        if kind == OutcomeKind.DRAW:
            if winner and winner != self.draw_label:
                raise InvalidArgumentError("Draw outcome cannot name a winner", match_id)
            winner = self.draw_label

        with self.events.transaction():
            match = replace(
                match,
                status=MatchStatus.DECIDED,
                outcome_kind=kind,
                winner=winner,
                first_scorer=first_scorer,
                scoreline=scoreline,
            )
            self._matches[match_id] = match
            self.events.emit(OutcomeDeclared(
                match_id=match_id,
                outcome_kind=int(kind),
                winner=winner,
                first_scorer=first_scorer,
                scoreline=scoreline,
            ))
        self.logger.info(
            "Outcome declared",
            kind=kind.name,
            first_scorer=first_scorer,
            scoreline=scoreline,
            **match.to_log(),
        )
        return match

    def set_current_time(
        self,
        caller: str,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
    ) -> int:
        """Pin the registry clock to a UTC calendar time."""
        self._only_owner(caller)
        timestamp = to_timestamp(year, month, day, hour, minute)
        with self.events.transaction():
            now = self.clock.pin(timestamp)
            self.events.emit(TimeUpdated(current_time=now))
        self.logger.info("Registry time set", current_time=now)
        return now

    def advance_clock(self, caller: str, seconds: int) -> int:
        """Move the registry clock forward."""
        self._only_owner(caller)
        with self.events.transaction():
            now = self.clock.advance(seconds)
            self.events.emit(TimeUpdated(current_time=now))
        self.logger.info("Registry time advanced", seconds=seconds, current_time=now)
        return now

    def update_match_status(self, caller: str, match_id: int) -> MatchStatus:
        """
        Apply the time-based status rule to one match.

        - terminal matches are left alone
        - AWAITING before kickoff stays AWAITING and reports MatchPending
        - AWAITING at or after start_time goes UNDERWAY
        - underway at or after end_time goes PENDING_COMPLETION for manual
          resolution

        Returns:
            The match status after the check
        """
        self._only_owner(caller)
        match = self._require_match(match_id)
        if match.status.is_terminal:
            self.logger.debug("Status check on terminal match", match_id=match_id)
            return match.status

        now = self.clock.now()
        with self.events.transaction():
            if match.status == MatchStatus.AWAITING:
                if now < match.start_time:
                    self.events.emit(MatchPending(
                        match_id=match_id,
                        seconds_to_start=match.start_time - now,
                    ))
                    return match.status
                match = self._transition(match, MatchStatus.UNDERWAY)
                self.events.emit(MatchUnderway(match_id=match_id))

            if match.status == MatchStatus.UNDERWAY and now >= match.end_time:
                match = self._transition(match, MatchStatus.PENDING_COMPLETION)
                self.events.emit(MatchPendingCompletion(
                    match_id=match_id,
                    seconds_past_end=now - match.end_time,
                ))
                self.logger.warning(
                    "Match past end time without outcome",
                    match_id=match_id,
                    end_time=match.end_time,
                    now=now,
                )
        return match.status

    def _transition(self, match: Match, status: MatchStatus) -> Match:
        updated = replace(match, status=status)
        self._matches[match.match_id] = updated
        self.logger.info(
            "Match status changed",
            match_id=match.match_id,
            old=match.status.value,
            new=status.value,
        )
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_match(self, match_id: int) -> Match:
        return self._require_match(match_id)

    def get_all_matches(self) -> list[int]:
        """All match ids, most recently added first."""
        return sorted(self._matches, reverse=True)

    def get_pending_matches(self) -> list[int]:
        """Ids of matches still AWAITING, most recently added first."""
        return [
            match_id for match_id in self.get_all_matches()
            if self._matches[match_id].status == MatchStatus.AWAITING
        ]

    def get_most_recent_match(self, pending_only: bool = False) -> Optional[Match]:
        """Most recently added match, optionally restricted to AWAITING ones."""
        ids = self.get_pending_matches() if pending_only else self.get_all_matches()
        if not ids:
            return None
        return self._matches[ids[0]]

    def match_exists(self, match_id: int) -> bool:
        return match_id in self._matches

    def get_owner(self) -> str:
        return self.owner

    def get_address(self) -> str:
        return self.address

    def test_connection(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._matches)
