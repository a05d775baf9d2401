"""Election service — unified facade for the election core.

This is the primary interface for programmatic access. It wraps one
Election aggregate and adds:
- Serialisation: every mutating command runs under a single writer lock.
- Atomic commit: a command runs against a copy of the aggregate. The
  copy replaces the live aggregate only after every guard passed and
  the ledger accepted the event. A failure at any point leaves the
  committed state untouched.
- Lock-free reads: committed aggregates are never mutated again, so
  queries read the last committed one without taking the lock.
- Ledger: each commit appends one event. An existing ledger is replayed
  on construction to rebuild state.
- Subscriptions: callbacks are notified with each committed event.

All operations return a ServiceResult. Domain failures carry their
ErrorKind; ledger and identity failures carry TransportError.
"""

from __future__ import annotations

import copy
import inspect
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ballotbox.election import Election
from ballotbox.errors import (
    ElectionError,
    ErrorKind,
    TransportError,
    ValidationError,
)
from ballotbox.identity import IdentityProvider
from ballotbox.models.election import ElectionDetails
from ballotbox.persistence.event_log import EventKind, EventLog, EventRecord

logger = logging.getLogger(__name__)

Subscriber = Callable[[EventRecord], None]


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[ErrorKind] = None

    @staticmethod
    def failure(error: ElectionError) -> ServiceResult:
        return ServiceResult(success=False, errors=[error.reason], error_kind=error.kind)


class ElectionService:
    """Election command surface with single-writer serialisation.

    Usage:
        service = ElectionService(details, admin="0xadmin")
        service.add_candidate("0xadmin", "Alice", "Forward")
        service.register_as_voter("0xv1", "Voter One", "555-0101")
        service.verify_voter("0xadmin", "0xv1", True)
        service.start_election("0xadmin")
        result = service.cast_vote("0xv1", 0)
        service.end_election("0xadmin")
        winner = service.get_winner().data["winner"]

    Persistence (optional):
        log = EventLog(storage_path=data_dir / "events.jsonl")
        service = ElectionService(details, admin, event_log=log)
        # A later process rebuilds the same election from the log:
        service = ElectionService(event_log=EventLog(storage_path=...))
    """

    def __init__(
        self,
        details: Optional[ElectionDetails] = None,
        admin: Optional[str] = None,
        event_log: Optional[EventLog] = None,
        identity_provider: Optional[IdentityProvider] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._event_log = event_log
        self._identity = identity_provider
        self._subscribers: list[Subscriber] = []

        if event_log is not None and event_log.count > 0:
            self._election = self._replay(event_log)
            logger.info(
                "Rebuilt election %r from %d ledger events",
                self._election.get_election_details().election_title,
                event_log.count,
            )
            return

        if details is None or admin is None:
            raise ValidationError("Election details and admin are required for a new election")
        election = Election(details, admin)
        if event_log is not None:
            self._append(
                event_log,
                EventKind.ELECTION_CREATED,
                election.admin,
                {"details": details.to_dict(), "admin": election.admin},
            )
        self._election = election
        logger.info("Created election %r with admin %s", details.election_title, election.admin)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_election(self, caller: str) -> ServiceResult:
        return self._commit(
            EventKind.ELECTION_STARTED, caller,
            lambda e: e.start_election(caller),
            lambda state: ({}, {"state": state}),
        )

    def end_election(self, caller: str) -> ServiceResult:
        return self._commit(
            EventKind.ELECTION_ENDED, caller,
            lambda e: e.end_election(caller),
            lambda state: ({}, {"state": state}),
        )

    def transfer_admin(self, caller: str, new_admin: str) -> ServiceResult:
        return self._commit(
            EventKind.ADMIN_TRANSFERRED, caller,
            lambda e: e.transfer_admin(caller, new_admin),
            lambda admin: ({"new_admin": admin}, {"admin": admin}),
        )

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------

    def add_candidate(self, caller: str, header: str, slogan: str) -> ServiceResult:
        return self._commit(
            EventKind.CANDIDATE_ADDED, caller,
            lambda e: e.add_candidate(caller, header, slogan),
            lambda count: (
                {"header": header, "slogan": slogan, "candidate_id": count - 1},
                {"candidate_id": count - 1, "candidate_count": count},
            ),
        )

    # ------------------------------------------------------------------
    # Voters
    # ------------------------------------------------------------------

    def register_as_voter(self, caller: str, name: str, phone: str) -> ServiceResult:
        return self._commit(
            EventKind.VOTER_REGISTERED, caller,
            lambda e: e.register_as_voter(caller, name, phone),
            lambda count: ({"name": name, "phone": phone}, {"voter_count": count}),
        )

    def verify_voter(self, caller: str, address: str, status: bool) -> ServiceResult:
        return self._commit(
            EventKind.VOTER_VERIFIED, caller,
            lambda e: e.verify_voter(caller, address, status),
            lambda verified: (
                {"address": address.strip(), "status": verified},
                {"address": address.strip(), "is_verified": verified},
            ),
        )

    def remove_voter(self, caller: str, address: str) -> ServiceResult:
        return self._commit(
            EventKind.VOTER_REMOVED, caller,
            lambda e: e.remove_voter(caller, address),
            lambda count: ({"address": address.strip()}, {"voter_count": count}),
        )

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    def cast_vote(self, caller: str, candidate_id: int) -> ServiceResult:
        return self._commit(
            EventKind.VOTE_CAST, caller,
            lambda e: e.cast_vote(caller, candidate_id),
            lambda weight: (
                {"candidate_id": candidate_id, "weight": weight},
                {"candidate_id": candidate_id, "weight": weight},
            ),
        )

    def delegate(self, caller: str, to: str) -> ServiceResult:
        return self._commit(
            EventKind.VOTE_DELEGATED, caller,
            lambda e: e.delegate(caller, to),
            lambda weight: (
                {"to": to.strip(), "forwarded_weight": weight},
                {"delegate": to.strip(), "forwarded_weight": weight},
            ),
        )

    # ------------------------------------------------------------------
    # Queries (lock-free, served from the last committed aggregate)
    # ------------------------------------------------------------------

    def get_election_details(self) -> ServiceResult:
        return self._query(lambda e: {"details": e.get_election_details()})

    def get_election_state(self) -> ServiceResult:
        return self._query(lambda e: {"state": e.get_election_state()})

    def get_admin(self) -> ServiceResult:
        return self._query(lambda e: {"admin": e.admin})

    def get_total_candidates(self) -> ServiceResult:
        return self._query(lambda e: {"total": e.get_total_candidates()})

    def get_candidate(self, candidate_id: int) -> ServiceResult:
        return self._query(lambda e: {"candidate": e.get_candidate(candidate_id)})

    def get_voter_details(self, address: str) -> ServiceResult:
        return self._query(lambda e: {"voter": e.get_voter_details(address)})

    def get_voter_list(self) -> ServiceResult:
        return self._query(lambda e: {"voters": e.get_voter_list()})

    def get_winner(self) -> ServiceResult:
        return self._query(lambda e: {"winner": e.get_winner()})

    @property
    def election(self) -> Election:
        """The last committed aggregate. Treat as read-only."""
        return self._election

    def status(self) -> dict[str, Any]:
        """Return an election-wide status summary."""
        election = self._election
        voters = election.voters()
        return {
            "election_title": election.get_election_details().election_title,
            "state": election.get_election_state().value,
            "admin": election.admin,
            "candidates": election.get_total_candidates(),
            "voters": {
                "registered": election.voter_count,
                "verified": sum(1 for v in voters if v.is_eligible()),
                "records": len(voters),
                "counted": sum(1 for v in voters if v.voted),
                "delegated": sum(1 for v in voters if v.delegate is not None),
            },
            "ledger_events": self._event_log.count if self._event_log is not None else 0,
        }

    # ------------------------------------------------------------------
    # Command dispatch
    # ------------------------------------------------------------------

    _COMMANDS: dict[str, tuple[str, bool]] = {
        "getElectionDetails": ("get_election_details", False),
        "getElectionState": ("get_election_state", False),
        "getAdmin": ("get_admin", False),
        "startElection": ("start_election", True),
        "endElection": ("end_election", True),
        "addCandidate": ("add_candidate", True),
        "getTotalCandidates": ("get_total_candidates", False),
        "getCandidate": ("get_candidate", False),
        "registerAsVoter": ("register_as_voter", True),
        "verifyVoter": ("verify_voter", True),
        "removeVoter": ("remove_voter", True),
        "getVoterDetails": ("get_voter_details", False),
        "getVoterList": ("get_voter_list", False),
        "castVote": ("cast_vote", True),
        "delegate": ("delegate", True),
        "getWinner": ("get_winner", False),
        "transferAdmin": ("transfer_admin", True),
    }

    def execute(self, command: str, **kwargs: Any) -> ServiceResult:
        """Run a command by name.

        Commands that act on behalf of a caller take the identity from
        the `caller` argument or, when absent, from the identity
        provider.
        """
        entry = self._COMMANDS.get(command)
        if entry is None:
            return ServiceResult.failure(ValidationError(f"Unknown command: {command}"))
        method_name, needs_caller = entry
        method = getattr(self, method_name)

        if needs_caller and "caller" not in kwargs:
            try:
                kwargs["caller"] = self._current_identity()
            except TransportError as e:
                logger.error("Identity lookup failed for %s: %s", command, e.reason)
                return ServiceResult.failure(e)

        try:
            inspect.signature(method).bind(**kwargs)
        except TypeError as e:
            return ServiceResult.failure(ValidationError(f"Invalid arguments for {command}: {e}"))
        return method(**kwargs)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Notify callback with every committed event. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _current_identity(self) -> str:
        if self._identity is None:
            raise TransportError("No identity provider configured")
        try:
            return self._identity.current_identity()
        except TransportError:
            raise
        except Exception as e:
            logger.exception("Identity provider %r failed", self._identity)
            raise TransportError(f"Identity provider failure: {e}") from e

    def _commit(
        self,
        kind: EventKind,
        caller: str,
        action: Callable[[Election], Any],
        describe: Callable[[Any], tuple[dict[str, Any], dict[str, Any]]],
    ) -> ServiceResult:
        """Run action on a working copy and publish it if the ledger accepts.

        describe maps the action's return value to (ledger payload,
        result data).
        """
        with self._lock:
            working = copy.deepcopy(self._election)
            try:
                value = action(working)
            except ElectionError as e:
                logger.warning("Rejected %s by %r: %s", kind.value, caller, e)
                return ServiceResult.failure(e)

            payload, data = describe(value)
            record: Optional[EventRecord] = None
            if self._event_log is not None:
                try:
                    record = self._append(self._event_log, kind, caller.strip(), payload)
                except TransportError as e:
                    return ServiceResult.failure(e)

            self._election = working
            logger.info("Committed %s by %s", kind.value, caller.strip())
            if record is not None:
                self._notify(record)
        return ServiceResult(success=True, data=data)

    def _query(self, read: Callable[[Election], dict[str, Any]]) -> ServiceResult:
        election = self._election
        try:
            return ServiceResult(success=True, data=read(election))
        except ElectionError as e:
            return ServiceResult.failure(e)

    @staticmethod
    def _append(
        event_log: EventLog,
        kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
    ) -> EventRecord:
        try:
            record = event_log.next_record(kind, actor_id, payload)
            event_log.append(record)
        except (ValueError, OSError) as e:
            logger.error("Ledger append failed for %s: %s", kind.value, e)
            raise TransportError(f"Ledger failure: {e}") from e
        return record

    def _notify(self, record: EventRecord) -> None:
        for callback in list(self._subscribers):
            try:
                callback(record)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on event %d", callback, record.sequence,
                )

    @staticmethod
    def _replay(event_log: EventLog) -> Election:
        """Rebuild the aggregate by re-running every ledger event."""
        events = list(event_log)
        first = events[0]
        if first.event_kind != EventKind.ELECTION_CREATED:
            raise TransportError(
                f"Ledger must begin with {EventKind.ELECTION_CREATED.value}, "
                f"found {first.event_kind.value}"
            )
        try:
            election = Election(
                ElectionDetails.from_dict(first.payload["details"]),
                first.payload["admin"],
            )
        except (KeyError, ElectionError) as e:
            raise TransportError(f"Ledger creation record is invalid: {e}") from e

        for event in events[1:]:
            try:
                _apply_event(election, event)
            except (KeyError, ElectionError) as e:
                raise TransportError(
                    f"Ledger replay failed at sequence {event.sequence} "
                    f"({event.event_kind.value}): {e}"
                ) from e
        return election


def _apply_event(election: Election, event: EventRecord) -> None:
    """Re-run one committed command against the aggregate."""
    actor = event.actor_id
    p = event.payload
    kind = event.event_kind

    if kind == EventKind.ELECTION_STARTED:
        election.start_election(actor)
    elif kind == EventKind.ELECTION_ENDED:
        election.end_election(actor)
    elif kind == EventKind.ADMIN_TRANSFERRED:
        election.transfer_admin(actor, p["new_admin"])
    elif kind == EventKind.CANDIDATE_ADDED:
        election.add_candidate(actor, p["header"], p["slogan"])
    elif kind == EventKind.VOTER_REGISTERED:
        election.register_as_voter(actor, p["name"], p["phone"])
    elif kind == EventKind.VOTER_VERIFIED:
        election.verify_voter(actor, p["address"], p["status"])
    elif kind == EventKind.VOTER_REMOVED:
        election.remove_voter(actor, p["address"])
    elif kind == EventKind.VOTE_DELEGATED:
        forwarded = election.delegate(actor, p["to"])
        if forwarded != p["forwarded_weight"]:
            raise TransportError(
                f"forwarded weight {forwarded} != recorded {p['forwarded_weight']}"
            )
    elif kind == EventKind.VOTE_CAST:
        weight = election.cast_vote(actor, p["candidate_id"])
        if weight != p["weight"]:
            raise TransportError(f"ballot weight {weight} != recorded {p['weight']}")
    else:
        raise TransportError(f"Unexpected ledger event: {kind.value}")
