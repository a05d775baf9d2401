"""Append-only election ledger.

Every committed command produces one event record appended to the log.
Records are immutable once written. The log serves as:
1. The durable store. State is rebuilt by replaying it in order.
2. The audit trail for third-party verification.

Each record's hash covers its canonical JSON together with the hash of
the record before it, so reordering, deleting, or editing any line is
detected on load.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional


GENESIS_HASH = "sha256:" + "0" * 64


class EventKind(str, enum.Enum):
    """Classification of ledger events. One kind per mutating command."""
    ELECTION_CREATED = "election_created"
    ELECTION_STARTED = "election_started"
    ELECTION_ENDED = "election_ended"
    ADMIN_TRANSFERRED = "admin_transferred"
    CANDIDATE_ADDED = "candidate_added"
    VOTER_REGISTERED = "voter_registered"
    VOTER_VERIFIED = "voter_verified"
    VOTER_REMOVED = "voter_removed"
    VOTE_DELEGATED = "vote_delegated"
    VOTE_CAST = "vote_cast"


def _canonical_hash(
    sequence: int,
    event_kind: str,
    timestamp_utc: str,
    actor_id: str,
    payload: dict[str, Any],
    previous_hash: str,
) -> str:
    canonical = json.dumps(
        {
            "sequence": sequence,
            "event_kind": event_kind,
            "timestamp_utc": timestamp_utc,
            "actor_id": actor_id,
            "payload": payload,
            "previous_hash": previous_hash,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable ledger entry."""
    sequence: int
    event_kind: EventKind
    timestamp_utc: str
    actor_id: str
    payload: dict[str, Any]
    previous_hash: str
    event_hash: str

    @staticmethod
    def create(
        sequence: int,
        event_kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        previous_hash: str,
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        ts = timestamp_utc or datetime.now(timezone.utc)
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%SZ")
        return EventRecord(
            sequence=sequence,
            event_kind=event_kind,
            timestamp_utc=ts_str,
            actor_id=actor_id,
            payload=payload,
            previous_hash=previous_hash,
            event_hash=_canonical_hash(
                sequence, event_kind.value, ts_str, actor_id, payload, previous_hash,
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "actor_id": self.actor_id,
            "payload": self.payload,
            "previous_hash": self.previous_hash,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only event log with optional JSONL file persistence.

    Events can only be appended, never modified or deleted. Appends
    must extend the chain: the record's sequence must be the next one
    and its previous_hash must match the current head.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._events: list[EventRecord] = []
        self._storage_path = storage_path

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def next_record(
        self,
        event_kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        """Build (without appending) the record that would extend the log."""
        return EventRecord.create(
            sequence=self.count + 1,
            event_kind=event_kind,
            actor_id=actor_id,
            payload=payload,
            previous_hash=self.head_hash,
            timestamp_utc=timestamp_utc,
        )

    def append(self, event: EventRecord) -> None:
        """Append an event to the log.

        Raises ValueError if the record does not extend the chain.
        Raises OSError if the file write fails; the in-memory log is
        left unchanged in that case.
        """
        if event.sequence != self.count + 1:
            raise ValueError(
                f"Out-of-order event: expected sequence {self.count + 1}, got {event.sequence}"
            )
        if event.previous_hash != self.head_hash:
            raise ValueError(
                f"Broken chain at sequence {event.sequence}: "
                f"previous_hash {event.previous_hash} != head {self.head_hash}"
            )

        if self._storage_path:
            self._append_to_file(event)
        self._events.append(event)

    def events(self, kind: Optional[EventKind] = None) -> list[EventRecord]:
        """Return events, optionally filtered by kind."""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.event_kind == kind]

    def __iter__(self) -> Iterator[EventRecord]:
        return iter(list(self._events))

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def head_hash(self) -> str:
        return self._events[-1].event_hash if self._events else GENESIS_HASH

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _append_to_file(self, event: EventRecord) -> None:
        """Append one line, or leave the file exactly as it was."""
        line = (
            json.dumps(event.to_dict(), sort_keys=True, ensure_ascii=False) + "\n"
        ).encode("utf-8")
        with self._storage_path.open("ab", buffering=0) as f:
            start = f.tell()
            try:
                written = f.write(line)
                if written != len(line):
                    raise OSError(f"Short write: {written} of {len(line)} bytes")
            except OSError:
                f.truncate(start)
                raise

    def _load_from_file(self, path: Path) -> None:
        """Load events from a JSONL file with integrity verification.

        Fail-closed: rejects tampered records (hash mismatch), gaps or
        reordering (sequence mismatch), and broken links.
        """
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    record = EventRecord(
                        sequence=data["sequence"],
                        event_kind=EventKind(data["event_kind"]),
                        timestamp_utc=data["timestamp_utc"],
                        actor_id=data["actor_id"],
                        payload=data["payload"],
                        previous_hash=data["previous_hash"],
                        event_hash=data["event_hash"],
                    )
                except (KeyError, TypeError, ValueError) as e:
                    raise ValueError(f"Malformed ledger record (line {line_num}): {e}") from e

                expected_hash = _canonical_hash(
                    record.sequence,
                    record.event_kind.value,
                    record.timestamp_utc,
                    record.actor_id,
                    record.payload,
                    record.previous_hash,
                )
                if record.event_hash != expected_hash:
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): sequence {record.sequence} "
                        f"stored hash {record.event_hash} != computed {expected_hash}"
                    )
                if record.sequence != self.count + 1 or record.previous_hash != self.head_hash:
                    raise ValueError(
                        f"Ledger chain broken (line {line_num}) at sequence {record.sequence}"
                    )
                self._events.append(record)
