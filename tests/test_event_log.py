"""Tests for the append-only election ledger."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ballotbox.persistence.event_log import (
    GENESIS_HASH,
    EventKind,
    EventLog,
    EventRecord,
)


def _fill(log: EventLog) -> None:
    log.append(log.next_record(EventKind.ELECTION_CREATED, "0xadmin", {"admin": "0xadmin"}))
    log.append(log.next_record(EventKind.CANDIDATE_ADDED, "0xadmin", {"header": "A"}))
    log.append(log.next_record(EventKind.ELECTION_STARTED, "0xadmin", {}))


class TestEventRecord:
    def test_hash_is_deterministic(self) -> None:
        ts = datetime(2025, 1, 1, tzinfo=timezone.utc)
        a = EventRecord.create(1, EventKind.VOTE_CAST, "0xv1", {"candidate_id": 0}, GENESIS_HASH, ts)
        b = EventRecord.create(1, EventKind.VOTE_CAST, "0xv1", {"candidate_id": 0}, GENESIS_HASH, ts)
        assert a.event_hash == b.event_hash
        assert a.event_hash.startswith("sha256:")
        assert a.timestamp_utc == "2025-01-01T00:00:00Z"

    def test_payload_changes_hash(self) -> None:
        ts = datetime(2025, 1, 1, tzinfo=timezone.utc)
        a = EventRecord.create(1, EventKind.VOTE_CAST, "0xv1", {"candidate_id": 0}, GENESIS_HASH, ts)
        b = EventRecord.create(1, EventKind.VOTE_CAST, "0xv1", {"candidate_id": 1}, GENESIS_HASH, ts)
        assert a.event_hash != b.event_hash


class TestAppend:
    def test_chain_links(self) -> None:
        log = EventLog()
        assert log.head_hash == GENESIS_HASH
        _fill(log)
        events = log.events()
        assert [e.sequence for e in events] == [1, 2, 3]
        assert events[0].previous_hash == GENESIS_HASH
        assert events[1].previous_hash == events[0].event_hash
        assert log.head_hash == events[2].event_hash

    def test_filter_by_kind(self) -> None:
        log = EventLog()
        _fill(log)
        assert len(log.events(EventKind.CANDIDATE_ADDED)) == 1
        assert len(list(log)) == 3

    def test_out_of_order_rejected(self) -> None:
        log = EventLog()
        stale = log.next_record(EventKind.ELECTION_CREATED, "0xadmin", {})
        log.append(stale)
        with pytest.raises(ValueError, match="Out-of-order"):
            log.append(stale)

    def test_broken_chain_rejected(self) -> None:
        log = EventLog()
        _fill(log)
        forged = EventRecord.create(4, EventKind.ELECTION_ENDED, "0xadmin", {}, GENESIS_HASH)
        with pytest.raises(ValueError, match="Broken chain"):
            log.append(forged)
        assert log.count == 3


class TestFilePersistence:
    def test_reload(self, tmp_path) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        _fill(log)
        reloaded = EventLog(storage_path=path)
        assert reloaded.count == 3
        assert reloaded.head_hash == log.head_hash
        assert reloaded.last_event.event_kind == EventKind.ELECTION_STARTED

    def test_tampered_payload_detected(self, tmp_path) -> None:
        path = tmp_path / "events.jsonl"
        _fill(EventLog(storage_path=path))
        lines = path.read_text(encoding="utf-8").splitlines()
        record = json.loads(lines[1])
        record["payload"]["header"] = "Mallory"
        lines[1] = json.dumps(record, sort_keys=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Integrity check failed"):
            EventLog(storage_path=path)

    def test_deleted_line_detected(self, tmp_path) -> None:
        path = tmp_path / "events.jsonl"
        _fill(EventLog(storage_path=path))
        lines = path.read_text(encoding="utf-8").splitlines()
        del lines[1]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        with pytest.raises(ValueError, match="chain broken"):
            EventLog(storage_path=path)

    def test_malformed_line_detected(self, tmp_path) -> None:
        path = tmp_path / "events.jsonl"
        path.write_text("{not json\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Malformed"):
            EventLog(storage_path=path)

    def test_non_object_line_detected(self, tmp_path) -> None:
        path = tmp_path / "events.jsonl"
        path.write_text("[]\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Malformed"):
            EventLog(storage_path=path)


class _HalfWriter:
    """File handle whose write lands half the bytes, then fails."""

    def __init__(self, handle) -> None:
        self._handle = handle

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self._handle.close()

    def tell(self) -> int:
        return self._handle.tell()

    def truncate(self, size: int) -> int:
        return self._handle.truncate(size)

    def write(self, data: bytes) -> int:
        self._handle.write(data[: len(data) // 2])
        raise OSError("disk full")


class TestFailedWrite:
    def _fail_next_write(self, monkeypatch) -> None:
        real_open = Path.open
        monkeypatch.setattr(
            Path, "open", lambda self, *a, **k: _HalfWriter(real_open(self, *a, **k)),
        )

    def test_partial_line_rolled_back(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        _fill(log)
        size = path.stat().st_size

        with monkeypatch.context() as m:
            self._fail_next_write(m)
            with pytest.raises(OSError, match="disk full"):
                log.append(log.next_record(EventKind.ELECTION_ENDED, "0xadmin", {}))

        assert path.stat().st_size == size
        assert log.count == 3

    def test_log_reloads_after_failed_then_good_append(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        _fill(log)

        with monkeypatch.context() as m:
            self._fail_next_write(m)
            with pytest.raises(OSError):
                log.append(log.next_record(EventKind.ELECTION_ENDED, "0xadmin", {}))
        log.append(log.next_record(EventKind.ELECTION_ENDED, "0xadmin", {}))

        reloaded = EventLog(storage_path=path)
        assert reloaded.count == 4
        assert reloaded.head_hash == log.head_hash
