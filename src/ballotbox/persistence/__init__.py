"""Durable ledger for committed election commands."""

from ballotbox.persistence.event_log import EventKind, EventLog, EventRecord

__all__ = ["EventKind", "EventLog", "EventRecord"]
