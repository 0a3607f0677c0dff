"""Persistence — append-only event log and state snapshots."""

from nftdrop.persistence.event_log import EventKind, EventLog, EventRecord
from nftdrop.persistence.state_store import StateStore

__all__ = ["EventKind", "EventLog", "EventRecord", "StateStore"]
