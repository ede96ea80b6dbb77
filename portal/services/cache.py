"""
Project View Cache

A write-through, per-field cache of a project's mutable view (progress, due
date, budget, fixed price, visibility). Each field is stored under its own key
("project_<field>_<id>"), so writes merge with last-write-wins per field.

Conflict policy when reconciling with the billing provider:
- progress is owned by the portal: a cached value always wins.
- other fields are owned by the provider: its value wins, unless the cached
  value is a local edit that has not been confirmed remotely yet ("pending").
  A pending edit is newer than anything the provider has seen, so it is kept
  until the provider reports the same value.

The cache is advisory. Backend failures are logged and never raised; callers
fall back to the project row's values.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from portal.models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)

CACHED_FIELDS = ("progress", "due_date", "budget", "fixed_price", "visible")
CLIENT_OWNED_FIELDS = frozenset({"progress"})

SYNCED = "synced"
PENDING_SYNC = "pending_sync"
CACHED = "cached"

PENDING_ADVISORY = "Saved locally, will sync on refresh"
CACHED_ADVISORY = "Billing provider unavailable, showing last saved values"

CachedProjectView = Dict[str, Any]


def cache_key(field_name: str, project_id: Any) -> str:
    return f"project_{field_name}_{project_id}"


class KeyValueStore:
    """Minimal persistence interface used by ProjectViewCache."""

    def get(self, key: str) -> Optional[dict]:
        raise NotImplementedError

    def set(self, key: str, value: dict) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self):
        self._data: Dict[str, dict] = {}

    def get(self, key: str) -> Optional[dict]:
        value = self._data.get(key)
        return dict(value) if value is not None else None

    def set(self, key: str, value: dict) -> None:
        self._data[key] = dict(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class DatabaseStore(KeyValueStore):
    """Stores entries in the cache_entries table, one short session per call."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def get(self, key: str) -> Optional[dict]:
        with Session(self.engine) as session:
            entry = session.get(CacheEntry, key)
            return dict(entry.value) if entry is not None and entry.value is not None else None

    def set(self, key: str, value: dict) -> None:
        with Session(self.engine) as session:
            entry = session.get(CacheEntry, key)
            if entry is None:
                entry = CacheEntry(key=key, value=value)
            else:
                entry.value = value
            session.add(entry)
            session.commit()

    def delete(self, key: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(CacheEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()


@dataclass
class ReconciledView:
    """Fields to present for a project, and whether they match the provider."""
    fields: CachedProjectView = field(default_factory=dict)
    sync_status: str = SYNCED
    advisory: Optional[str] = None


class ProjectViewCache:

    def __init__(self, store: KeyValueStore, clock: Callable[[], float] = time.time):
        self.store = store
        self._clock = clock

    def _entries(self, project_id: Any) -> Dict[str, dict]:
        entries = {}
        for name in CACHED_FIELDS:
            try:
                entry = self.store.get(cache_key(name, project_id))
            except Exception:
                logger.warning("Cache read failed for project %s field %s", project_id, name, exc_info=True)
                continue
            if entry is not None and "value" in entry:
                entries[name] = entry
        return entries

    def read(self, project_id: Any) -> Optional[CachedProjectView]:
        """Last written value of every cached field, or None if nothing is cached."""
        entries = self._entries(project_id)
        if not entries:
            return None
        return {name: entry["value"] for name, entry in entries.items()}

    def pending_fields(self, project_id: Any) -> CachedProjectView:
        """Locally edited fields the provider has not confirmed yet."""
        return {name: entry["value"] for name, entry in self._entries(project_id).items() if entry.get("pending")}

    def write(self, project_id: Any, fields: Dict[str, Any], pending: bool = False) -> bool:
        """
        Merge fields into the cached view. Unknown field names are ignored.

        Returns False if any field could not be persisted; the failure is
        logged and never raised.
        """
        written_at = self._clock()
        ok = True
        for name, value in fields.items():
            if name not in CACHED_FIELDS:
                continue
            # client-owned fields never wait on the provider
            entry = {"value": value, "written_at": written_at, "pending": pending and name not in CLIENT_OWNED_FIELDS}
            try:
                self.store.set(cache_key(name, project_id), entry)
            except Exception:
                logger.warning("Cache write failed for project %s field %s", project_id, name, exc_info=True)
                ok = False
        return ok

    def clear(self, project_id: Any) -> None:
        for name in CACHED_FIELDS:
            try:
                self.store.delete(cache_key(name, project_id))
            except Exception:
                logger.warning("Cache delete failed for project %s field %s", project_id, name, exc_info=True)

    def reconcile(self, project_id: Any, remote_fields: Optional[Dict[str, Any]] = None, remote_ok: bool = True) -> ReconciledView:
        """
        Merge a billing provider result with the cached view.

        remote_ok=False means the fetch or update failed; the cached values
        are presented with an advisory instead of an error.
        """
        entries = self._entries(project_id)
        cached = {name: entry["value"] for name, entry in entries.items()}
        pending = {name for name, entry in entries.items() if entry.get("pending")}

        if not remote_ok:
            if pending:
                return ReconciledView(cached, PENDING_SYNC, PENDING_ADVISORY)
            return ReconciledView(cached, CACHED, CACHED_ADVISORY)

        merged = dict(cached)
        refreshed: Dict[str, Any] = {}
        confirmed: Dict[str, Any] = {}
        for name, remote_value in (remote_fields or {}).items():
            if name not in CACHED_FIELDS:
                continue
            if name in CLIENT_OWNED_FIELDS:
                if name not in cached:
                    merged[name] = remote_value
                continue
            if name in pending:
                if cached[name] == remote_value:
                    confirmed[name] = remote_value
                # otherwise the unconfirmed local edit is kept
                continue
            merged[name] = remote_value
            if cached.get(name, object()) != remote_value:
                refreshed[name] = remote_value

        if refreshed:
            self.write(project_id, refreshed)
        if confirmed:
            self.write(project_id, confirmed)

        still_pending = pending - set(confirmed)
        if still_pending:
            return ReconciledView(merged, PENDING_SYNC, PENDING_ADVISORY)
        return ReconciledView(merged, SYNCED)
