"""State repository: the single owner of the HomeCare application state."""

from __future__ import annotations

import copy
import json
import threading
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from .config import BACKUP_RETAIN, DEFAULT_SETTINGS, EXPORT_FILENAME_PREFIX, RESERVED_SECTIONS
from .exceptions import (
    CollectionError,
    ImportFileError,
    RecordNotFoundError,
    SettingsError,
    StorageError,
)
from .models import RecordModel, normalize_state
from .money import AmountLike, to_number
from .ops import BackupManager, StructuredLogger
from .persistence import StateStore, dump_state
from .seed import new_id

Record = Dict[str, Any]


class StateRepository:
    """Hold the loaded state and funnel every mutation through one place.

    Each mutating call changes the in-memory state and then persists the
    whole state before returning. When persisting fails the in-memory change
    is undone and the :class:`~homecare.exceptions.StorageError` propagates.
    Readers only ever receive copies. Public operations hold an internal
    lock, so callers on worker threads still run one operation at a time.
    """

    __slots__ = ("_store", "_state", "_logger", "_backups", "_id_factory", "_today", "_lock")

    def __init__(
        self,
        store: StateStore,
        *,
        logger: StructuredLogger | None = None,
        backups: BackupManager | None = None,
        id_factory: Callable[[], str] = new_id,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._logger = logger or store.logger
        self._backups = backups or BackupManager(retain=BACKUP_RETAIN)
        self._id_factory = id_factory
        self._today = today
        self._lock = threading.RLock()
        self._state: Dict[str, Any] = normalize_state(store.load())

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    @property
    def backups(self) -> BackupManager:
        return self._backups

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._state)

    def collection(self, name: str) -> List[Record]:
        if name in RESERVED_SECTIONS:
            raise CollectionError(f"'{name}' is not a record collection.")
        with self._lock:
            items = self._state.get(name)
            if items is None:
                return []
            if not isinstance(items, list):
                raise CollectionError(f"'{name}' is not a record collection.")
            return copy.deepcopy(items)

    def get(self, name: str, record_id: str) -> Record:
        for item in self.collection(name):
            if isinstance(item, Mapping) and item.get("id") == record_id:
                return item
        raise RecordNotFoundError(f"No record '{record_id}' in '{name}'.")

    # ------------------------------------------------------------------
    # Record mutations
    # ------------------------------------------------------------------
    def upsert(self, name: str, record: Mapping[str, Any] | RecordModel) -> Record:
        """Replace the record with the same id, or insert a new one at the front.

        Replacement is wholesale: the stored entry becomes exactly ``record``.
        A record whose id is missing or empty gets a freshly generated id.
        """

        data = dict(record.to_record() if isinstance(record, RecordModel) else record)
        with self._lock:
            existed = name in self._state
            items = self._items(name)
            previous = list(items)

            record_id = data.get("id")
            index = self._index_of(items, record_id) if record_id else None
            if index is not None:
                items[index] = data
            else:
                if not record_id:
                    data["id"] = self._id_factory()
                items.insert(0, data)

            self._commit(name, previous, existed)
            self._logger.log("record_upserted", collection=name, id=data["id"], created=index is None)
            return copy.deepcopy(data)

    def remove_by_id(self, name: str, record_id: str) -> None:
        with self._lock:
            existed = name in self._state
            items = self._items(name)
            previous = list(items)
            self._state[name] = [
                item for item in items if not (isinstance(item, Mapping) and item.get("id") == record_id)
            ]
            self._commit(name, previous, existed)
            self._logger.log(
                "record_removed",
                collection=name,
                id=record_id,
                removed=len(previous) - len(self._state[name]),
            )

    # ------------------------------------------------------------------
    # Settings and finance
    # ------------------------------------------------------------------
    def settings(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._state["meta"]["settings"])

    def update_settings(self, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """Apply ``changes`` to the organisation settings.

        Only the known setting names are accepted; anything else is rejected
        with :class:`~homecare.exceptions.SettingsError` before state changes.
        """

        unknown = sorted(key for key in changes if key not in DEFAULT_SETTINGS)
        if unknown:
            raise SettingsError(f"Unknown settings: {', '.join(unknown)}", unknown)
        with self._lock:
            meta = self._state["meta"]
            previous = meta["settings"]
            meta["settings"] = {**previous, **changes}
            self._persist(lambda: meta.__setitem__("settings", previous))
            self._logger.log("settings_updated", keys=sorted(changes))
            return self.settings()

    def expenses(self) -> List[Record]:
        with self._lock:
            return copy.deepcopy(self._state["finance"]["expenses"])

    def add_expense(self, desc: str, amount: AmountLike, *, on: Optional[date] = None) -> Record:
        with self._lock:
            finance = self._state["finance"]
            previous = list(finance["expenses"])
            entry = {
                "id": self._id_factory(),
                "desc": desc,
                "amount": to_number(amount),
                "date": (on or self._today()).isoformat(),
            }
            finance["expenses"].insert(0, entry)
            self._persist(lambda: finance.__setitem__("expenses", previous))
            self._logger.log("expense_added", id=entry["id"], amount=entry["amount"])
            return dict(entry)

    def set_budget(self, amount: AmountLike) -> None:
        with self._lock:
            finance = self._state["finance"]
            previous = finance.get("budget")
            finance["budget"] = to_number(amount)
            self._persist(lambda: finance.__setitem__("budget", previous))

    # ------------------------------------------------------------------
    # Import / export / reset
    # ------------------------------------------------------------------
    def export_json(self) -> str:
        with self._lock:
            return dump_state(self._state, indent=2)

    @staticmethod
    def export_filename(now: Optional[datetime] = None) -> str:
        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M")
        return f"{EXPORT_FILENAME_PREFIX}_{stamp}.json"

    def import_json(self, payload: str | bytes) -> Dict[str, Any]:
        """Replace the stored state with ``payload`` and reload from storage.

        Nothing changes when the payload is not a JSON object.
        """

        try:
            text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            parsed = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            self._logger.log("import_rejected", reason=str(exc))
            raise ImportFileError("Invalid JSON file") from exc
        if not isinstance(parsed, dict):
            self._logger.log("import_rejected", reason="not an object")
            raise ImportFileError("Invalid JSON file")

        with self._lock:
            self._backup("before-import")
            self._store.write_raw(dump_state(parsed))
            self.reload()
            self._logger.log(
                "state_imported",
                collections=sorted(k for k, v in parsed.items() if isinstance(v, list)),
            )
            return self.snapshot()

    def reset(self) -> Dict[str, Any]:
        """Drop the stored state; the following reload writes fresh sample data."""

        with self._lock:
            self._backup("before-reset")
            self._store.clear()
            self.reload()
            self._logger.log("state_reset")
            return self.snapshot()

    def reload(self) -> None:
        with self._lock:
            self._state = normalize_state(self._store.load())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _items(self, name: str) -> List[Record]:
        if name in RESERVED_SECTIONS:
            raise CollectionError(f"'{name}' is not a record collection.")
        items = self._state.setdefault(name, [])
        if not isinstance(items, list):
            raise CollectionError(f"'{name}' is not a record collection.")
        return items

    @staticmethod
    def _index_of(items: List[Record], record_id: Any) -> Optional[int]:
        for index, item in enumerate(items):
            if isinstance(item, Mapping) and item.get("id") == record_id:
                return index
        return None

    def _commit(self, name: str, previous: List[Record], existed: bool) -> None:
        def restore() -> None:
            if existed:
                self._state[name] = previous
            else:
                self._state.pop(name, None)

        self._persist(restore)

    def _persist(self, rollback: Callable[[], None]) -> None:
        try:
            self._store.save(self._state)
        except StorageError:
            rollback()
            raise

    def _backup(self, label: str) -> None:
        current = self._store.read_raw()
        if current is not None:
            self._backups.create_backup(current, label=label)


__all__ = ["Record", "StateRepository"]
