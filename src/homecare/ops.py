"""Operational utilities: structured event log and state backups."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class BackupMetadata:
    backup_id: str
    created_at: datetime
    label: str
    size_bytes: int


class BackupManager:
    """Keep rolling copies of the serialized state blob before destructive changes."""

    def __init__(self, *, retain: int = 7) -> None:
        self.retain = retain
        self._backups: Dict[str, tuple[BackupMetadata, str]] = {}

    def create_backup(self, blob: str, *, label: str = "") -> BackupMetadata:
        backup_id = str(uuid4())
        metadata = BackupMetadata(
            backup_id=backup_id,
            created_at=datetime.now(timezone.utc),
            label=label or backup_id,
            size_bytes=len(blob.encode("utf-8")),
        )
        self._backups[backup_id] = (metadata, blob)
        self.purge_old(self.retain)
        return metadata

    def latest(self) -> Optional[tuple[BackupMetadata, str]]:
        if not self._backups:
            return None
        return max(self._backups.values(), key=lambda item: item[0].created_at)

    def list_backups(self) -> tuple[BackupMetadata, ...]:
        return tuple(sorted((meta for meta, _ in self._backups.values()), key=lambda meta: meta.created_at))

    def purge_old(self, retain: int = 7) -> None:
        if retain <= 0:
            self._backups.clear()
            return
        backups = sorted(self._backups.values(), key=lambda item: item[0].created_at, reverse=True)
        for metadata, _ in backups[retain:]:
            self._backups.pop(metadata.backup_id, None)


class StructuredLogger:
    """Write JSON lines log entries for admin inspection."""

    def __init__(self, *, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else None
        self._entries: list[dict] = []

    def log(self, event_type: str, **fields: object) -> dict:
        entry = {"timestamp": datetime.now(timezone.utc).isoformat(), "event": event_type, **fields}
        self._entries.append(entry)
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry, default=str) + "\n")
        return entry

    def tail(self, limit: int = 50) -> tuple[dict, ...]:
        return tuple(self._entries[-limit:])

    def events(self, event_type: str) -> tuple[dict, ...]:
        return tuple(entry for entry in self._entries if entry["event"] == event_type)


__all__ = ["BackupManager", "BackupMetadata", "StructuredLogger"]
