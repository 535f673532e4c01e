"""Persistence of the HomeCare state as one JSON blob in a SQLite key/value table."""
from __future__ import annotations

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, create_engine

from .config import SQLITE_FILE_NAME, STORAGE_KEY
from .exceptions import StorageError
from .ops import StructuredLogger
from .seed import seed_state


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StateBlob(SQLModel, table=True):
    k: str = Field(primary_key=True)
    v: str
    updated_at: datetime = Field(default_factory=_utcnow)


def make_engine(path: Path | str = SQLITE_FILE_NAME) -> Engine:
    return create_engine(
        f"sqlite:///{path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )


def dump_state(state: Mapping[str, Any], *, indent: int | None = None) -> str:
    try:
        return json.dumps(state, ensure_ascii=False, indent=indent)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"State is not JSON serialisable: {exc}") from exc


class StateStore:
    """Read and overwrite the whole state under a single well-known key.

    ``load`` never fails on bad content: a missing row, text that is not JSON,
    or JSON that is not an object is replaced by a fresh seed dataset, which
    is written back before being returned. Parsable objects are returned as
    they are; callers normalise them. Database and serialisation failures
    surface as :class:`~homecare.exceptions.StorageError`.
    """

    def __init__(
        self,
        engine: Engine,
        *,
        key: str = STORAGE_KEY,
        seed_factory: Callable[..., Dict[str, Any]] = seed_state,
        logger: StructuredLogger | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.engine = engine
        self.key = key
        self.logger = logger or StructuredLogger()
        self._seed_factory = seed_factory
        self._today = today
        try:
            SQLModel.metadata.create_all(engine, tables=[StateBlob.__table__])
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot initialise state storage: {exc}") from exc

    @classmethod
    def from_path(cls, path: Path | str = SQLITE_FILE_NAME, **kwargs: Any) -> "StateStore":
        return cls(make_engine(path), **kwargs)

    # ------------------------------------------------------------------
    # Raw blob access
    # ------------------------------------------------------------------
    def read_raw(self) -> Optional[str]:
        try:
            with Session(self.engine) as session:
                row = session.get(StateBlob, self.key)
                return row.v if row else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot read stored state: {exc}") from exc

    def write_raw(self, blob: str) -> None:
        try:
            with Session(self.engine) as session:
                row = session.get(StateBlob, self.key)
                if row:
                    row.v = blob
                    row.updated_at = _utcnow()
                else:
                    row = StateBlob(k=self.key, v=blob)
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot write stored state: {exc}") from exc

    def clear(self) -> None:
        try:
            with Session(self.engine) as session:
                row = session.get(StateBlob, self.key)
                if row:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot clear stored state: {exc}") from exc

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    def load(self) -> Dict[str, Any]:
        raw = self.read_raw()
        if raw is None:
            return self._reseed("missing")
        try:
            state = json.loads(raw)
        except json.JSONDecodeError:
            return self._reseed("unparsable")
        if not isinstance(state, dict):
            return self._reseed("not_an_object")
        return state

    def save(self, state: Mapping[str, Any]) -> None:
        self.write_raw(dump_state(state))

    def _reseed(self, reason: str) -> Dict[str, Any]:
        state = self._seed_factory(today=self._today())
        self.save(state)
        self.logger.log("state_seeded", key=self.key, reason=reason)
        return state


__all__ = ["StateBlob", "StateStore", "dump_state", "make_engine"]
