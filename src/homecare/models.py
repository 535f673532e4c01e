"""Record types for every collection held in the HomeCare state.

Persisted records are plain JSON mappings with camelCase keys. Each collection
has a dataclass here that reads such a mapping defensively (missing text is
``""``, numbers fall back to ``0``) and writes it back with the persisted keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from typing import Any, ClassVar, Dict, Mapping, Optional, Type

from .config import COLLECTION_NAMES, DEFAULT_BUDGET, DEFAULT_SETTINGS
from .money import Number, to_number


def text(key: str | None = None, default: str = "") -> Any:
    return field(default=default, metadata={"key": key, "numeric": False})


def number(key: str | None = None, default: Number = 0) -> Any:
    return field(default=default, metadata={"key": key, "numeric": True})


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or datetime) string; ``None`` when unusable."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    candidate = value.strip()
    try:
        return date.fromisoformat(candidate[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(candidate.replace("Z", "+00:00")).date()
    except ValueError:
        return None


class RecordModel:
    """Mixin turning a dataclass into a persisted record type."""

    __slots__ = ()

    collection: ClassVar[str] = ""

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "RecordModel":
        values: Dict[str, Any] = {}
        for item in fields(cls):  # type: ignore[arg-type]
            raw = data.get(item.metadata.get("key") or item.name)
            if item.metadata.get("numeric"):
                values[item.name] = to_number(raw, item.default)
            elif raw is None:
                values[item.name] = item.default
            else:
                values[item.name] = str(raw)
        return cls(**values)

    def to_record(self) -> Dict[str, Any]:
        return {
            (item.metadata.get("key") or item.name): getattr(self, item.name)
            for item in fields(self)  # type: ignore[arg-type]
        }


@dataclass(slots=True)
class Child(RecordModel):
    collection: ClassVar[str] = "children"

    id: str = text()
    name: str = text()
    gender: str = text(default="M")
    dob: str = text()
    status: str = text(default="Resident")
    admission_date: str = text("admissionDate")


@dataclass(slots=True)
class StaffMember(RecordModel):
    collection: ClassVar[str] = "staff"

    id: str = text()
    name: str = text()
    role: str = text()
    phone: str = text()


@dataclass(slots=True)
class Donation(RecordModel):
    """A gift of funds or goods; only ``Funds`` donations carry an amount."""

    collection: ClassVar[str] = "donations"

    id: str = text()
    donor: str = text()
    kind: str = text("type", default="Funds")
    amount: Number = number()
    date: str = text()
    note: str = text()

    @property
    def is_funds(self) -> bool:
        return self.kind == "Funds"


@dataclass(slots=True)
class InventoryItem(RecordModel):
    collection: ClassVar[str] = "inventory"

    id: str = text()
    item: str = text()
    qty: Number = number()
    minimum: Number = number("min")
    category: str = text(default="Food")
    cost: Number = number()

    @property
    def is_low_stock(self) -> bool:
        """True when the quantity on hand is at or below the configured minimum."""

        return self.qty <= self.minimum

    @property
    def stock_value(self) -> Number:
        return self.qty * self.cost


@dataclass(slots=True)
class HealthRecord(RecordModel):
    collection: ClassVar[str] = "health"

    id: str = text()
    child: str = text()
    kind: str = text("type", default="Checkup")
    date: str = text()
    notes: str = text()
    medical_bill: Number = number("medicalBill")


@dataclass(slots=True)
class EducationRecord(RecordModel):
    collection: ClassVar[str] = "education"

    id: str = text()
    child: str = text()
    school: str = text()
    grade: str = text()
    term: str = text()
    date: str = text()
    notes: str = text()
    fees: Number = number()


@dataclass(slots=True)
class AttendanceRecord(RecordModel):
    collection: ClassVar[str] = "attendance"

    id: str = text()
    child: str = text()
    date: str = text()
    status: str = text(default="Present")
    time_in: str = text("timeIn")
    notes: str = text()


@dataclass(slots=True)
class IncidentReport(RecordModel):
    collection: ClassVar[str] = "incidents"

    id: str = text()
    date: str = text()
    child: str = text()
    severity: str = text()
    description: str = text()
    action: str = text()
    reporter: str = text()


@dataclass(slots=True)
class MealEntry(RecordModel):
    """Daily food spend for one child and one meal type."""

    collection: ClassVar[str] = "meals"

    id: str = text()
    child: str = text()
    meal_type: str = text("mealType", default="Breakfast")
    date: str = text()
    amount: Number = number()
    notes: str = text()


@dataclass(slots=True)
class ScheduleEntry(RecordModel):
    collection: ClassVar[str] = "schedule"

    id: str = text()
    title: str = text()
    kind: str = text("type", default="Activity")
    date: str = text()
    time: str = text()
    assigned_to: str = text("assignedTo")
    status: str = text(default="Pending")
    description: str = text()


@dataclass(slots=True)
class AdoptionRecord(RecordModel):
    collection: ClassVar[str] = "adoptions"

    id: str = text()
    child: str = text()
    parent: str = text()
    contact: str = text()
    date: str = text()
    agency: str = text()
    notes: str = text()


@dataclass(slots=True)
class Announcement(RecordModel):
    collection: ClassVar[str] = "announcements"

    id: str = text()
    message: str = text()
    date: str = text()


@dataclass(slots=True)
class Expense(RecordModel):
    collection: ClassVar[str] = "expenses"

    id: str = text()
    description: str = text("desc")
    amount: Number = number()
    date: str = text()


MODEL_BY_COLLECTION: Dict[str, Type[RecordModel]] = {
    model.collection: model
    for model in (
        Child,
        StaffMember,
        Donation,
        InventoryItem,
        HealthRecord,
        EducationRecord,
        AttendanceRecord,
        IncidentReport,
        MealEntry,
        ScheduleEntry,
        AdoptionRecord,
        Announcement,
        Expense,
    )
}


def normalize_state(raw: Mapping[str, Any] | None) -> Dict[str, Any]:
    """Return ``raw`` with every collection and section present.

    Missing or mistyped collections become empty lists, ``finance`` and
    ``meta.settings`` are completed from their defaults. Unknown top-level
    keys are carried over untouched.
    """

    state: Dict[str, Any] = dict(raw or {})
    for name in COLLECTION_NAMES:
        if not isinstance(state.get(name), list):
            state[name] = []

    finance = state.get("finance")
    finance = dict(finance) if isinstance(finance, Mapping) else {}
    if not isinstance(finance.get("expenses"), list):
        finance["expenses"] = []
    finance.setdefault("budget", DEFAULT_BUDGET)
    state["finance"] = finance

    meta = state.get("meta")
    meta = dict(meta) if isinstance(meta, Mapping) else {}
    meta.setdefault("createdAt", datetime.now(timezone.utc).isoformat())
    settings = meta.get("settings")
    meta["settings"] = {**DEFAULT_SETTINGS, **(settings if isinstance(settings, Mapping) else {})}
    state["meta"] = meta
    return state


__all__ = [
    "AdoptionRecord",
    "Announcement",
    "AttendanceRecord",
    "Child",
    "Donation",
    "EducationRecord",
    "Expense",
    "HealthRecord",
    "IncidentReport",
    "InventoryItem",
    "MODEL_BY_COLLECTION",
    "MealEntry",
    "RecordModel",
    "ScheduleEntry",
    "StaffMember",
    "normalize_state",
    "parse_date",
]
