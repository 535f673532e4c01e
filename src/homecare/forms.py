"""Validation of submitted records before they reach the repository."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from .exceptions import RecordValidationError
from .models import MODEL_BY_COLLECTION, Donation, InventoryItem

REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "children": ("name", "dob", "admissionDate"),
    "staff": ("name", "role"),
    "inventory": ("item",),
    "donations": ("donor",),
    "adoptions": ("child", "parent", "date"),
    "meals": ("child", "date"),
    "attendance": ("child", "date"),
    "health": ("child", "date"),
    "education": ("child", "date"),
    "incidents": ("child", "date"),
    "schedule": ("title", "date"),
    "announcements": ("message",),
    "expenses": ("desc", "amount"),
}

MESSAGES: Dict[str, str] = {
    "children": "Please fill all required fields",
    "staff": "Please fill all required fields",
    "inventory": "Please enter item name",
    "donations": "Donor name required",
    "adoptions": "Child, parent and date are required",
    "meals": "Child and date are required",
    "attendance": "Child and date are required",
    "health": "Child and date are required",
    "education": "Child and date are required",
    "incidents": "Child and date are required",
    "schedule": "Title and date are required",
    "announcements": "Message required",
    "expenses": "Description and amount required",
}

# Inventory forms treat a blank minimum as 1 rather than 0.
INVENTORY_MIN_FALLBACK = 1


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def build_record(collection: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a complete record for ``collection`` built from form ``payload``.

    Known collections are coerced through their record type, so the result
    always carries every field with its default. Unknown collections pass
    through as a shallow copy. Raises :class:`RecordValidationError` when a
    required field is blank.
    """

    model = MODEL_BY_COLLECTION.get(collection)
    if model is None:
        record = dict(payload)
    else:
        record = model.from_record(payload).to_record()
        record = {key: value.strip() if isinstance(value, str) else value for key, value in record.items()}
        if model is Donation and record.get("type") != "Funds":
            record["amount"] = 0
        if model is InventoryItem and _is_blank(payload.get("min")):
            record["min"] = INVENTORY_MIN_FALLBACK

    missing = [name for name in REQUIRED_FIELDS.get(collection, ()) if _is_blank(record.get(name))]
    if missing:
        raise RecordValidationError(MESSAGES.get(collection, "Please fill all required fields"), missing)
    return record


__all__ = ["REQUIRED_FIELDS", "build_record"]
