"""Sample dataset written on first run or when the stored state is unreadable."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from .config import DEFAULT_BUDGET, DEFAULT_SETTINGS


def new_id() -> str:
    return str(uuid4())


def seed_state(
    *, today: Optional[date] = None, id_factory: Callable[[], str] = new_id
) -> Dict[str, Any]:
    """Build the default state; dates are relative to ``today``."""

    base = today or date.today()

    def day(offset: int = 0) -> str:
        return (base + timedelta(days=offset)).isoformat()

    return {
        "children": [
            {"id": id_factory(), "name": "Amina K", "gender": "F", "dob": "2014-03-11", "status": "Resident", "admissionDate": "2021-06-01"},
            {"id": id_factory(), "name": "Brian O", "gender": "M", "dob": "2012-11-22", "status": "Resident", "admissionDate": "2020-09-15"},
            {"id": id_factory(), "name": "Chloe N", "gender": "F", "dob": "2016-02-05", "status": "Resident", "admissionDate": "2022-02-12"},
        ],
        "staff": [
            {"id": id_factory(), "name": "Grace Mwangi", "role": "Caregiver", "phone": "0700 111 222"},
            {"id": id_factory(), "name": "David Kim", "role": "Nurse", "phone": "0700 333 444"},
        ],
        "donations": [
            {"id": id_factory(), "donor": "Hope Foundation", "type": "Funds", "amount": 1500, "date": day(-20)},
            {"id": id_factory(), "donor": "Local Bakery", "type": "Goods", "amount": 0, "date": day(-10), "note": "Bread & snacks"},
            {"id": id_factory(), "donor": "J. Patel", "type": "Funds", "amount": 800, "date": day(-2)},
        ],
        "inventory": [
            {"id": id_factory(), "item": "Rice (kg)", "qty": 120, "min": 60, "category": "Food", "cost": 120},
            {"id": id_factory(), "item": "Milk (L)", "qty": 40, "min": 50, "category": "Food", "cost": 80},
            {"id": id_factory(), "item": "Soap (bars)", "qty": 25, "min": 20, "category": "Hygiene", "cost": 50},
        ],
        "adoptions": [],
        "incidents": [],
        "attendance": [],
        "meals": [],
        "schedule": [],
        "finance": {"expenses": [], "budget": DEFAULT_BUDGET},
        "health": [
            {"id": id_factory(), "child": "Amina K", "type": "Checkup", "date": day(-5), "notes": "Routine health check", "medicalBill": 500},
            {"id": id_factory(), "child": "Brian O", "type": "Treatment", "date": day(-2), "notes": "Fever treatment", "medicalBill": 1200},
        ],
        "education": [
            {"id": id_factory(), "child": "Amina K", "school": "Moi Primary", "grade": "Grade 6", "term": "Term 2", "date": day(-30), "notes": "School fees payment", "fees": 8500},
            {"id": id_factory(), "child": "Chloe N", "school": "Sunshine Academy", "grade": "Grade 2", "term": "Term 1", "date": day(-15), "notes": "First term fees", "fees": 12000},
        ],
        "announcements": [
            {"id": id_factory(), "message": "Clinic visit on Friday 10am", "date": day(-1)},
        ],
        "meta": {"createdAt": datetime.now(timezone.utc).isoformat(), "settings": dict(DEFAULT_SETTINGS)},
    }


__all__ = ["new_id", "seed_state"]
