"""Read-only aggregates computed from a state snapshot.

Every helper accepts whatever the state holds and degrades to ``0``, an empty
result or a neutral label instead of raising. Nothing here mutates the state.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .config import (
    AGE_BANDS,
    DEFAULT_CURRENCY,
    DONATION_TREND_MONTHS,
    NEW_ADMISSION_MONTHS,
    PERIOD_FACTORS,
    UPCOMING_SCHEDULE_LIMIT,
)
from .models import Child, Donation, InventoryItem, MealEntry, parse_date
from .money import ZERO, coerce_amount, format_currency

State = Mapping[str, Any]


def _records(state: State, name: str) -> List[Mapping[str, Any]]:
    items = state.get(name) if isinstance(state, Mapping) else None
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def _sum(values: Iterable[Any]) -> Decimal:
    return sum((coerce_amount(value) for value in values), ZERO)


def _round_half_up(numerator: int, denominator: int) -> int:
    return int((Decimal(numerator) / Decimal(denominator)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Dates and money
# ---------------------------------------------------------------------------
def age(dob: Any, today: Optional[date] = None) -> int:
    """Whole years elapsed since ``dob``; 0 when the date is unusable."""

    born = parse_date(dob)
    if born is None:
        return 0
    now = today or date.today()
    years = now.year - born.year - ((now.month, now.day) < (born.month, born.day))
    return max(years, 0)


def months_between(start: date, end: date) -> int:
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def currency_code(state: State) -> str:
    meta = state.get("meta") if isinstance(state, Mapping) else None
    settings = meta.get("settings") if isinstance(meta, Mapping) else None
    code = settings.get("currency") if isinstance(settings, Mapping) else None
    return code if isinstance(code, str) and code.strip() else DEFAULT_CURRENCY


def money(state: State, amount: Any) -> str:
    return format_currency(amount, currency_code(state))


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
def is_low_stock(item: Mapping[str, Any]) -> bool:
    return InventoryItem.from_record(item).is_low_stock


def low_stock_items(state: State) -> List[Mapping[str, Any]]:
    return [item for item in _records(state, "inventory") if is_low_stock(item)]


def low_stock_count(state: State) -> int:
    return len(low_stock_items(state))


def inventory_totals(state: State) -> Dict[str, Decimal]:
    items = [InventoryItem.from_record(item) for item in _records(state, "inventory")]
    return {
        "quantity": _sum(item.qty for item in items),
        "value": _sum(item.stock_value for item in items),
    }


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class MealProjection:
    name: str
    daily: Decimal = ZERO
    weekly: Decimal = ZERO
    monthly: Decimal = ZERO
    yearly: Decimal = ZERO

    @classmethod
    def from_daily(cls, name: str, daily: Decimal) -> "MealProjection":
        return cls(
            name=name,
            daily=daily * PERIOD_FACTORS["daily"],
            weekly=daily * PERIOD_FACTORS["weekly"],
            monthly=daily * PERIOD_FACTORS["monthly"],
            yearly=daily * PERIOD_FACTORS["yearly"],
        )


def meal_projections(state: State) -> List[MealProjection]:
    """Per-child meal spend, projected as daily x 7 / 30 / 365.

    Children with meal entries come first in the order they appear, then the
    remaining registered children with zero spend.
    """

    per_type: Dict[str, Dict[str, Decimal]] = {}
    for record in _records(state, "meals"):
        entry = MealEntry.from_record(record)
        by_type = per_type.setdefault(entry.child, {})
        by_type[entry.meal_type] = by_type.get(entry.meal_type, ZERO) + coerce_amount(entry.amount)

    rows = [MealProjection.from_daily(name, sum(by_type.values(), ZERO)) for name, by_type in per_type.items()]
    for child in _records(state, "children"):
        name = Child.from_record(child).name
        if name not in per_type:
            rows.append(MealProjection(name=name))
    return rows


def total_meals_daily(state: State) -> Decimal:
    return _sum(record.get("amount") for record in _records(state, "meals"))


def meal_totals(state: State) -> MealProjection:
    return MealProjection.from_daily("Total", total_meals_daily(state))


# ---------------------------------------------------------------------------
# Donations and finance
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class MonthlyBucket:
    label: str
    year: int
    month: int
    amount: Decimal = ZERO


def _funds(state: State) -> List[Donation]:
    donations = (Donation.from_record(record) for record in _records(state, "donations"))
    return [donation for donation in donations if donation.is_funds]


def total_funds(state: State) -> Decimal:
    return _sum(donation.amount for donation in _funds(state))


def goods_count(state: State) -> int:
    return sum(1 for record in _records(state, "donations") if record.get("type") == "Goods")


def monthly_donations(
    state: State, today: Optional[date] = None, months: int = DONATION_TREND_MONTHS
) -> List[MonthlyBucket]:
    """Funds received in each of the trailing ``months`` calendar months, oldest first."""

    now = today or date.today()
    buckets: List[MonthlyBucket] = []
    for offset in range(months - 1, -1, -1):
        index = now.year * 12 + (now.month - 1) - offset
        year, month = divmod(index, 12)
        buckets.append(MonthlyBucket(label=date(year, month + 1, 1).strftime("%b"), year=year, month=month + 1))

    lookup = {(bucket.year, bucket.month): bucket for bucket in buckets}
    for donation in _funds(state):
        when = parse_date(donation.date)
        if when is None:
            continue
        bucket = lookup.get((when.year, when.month))
        if bucket is not None:
            bucket.amount += coerce_amount(donation.amount)
    return buckets


def donation_trend(buckets: Sequence[MonthlyBucket]) -> str:
    if len(buckets) >= 2 and buckets[-1].amount > buckets[-2].amount:
        return "Increasing"
    return "Stable"


def total_health_bills(state: State) -> Decimal:
    return _sum(record.get("medicalBill") for record in _records(state, "health"))


def total_education_fees(state: State) -> Decimal:
    return _sum(record.get("fees") for record in _records(state, "education"))


def finance_summary(state: State) -> Dict[str, Decimal]:
    finance = state.get("finance") if isinstance(state, Mapping) else None
    finance = finance if isinstance(finance, Mapping) else {}
    expenses = finance.get("expenses") if isinstance(finance.get("expenses"), list) else []
    funds = total_funds(state)
    spent = _sum(entry.get("amount") for entry in expenses if isinstance(entry, Mapping))
    return {
        "funds": funds,
        "spent": spent,
        "balance": funds - spent,
        "budget": coerce_amount(finance.get("budget")),
    }


# ---------------------------------------------------------------------------
# Children and staff
# ---------------------------------------------------------------------------
def age_groups(state: State, today: Optional[date] = None) -> Dict[str, int]:
    groups = {label: 0 for label, _, _ in AGE_BANDS}
    for record in _records(state, "children"):
        years = age(record.get("dob"), today)
        for label, _, upper in AGE_BANDS:
            if upper is None or years <= upper:
                groups[label] += 1
                break
    return groups


def gender_counts(state: State) -> Dict[str, int]:
    counts = Counter(record.get("gender") for record in _records(state, "children"))
    return {"M": counts.get("M", 0), "F": counts.get("F", 0)}


def average_age(state: State, today: Optional[date] = None) -> int:
    children = _records(state, "children")
    if not children:
        return 0
    return _round_half_up(sum(age(child.get("dob"), today) for child in children), len(children))


def new_admissions(
    state: State, today: Optional[date] = None, months: int = NEW_ADMISSION_MONTHS
) -> int:
    now = today or date.today()
    count = 0
    for record in _records(state, "children"):
        admitted = parse_date(record.get("admissionDate"))
        if admitted is not None and months_between(admitted, now) < months:
            count += 1
    return count


def child_staff_ratio(state: State) -> int:
    staff = len(_records(state, "staff"))
    if not staff:
        return 0
    return _round_half_up(len(_records(state, "children")), staff)


# ---------------------------------------------------------------------------
# Attendance and scheduling
# ---------------------------------------------------------------------------
def attendance_for_day(state: State, day: Optional[date] = None) -> Dict[str, int]:
    key = (day or date.today()).isoformat()
    counts = Counter(
        record.get("status") for record in _records(state, "attendance") if record.get("date") == key
    )
    return {"present": counts.get("Present", 0), "absent": counts.get("Absent", 0), "late": counts.get("Late", 0)}


def upcoming_schedule(
    state: State, today: Optional[date] = None, limit: int = UPCOMING_SCHEDULE_LIMIT
) -> List[Mapping[str, Any]]:
    key = (today or date.today()).isoformat()
    upcoming = [record for record in _records(state, "schedule") if str(record.get("date") or "") >= key]
    return upcoming[:limit]


# ---------------------------------------------------------------------------
# Filtering and search
# ---------------------------------------------------------------------------
def filter_records(
    records: Iterable[Mapping[str, Any]], query: str = "", **equals: Any
) -> List[Mapping[str, Any]]:
    """Keep records containing ``query`` in any text field and matching ``equals``.

    Empty filter values are ignored, mirroring the "All" option of the table
    filters.
    """

    needle = (query or "").strip().lower()
    wanted = {key: value for key, value in equals.items() if value not in (None, "")}
    matches = []
    for record in records:
        if not isinstance(record, Mapping):
            continue
        if any(record.get(key) != value for key, value in wanted.items()):
            continue
        if needle and not any(
            needle in value.lower() for key, value in record.items() if key != "id" and isinstance(value, str)
        ):
            continue
        matches.append(record)
    return matches


def search(state: State, query: str) -> Dict[str, List[Mapping[str, Any]]]:
    needle = (query or "").strip().lower()
    if not needle:
        return {"children": [], "staff": [], "donations": []}

    def named(name: str, key: str) -> List[Mapping[str, Any]]:
        return [record for record in _records(state, name) if needle in str(record.get(key) or "").lower()]

    return {
        "children": named("children", "name"),
        "staff": named("staff", "name"),
        "donations": named("donations", "donor"),
    }


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------
@dataclass(slots=True)
class DashboardSummary:
    total_children: int
    total_staff: int
    new_admissions: int
    child_staff_ratio: int
    total_funds: Decimal
    donation_trend: str
    low_stock: int
    stock_ok: int
    health_bills: Decimal
    education_fees: Decimal
    annual_meals: Decimal
    genders: Dict[str, int] = field(default_factory=dict)
    age_groups: Dict[str, int] = field(default_factory=dict)
    monthly_donations: List[MonthlyBucket] = field(default_factory=list)
    recent_donations: List[Mapping[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def dashboard_summary(state: State, today: Optional[date] = None) -> DashboardSummary:
    now = today or date.today()
    buckets = monthly_donations(state, now)
    low = low_stock_count(state)
    return DashboardSummary(
        total_children=len(_records(state, "children")),
        total_staff=len(_records(state, "staff")),
        new_admissions=new_admissions(state, now),
        child_staff_ratio=child_staff_ratio(state),
        total_funds=total_funds(state),
        donation_trend=donation_trend(buckets),
        low_stock=low,
        stock_ok=len(_records(state, "inventory")) - low,
        health_bills=total_health_bills(state),
        education_fees=total_education_fees(state),
        annual_meals=total_meals_daily(state) * PERIOD_FACTORS["yearly"],
        genders=gender_counts(state),
        age_groups=age_groups(state, now),
        monthly_donations=buckets,
        recent_donations=_records(state, "donations")[:5],
    )


__all__ = [
    "DashboardSummary",
    "MealProjection",
    "MonthlyBucket",
    "age",
    "age_groups",
    "attendance_for_day",
    "average_age",
    "child_staff_ratio",
    "currency_code",
    "dashboard_summary",
    "donation_trend",
    "filter_records",
    "finance_summary",
    "gender_counts",
    "goods_count",
    "inventory_totals",
    "is_low_stock",
    "low_stock_count",
    "low_stock_items",
    "meal_projections",
    "meal_totals",
    "money",
    "monthly_donations",
    "months_between",
    "new_admissions",
    "search",
    "total_education_fees",
    "total_funds",
    "total_health_bills",
    "total_meals_daily",
    "upcoming_schedule",
]
