from decimal import Decimal

import pytest

from homecare.exceptions import RecordValidationError
from homecare.forms import build_record
from homecare.models import Child, Donation, InventoryItem, ScheduleEntry
from homecare.money import coerce_amount, format_currency, to_number


def test_child_form_is_completed_with_defaults() -> None:
    record = build_record("children", {"name": "  Zoe ", "dob": "2020-01-01", "admissionDate": "2024-01-01"})

    assert record == {
        "id": "",
        "name": "Zoe",
        "gender": "M",
        "dob": "2020-01-01",
        "status": "Resident",
        "admissionDate": "2024-01-01",
    }


def test_missing_required_fields_are_reported() -> None:
    with pytest.raises(RecordValidationError) as excinfo:
        build_record("children", {"name": "Zoe", "dob": " "})

    assert excinfo.value.missing == ("dob", "admissionDate")
    assert excinfo.value.message == "Please fill all required fields"


@pytest.mark.parametrize(
    "collection, payload, message",
    [
        ("staff", {"name": "Ann"}, "Please fill all required fields"),
        ("inventory", {"qty": 3}, "Please enter item name"),
        ("donations", {"type": "Funds", "amount": 10}, "Donor name required"),
        ("adoptions", {"child": "Amina K", "parent": "J. Doe"}, "Child, parent and date are required"),
        ("meals", {"child": "Amina K"}, "Child and date are required"),
        ("schedule", {"date": "2025-01-01"}, "Title and date are required"),
        ("announcements", {"message": "   "}, "Message required"),
        ("expenses", {"desc": "Rent", "amount": "0"}, "Description and amount required"),
    ],
)
def test_required_field_messages(collection, payload, message) -> None:
    with pytest.raises(RecordValidationError, match=message):
        build_record(collection, payload)


def test_goods_donations_carry_no_amount() -> None:
    goods = build_record("donations", {"donor": "Local Bakery", "type": "Goods", "amount": 250, "note": "Bread"})
    funds = build_record("donations", {"donor": "J. Patel", "type": "Funds", "amount": "250"})

    assert goods["amount"] == 0
    assert funds["amount"] == 250


def test_inventory_minimum_falls_back_to_one() -> None:
    blank = build_record("inventory", {"item": "Soap", "qty": "abc", "min": ""})
    explicit = build_record("inventory", {"item": "Soap", "qty": "12", "min": "5"})

    assert (blank["qty"], blank["min"]) == (0, 1)
    assert (explicit["qty"], explicit["min"]) == (12, 5)


def test_unknown_collections_pass_through() -> None:
    payload = {"name": "Inspector", "extra": 1}

    record = build_record("visitors", payload)

    assert record == payload and record is not payload


def test_models_map_persisted_keys() -> None:
    item = InventoryItem.from_record({"item": "Milk (L)", "qty": "40", "min": 50, "cost": None})
    entry = ScheduleEntry.from_record({"title": "Clinic", "assignedTo": "Amina K", "type": "Visit"})

    assert item.is_low_stock
    assert item.to_record() == {"id": "", "item": "Milk (L)", "qty": 40, "min": 50, "category": "Food", "cost": 0}
    assert (entry.kind, entry.assigned_to, entry.status) == ("Visit", "Amina K", "Pending")
    assert Donation.from_record({"type": "Goods"}).is_funds is False
    assert Child.from_record({"admissionDate": "2024-01-01"}).admission_date == "2024-01-01"


def test_number_coercion() -> None:
    assert to_number("42") == 42
    assert to_number(" 4.5 ") == 4.5
    assert to_number("") == 0
    assert to_number("n/a") == 0
    assert to_number(float("nan")) == 0
    assert to_number(True) == 0
    assert to_number(None, 7) == 7
    assert to_number(Decimal("2.5")) == 2.5
    assert coerce_amount("12.50") == Decimal("12.5")
    assert coerce_amount({"not": "a number"}) == Decimal("0")


def test_currency_formatting() -> None:
    assert format_currency(1500) == "KES 1,500.00"
    assert format_currency("1234567.891", "usd") == "USD 1,234,567.89"
    assert format_currency(None) == "KES 0.00"
    assert format_currency(-5, "EUR") == "-EUR 5.00"
    assert format_currency("3.455") == "KES 3.46"
