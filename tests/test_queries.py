from datetime import date
from decimal import Decimal

from homecare import queries
from homecare.models import normalize_state
from homecare.seed import seed_state

TODAY = date(2025, 1, 1)


def seeded() -> dict:
    return normalize_state(seed_state(today=TODAY))


def test_age_counts_whole_years() -> None:
    assert queries.age("2020-01-01", TODAY) == 5
    assert queries.age("2020-06-15", TODAY) == 4
    assert queries.age("2014-03-11T00:00:00Z", date(2024, 3, 11)) == 10


def test_age_is_zero_for_unusable_dates() -> None:
    assert queries.age("", TODAY) == 0
    assert queries.age(None, TODAY) == 0
    assert queries.age("31/12/2019", TODAY) == 0
    assert queries.age("2019-02-30", TODAY) == 0
    assert queries.age(20190101, TODAY) == 0
    assert queries.age("2030-01-01", TODAY) == 0


def test_money_uses_configured_currency() -> None:
    assert queries.money({"meta": {"settings": {"currency": "USD"}}}, "1500") == "USD 1,500.00"
    assert queries.money({}, None) == "KES 0.00"
    assert queries.money({"meta": {"settings": {"currency": ""}}}, "abc") == "KES 0.00"
    assert queries.money(seeded(), -1200.5) == "-KES 1,200.50"


def test_low_stock_detection() -> None:
    assert queries.is_low_stock({"qty": 40, "min": 50})
    assert not queries.is_low_stock({"qty": 120, "min": 60})
    assert queries.is_low_stock({"qty": 20, "min": 20})

    state = seeded()
    assert queries.low_stock_count(state) == 1
    assert [item["item"] for item in queries.low_stock_items(state)] == ["Milk (L)"]


def test_inventory_totals() -> None:
    totals = queries.inventory_totals(seeded())

    assert totals["quantity"] == 185
    assert totals["value"] == 120 * 120 + 40 * 80 + 25 * 50


def test_meal_projection_scenario() -> None:
    state = {
        "children": [{"name": "Amina"}, {"name": "Brian"}],
        "meals": [
            {"child": "Amina", "mealType": "Breakfast", "amount": 100},
            {"child": "Amina", "mealType": "Lunch", "amount": "50"},
        ],
    }

    rows = queries.meal_projections(state)

    amina, brian = rows
    assert (amina.name, amina.daily, amina.weekly, amina.monthly, amina.yearly) == ("Amina", 150, 1050, 4500, 54750)
    assert (brian.name, brian.daily, brian.yearly) == ("Brian", 0, 0)
    assert queries.meal_totals(state).yearly == 54750


def test_meal_projection_keeps_orphaned_child_names() -> None:
    state = {"children": [], "meals": [{"child": "Former Resident", "mealType": "Supper", "amount": 30}]}

    rows = queries.meal_projections(state)

    assert [(row.name, row.weekly) for row in rows] == [("Former Resident", 210)]


def test_monthly_donations_cover_trailing_six_months() -> None:
    state = {
        "donations": [
            {"type": "Funds", "amount": 500, "date": "2025-03-01"},
            {"type": "Funds", "amount": 200, "date": "2025-02-10"},
            {"type": "Funds", "amount": "100", "date": "2024-10-05"},
            {"type": "Funds", "amount": 999, "date": "2024-09-30"},
            {"type": "Goods", "amount": 700, "date": "2025-03-02"},
            {"type": "Funds", "amount": 50, "date": "not a date"},
        ]
    }

    buckets = queries.monthly_donations(state, date(2025, 3, 15))

    assert [bucket.label for bucket in buckets] == ["Oct", "Nov", "Dec", "Jan", "Feb", "Mar"]
    assert [(bucket.year, bucket.month) for bucket in buckets][:3] == [(2024, 10), (2024, 11), (2024, 12)]
    assert [bucket.amount for bucket in buckets] == [100, 0, 0, 0, 200, 500]
    assert queries.donation_trend(buckets) == "Increasing"
    assert queries.donation_trend(buckets[:3]) == "Stable"


def test_age_groups_use_fixed_bands() -> None:
    state = {
        "children": [
            {"dob": "2021-06-01"},
            {"dob": "2019-06-01"},
            {"dob": "2018-06-01"},
            {"dob": "2012-06-01"},
            {"dob": "2008-06-01"},
            {"dob": "bogus"},
        ]
    }

    assert queries.age_groups(state, TODAY) == {"0-5": 3, "6-10": 1, "11-15": 1, "16+": 1}


def test_children_and_staff_metrics() -> None:
    state = seeded()
    state["children"].append({"name": "Zoe", "gender": "F", "dob": "2020-01-01", "admissionDate": "2024-11-15"})
    state["children"].append({"name": "Sam", "gender": "M", "dob": "2019-01-01", "admissionDate": "2024-09-01"})

    assert queries.gender_counts(state) == {"M": 2, "F": 3}
    assert queries.new_admissions(state, TODAY) == 1
    assert queries.child_staff_ratio(state) == 3
    assert queries.child_staff_ratio({"children": [{}], "staff": []}) == 0
    assert queries.average_age({"children": [{"dob": "2020-01-01"}, {"dob": "2014-01-01"}]}, TODAY) == 8
    assert queries.average_age({}, TODAY) == 0


def test_finance_summary() -> None:
    state = seeded()
    state["finance"]["expenses"] = [{"desc": "Rent", "amount": 300}, {"desc": "Junk", "amount": "n/a"}]

    summary = queries.finance_summary(state)

    assert summary == {
        "funds": Decimal("2300"),
        "spent": Decimal("300"),
        "balance": Decimal("2000"),
        "budget": Decimal("12000"),
    }
    assert queries.goods_count(state) == 1
    assert queries.total_health_bills(state) == 1700
    assert queries.total_education_fees(state) == 20500


def test_attendance_and_schedule_views() -> None:
    state = {
        "attendance": [
            {"child": "Amina K", "date": "2025-01-01", "status": "Present"},
            {"child": "Brian O", "date": "2025-01-01", "status": "Late"},
            {"child": "Chloe N", "date": "2024-12-31", "status": "Absent"},
        ],
        "schedule": [
            {"title": "Past", "date": "2024-12-20"},
            {"title": "Clinic", "date": "2025-01-03"},
            {"title": "Trip", "date": "2025-01-01"},
            {"title": "Undated"},
        ],
    }

    assert queries.attendance_for_day(state, TODAY) == {"present": 1, "absent": 0, "late": 1}
    assert [entry["title"] for entry in queries.upcoming_schedule(state, TODAY)] == ["Clinic", "Trip"]
    assert len(queries.upcoming_schedule(state, TODAY, limit=1)) == 1


def test_filter_records_and_search() -> None:
    state = seeded()

    assert [c["name"] for c in queries.filter_records(state["children"], "chloe")] == ["Chloe N"]
    assert len(queries.filter_records(state["children"], "", status="Resident")) == 3
    assert queries.filter_records(state["children"], "", status="Adopted") == []
    assert [h["type"] for h in queries.filter_records(state["health"], "", child="Brian O")] == ["Treatment"]
    assert len(queries.filter_records(state["children"], "", child="", status=None)) == 3

    found = queries.search(state, "  DAVID ")
    assert [s["name"] for s in found["staff"]] == ["David Kim"]
    assert found["children"] == [] and found["donations"] == []
    assert queries.search(state, "") == {"children": [], "staff": [], "donations": []}


def test_dashboard_summary_on_seed_data() -> None:
    summary = queries.dashboard_summary(seeded(), TODAY)

    assert summary.total_children == 3
    assert summary.total_staff == 2
    assert summary.low_stock == 1 and summary.stock_ok == 2
    assert summary.total_funds == 2300
    assert summary.health_bills == 1700
    assert summary.education_fees == 20500
    assert summary.annual_meals == 0
    assert summary.genders == {"M": 1, "F": 2}
    assert summary.monthly_donations[-2].amount == 2300
    assert summary.monthly_donations[-1].amount == 0
    assert summary.donation_trend == "Stable"
    assert len(summary.recent_donations) == 3
    assert summary.to_dict()["monthly_donations"][-1]["label"] == "Jan"


def test_helpers_tolerate_malformed_state() -> None:
    state = {"children": "oops", "inventory": [None, {"qty": "x"}], "donations": [{"type": "Funds", "amount": None}], "meta": []}

    summary = queries.dashboard_summary(state, TODAY)

    assert summary.total_children == 0
    assert summary.low_stock == 1
    assert summary.total_funds == 0
    assert queries.currency_code(state) == "KES"
    assert queries.finance_summary(state)["budget"] == 0
    assert queries.meal_projections({}) == []
