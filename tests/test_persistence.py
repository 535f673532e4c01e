import json
from datetime import date, timedelta

import pytest
from sqlmodel import Session

from homecare.exceptions import StorageError
from homecare.models import normalize_state
from homecare.persistence import StateBlob, StateStore
from homecare.seed import seed_state

TODAY = date(2025, 1, 1)


@pytest.fixture()
def store(tmp_path):
    return StateStore.from_path(tmp_path / "state.db", today=lambda: TODAY)


def _without_volatile(value):
    if isinstance(value, dict):
        return {key: _without_volatile(item) for key, item in value.items() if key not in {"id", "createdAt"}}
    if isinstance(value, list):
        return [_without_volatile(item) for item in value]
    return value


def test_load_seeds_and_persists_when_storage_is_empty(store) -> None:
    assert store.read_raw() is None

    state = store.load()

    assert [child["name"] for child in state["children"]] == ["Amina K", "Brian O", "Chloe N"]
    assert state["finance"] == {"expenses": [], "budget": 12000}
    assert state["meals"] == [] and state["schedule"] == []
    assert json.loads(store.read_raw()) == state
    assert store.logger.events("state_seeded")[0]["reason"] == "missing"


def test_seed_dates_are_relative_to_today(store) -> None:
    state = store.load()

    donation_dates = [donation["date"] for donation in state["donations"]]
    assert donation_dates == ["2024-12-12", "2024-12-22", "2024-12-30"]
    assert state["announcements"][0]["date"] == "2024-12-31"


def test_unparsable_blob_is_replaced_by_seed(store) -> None:
    store.write_raw("{not json")

    state = store.load()

    assert len(state["children"]) == 3
    assert json.loads(store.read_raw()) == state
    assert store.logger.events("state_seeded")[-1]["reason"] == "unparsable"


def test_json_that_is_not_an_object_is_replaced_by_seed(store) -> None:
    store.write_raw("[1, 2, 3]")

    state = store.load()

    assert len(state["inventory"]) == 3


def test_parsable_blob_is_returned_without_validation(store) -> None:
    store.write_raw(json.dumps({"children": [{"id": "a", "name": "Zoe"}]}))

    assert store.load() == {"children": [{"id": "a", "name": "Zoe"}]}


def test_reseeding_twice_gives_structurally_identical_states(store) -> None:
    first = store.load()
    store.clear()
    second = store.load()

    assert _without_volatile(first) == _without_volatile(second)
    assert {child["id"] for child in first["children"]}.isdisjoint(child["id"] for child in second["children"])
    assert json.loads(store.read_raw()) == second


def test_save_then_load_round_trips(store) -> None:
    state = normalize_state(seed_state(today=TODAY))
    state["meals"].append({"id": "m1", "child": "Zoë", "mealType": "Lunch", "amount": 12.5, "notes": "ñ"})
    state["custom"] = [{"id": "x", "nested": {"a": [1, 2, None]}}]

    store.save(state)

    assert store.load() == state


def test_keys_are_isolated_on_a_shared_engine(store) -> None:
    other = StateStore(store.engine, key="other_state", today=lambda: TODAY)
    store.save({"children": []})

    assert other.read_raw() is None
    assert store.load() == {"children": []}


def test_unserialisable_state_raises_storage_error(store) -> None:
    store.save({"children": []})

    with pytest.raises(StorageError):
        store.save({"children": {1, 2}})

    assert store.load() == {"children": []}


def test_unusable_database_raises_storage_error(tmp_path) -> None:
    with pytest.raises(StorageError):
        StateStore.from_path(tmp_path)


def test_overwriting_a_blob_refreshes_its_timestamp(store) -> None:
    store.write_raw('{"children": []}')
    with Session(store.engine) as session:
        first = session.get(StateBlob, store.key).updated_at

    store.write_raw('{"children": [{"id": "c1"}]}')
    with Session(store.engine) as session:
        row = session.get(StateBlob, store.key)
        assert row.v == '{"children": [{"id": "c1"}]}'
        assert row.updated_at >= first


def test_new_blobs_are_stamped_in_utc() -> None:
    row = StateBlob(k="state", v="{}")

    assert row.updated_at.tzinfo is not None
    assert row.updated_at.utcoffset() == timedelta(0)
