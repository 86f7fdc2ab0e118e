from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from methoddocs.core.methods import (
    DuplicateKey,
    Example,
    MalformedId,
    NotFound,
    Parameter,
    Unavailable,
    ValidationFailed,
)
from methoddocs.store import MemoryMethodStore, SQLiteMethodStore

MISSING_ID = "01HZZZZZZZZZZZZZZZZZZZZZZZ"


def _payload(name: str = "map", category: str = "Array", **extra) -> dict:
    payload = {"name": name, "category": category, "description": f"About {name}."}
    payload.update(extra)
    return payload


def test_create_assigns_identity_and_timestamps(store) -> None:
    method = store.create(_payload())

    assert len(method.id) == 26
    assert method.created_at is not None
    assert method.updated_at == method.created_at


def test_duplicate_name_is_rejected(store) -> None:
    store.create(_payload("map"))

    with pytest.raises(DuplicateKey) as info:
        store.create(_payload("map", category="Other"))

    assert info.value.name == "map"
    assert len(store.get_all()) == 1


def test_name_uniqueness_is_case_sensitive(store) -> None:
    store.create(_payload("map"))
    store.create(_payload("Map"))

    assert {m.name for m in store.get_all()} == {"map", "Map"}


def test_invalid_category_is_never_stored(store) -> None:
    with pytest.raises(ValidationFailed):
        store.create(_payload(category="Function"))

    assert store.get_all() == []


def test_get_all_orders_by_category_then_name(store) -> None:
    for name in ("map", "filter", "reduce"):
        store.create(_payload(name, "Array"))
    store.create(_payload("trim", "String"))
    store.create(_payload("keys", "Object"))

    assert [m.name for m in store.get_all()] == ["filter", "map", "reduce", "keys", "trim"]


def test_get_by_id_round_trips_nested_collections(store) -> None:
    created = store.create(_payload(
        syntax="arr.map(fn)",
        returnValue="A *new* array.",
        parameters=[{"name": "fn", "description": "callback"}, {"name": "thisArg", "description": "this"}],
        examples=[{"code": "b", "output": "2"}, {"code": "a", "output": "1"}],
    ))

    fetched = store.get_by_id(created.id)

    assert fetched.to_dict() == created.to_dict()
    assert [e.code for e in fetched.examples] == ["b", "a"]
    assert [p.name for p in fetched.parameters] == ["fn", "thisArg"]


def test_returned_records_are_detached_from_the_store(store) -> None:
    created = store.create(_payload(parameters=[{"name": "fn", "description": "callback"}]))

    store.get_by_id(created.id).parameters.append(Parameter("extra", "sneaked in"))
    store.get_all()[0].examples.append(Example("x", "y"))
    created.parameters.clear()

    fetched = store.get_by_id(created.id)
    assert fetched.parameters == [Parameter("fn", "callback")]
    assert fetched.examples == []


def test_get_by_id_accepts_lower_case_id(store) -> None:
    created = store.create(_payload())

    assert store.get_by_id(created.id.lower()).id == created.id


def test_get_by_id_missing_and_malformed(store) -> None:
    with pytest.raises(NotFound):
        store.get_by_id(MISSING_ID)
    with pytest.raises(MalformedId):
        store.get_by_id("12345")


def test_description_update_preserves_other_fields(store) -> None:
    created = store.create(_payload(
        parameters=[{"name": "fn", "description": "callback"}],
        examples=[{"code": "[1].map(x => x)", "output": "[1]"}],
    ))

    updated = store.update(created.id, {"description": "Transforms every element."})

    assert updated.description == "Transforms every element."
    assert updated.name == created.name
    assert updated.category == created.category
    assert updated.parameters == created.parameters
    assert updated.examples == created.examples
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.created_at
    assert store.get_by_id(created.id).description == "Transforms every element."


def test_update_ignores_attempts_to_change_identity(store) -> None:
    created = store.create(_payload())

    updated = store.update(created.id, {"id": MISSING_ID, "createdAt": "1999-01-01T00:00:00Z"})

    assert updated.id == created.id
    assert updated.created_at == created.created_at


def test_update_to_existing_name_is_duplicate(store) -> None:
    store.create(_payload("map"))
    other = store.create(_payload("filter"))

    with pytest.raises(DuplicateKey):
        store.update(other.id, {"name": "map"})

    assert store.get_by_id(other.id).name == "filter"


def test_update_keeping_own_name_is_not_duplicate(store) -> None:
    created = store.create(_payload("map"))

    updated = store.update(created.id, {"name": "map", "syntax": "arr.map(fn)"})

    assert updated.syntax == "arr.map(fn)"


def test_invalid_update_leaves_record_untouched(store) -> None:
    created = store.create(_payload())

    with pytest.raises(ValidationFailed):
        store.update(created.id, {"category": "Function", "description": "changed"})

    assert store.get_by_id(created.id).to_dict() == created.to_dict()


def test_update_missing_and_malformed(store) -> None:
    with pytest.raises(NotFound):
        store.update(MISSING_ID, {"description": "x"})
    with pytest.raises(MalformedId):
        store.update("nope", {"description": "x"})


def test_delete_twice_reports_not_found(store) -> None:
    created = store.create(_payload())

    deleted = store.delete(created.id)
    assert deleted.name == "map"

    with pytest.raises(NotFound):
        store.delete(created.id)
    with pytest.raises(NotFound):
        store.get_by_id(created.id)


def test_deleted_name_can_be_reused(store) -> None:
    created = store.create(_payload("map"))
    store.delete(created.id)

    assert store.create(_payload("map")).id != created.id


def test_closed_store_is_unavailable(store) -> None:
    store.close()

    with pytest.raises(Unavailable):
        store.get_all()
    assert store.ping() is False

    store.open()
    assert store.ping() is True


def test_concurrent_creates_with_same_name_yield_one_winner(store) -> None:
    def attempt(i: int) -> str:
        try:
            store.create(_payload("map", description=f"attempt {i}"))
            return "created"
        except DuplicateKey:
            return "duplicate"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(16)))

    assert outcomes.count("created") == 1
    assert outcomes.count("duplicate") == 15
    assert len(store.get_all()) == 1


def test_concurrent_renames_to_same_name_yield_one_winner(store) -> None:
    records = [store.create(_payload(f"method{i}")) for i in range(8)]

    def attempt(method_id: str) -> str:
        try:
            store.update(method_id, {"name": "map"})
            return "renamed"
        except DuplicateKey:
            return "duplicate"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, [m.id for m in records]))

    assert outcomes.count("renamed") == 1
    assert outcomes.count("duplicate") == 7
    assert [m.name for m in store.get_all()].count("map") == 1


def test_sqlite_store_persists_across_instances(tmp_path: Path) -> None:
    db_path = tmp_path / "methods.sqlite"
    with SQLiteMethodStore(db_path) as first:
        created = first.create(_payload())

    with SQLiteMethodStore(db_path) as second:
        assert second.get_by_id(created.id).name == "map"


def test_sqlite_store_unreachable_path_fails_to_open(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(Unavailable):
        SQLiteMethodStore(blocker / "methods.sqlite").open()


def test_memory_store_starts_closed() -> None:
    with pytest.raises(Unavailable):
        MemoryMethodStore().create(_payload())
