"""Tests for the RecordService, the integrity-checked mutation surface."""

import asyncio
from decimal import Decimal

import pytest

from services.record_integrity.RecordService import RecordService
from shared.errors.IntegrityError import (
    CollectionNotFound,
    DanglingReference,
    DocumentNotFound,
    EmptyCollection,
    FieldNotFound,
    IllegalFieldName,
    InvalidType,
    InvalidValue,
    ShapeMismatch,
    UnknownField,
)


async def _add_books(service, *titles: str) -> None:
    for title in titles:
        await service.add_record("Books", {"title": title, "genre": "Fiction"})


async def _ids_and_titles(store) -> list[tuple[int, str]]:
    return [(d["Books_id"], d["title"]) for d in await store.do_find_all("Books")]


# ── Create ──────────────────────────────────────────────────────────────


class TestAddRecord:
    @pytest.mark.asyncio
    async def test_sequential_creates_get_dense_ids(self, service, store):
        await _add_books(service, "A", "B", "C", "D", "E")
        assert await _ids_and_titles(store) == [(1, "A"), (2, "B"), (3, "C"), (4, "D"), (5, "E")]

    @pytest.mark.asyncio
    async def test_ids_are_prepended(self, service):
        record = await service.add_record("Books", {"title": "A", "pages": 120})
        assert list(record) == ["_id", "Books_id", "title", "pages"]
        assert record["Books_id"] == 1

    @pytest.mark.asyncio
    async def test_identical_shape_succeeds(self, service, store):
        await service.add_record("Books", {"title": "A", "genre": "Poetry"})
        await service.add_record("Books", {"title": "B", "genre": "History"})
        assert len(await store.do_find_all("Books")) == 2

    @pytest.mark.asyncio
    async def test_shape_drift_is_rejected(self, service, store):
        await service.add_record("Books", {"title": "A", "genre": "Poetry"})
        with pytest.raises(ShapeMismatch):
            await service.add_record("Books", {"name": "B", "genre": "Poetry"})
        with pytest.raises(ShapeMismatch):
            await service.add_record("Books", {"title": "B"})
        assert len(await store.do_find_all("Books")) == 1

    @pytest.mark.asyncio
    async def test_enumeration_rejects_outside_value(self, service, store):
        with pytest.raises(InvalidValue) as excinfo:
            await service.add_record("Books", {"title": "A", "genre": "Cooking"})
        assert excinfo.value.field == "genre"
        assert await store.do_find_all("Books") == []

    @pytest.mark.asyncio
    async def test_undeclared_collection_accepts_anything(self, service, store):
        await service.add_record("Magazines", {"genre": "Cooking", "pages": "many"})
        assert len(await store.do_find_all("Magazines")) == 1

    @pytest.mark.asyncio
    async def test_wrong_kind_is_rejected(self, service, store):
        with pytest.raises(InvalidType) as excinfo:
            await service.add_record("Books", {"title": "A", "pages": "320"})
        assert excinfo.value.expected == "integer"
        assert excinfo.value.actual == "string"
        assert await store.do_find_all("Books") == []

    @pytest.mark.asyncio
    async def test_declared_decimal(self, service):
        record = await service.add_record("Books", {"title": "A", "price": Decimal("12.98")})
        assert record["price"] == Decimal("12.98")
        with pytest.raises(InvalidType):
            await service.add_record("Books", {"title": "B", "price": 12.98})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["_id", "Books_id"])
    async def test_id_fields_cannot_be_supplied(self, service, field):
        with pytest.raises(IllegalFieldName):
            await service.add_record("Books", {field: 7, "title": "A"})

    @pytest.mark.asyncio
    async def test_concurrent_creates_stay_dense(self, service, store):
        await asyncio.gather(*(service.add_record("Books", {"title": str(n)}) for n in range(10)))
        ids = sorted(d["Books_id"] for d in await store.do_find_all("Books"))
        assert ids == list(range(1, 11))


class TestAddRecordWithRelationship:
    @pytest.mark.asyncio
    async def test_array_reference_all_present(self, service, store):
        await _add_books(service, "A", "B", "C")
        record = await service.add_record("Loans", {"member": "ann"}, {"Books_id": [1, 2, 3]})
        assert list(record) == ["_id", "Loans_id", "member", "Books_id"]
        assert record["Books_id"] == [1, 2, 3]
        assert len(await store.do_find_all("Loans")) == 1

    @pytest.mark.asyncio
    async def test_array_reference_with_missing_id(self, service, store):
        await _add_books(service, "A", "B")
        with pytest.raises(DanglingReference) as excinfo:
            await service.add_record("Loans", {"member": "ann"}, {"Books_id": [1, 2, 3]})
        assert excinfo.value.value == 3
        assert excinfo.value.collection == "Books"
        assert await store.do_find_all("Loans") == []

    @pytest.mark.asyncio
    async def test_scalar_reference(self, service, store):
        await _add_books(service, "A")
        await service.add_record("Reviews", {"stars": 5}, {"Books_id": 1})
        with pytest.raises(DanglingReference):
            await service.add_record("Reviews", {"stars": 4}, {"Books_id": 2})
        assert len(await store.do_find_all("Reviews")) == 1

    @pytest.mark.asyncio
    async def test_self_reference_is_illegal(self, service):
        await _add_books(service, "A")
        with pytest.raises(IllegalFieldName):
            await service.add_record("Books", {"title": "B", "genre": "Fiction"}, {"Books_id": 1})

    @pytest.mark.asyncio
    async def test_relationship_must_not_repeat_value_field(self, service):
        await _add_books(service, "A")
        with pytest.raises(IllegalFieldName):
            await service.add_record("Reviews", {"Books_id": 1}, {"Books_id": 1})

    @pytest.mark.asyncio
    async def test_reference_shaped_value_field_is_illegal(self, service, store):
        with pytest.raises(IllegalFieldName) as excinfo:
            await service.add_record("Reviews", {"stars": 5, "Books_id": 999})
        assert excinfo.value.field == "Books_id"
        assert await store.do_find_all("Reviews") == []

    @pytest.mark.asyncio
    async def test_boolean_does_not_resolve_to_integer_id(self, service, store):
        await _add_books(service, "A")
        with pytest.raises(DanglingReference):
            await service.add_record("Reviews", {"stars": 5}, {"Books_id": True})
        assert await store.do_find_all("Reviews") == []

    @pytest.mark.asyncio
    async def test_relationship_name_needs_id_suffix(self, service, store):
        with pytest.raises(IllegalFieldName):
            await service.add_record("Reviews", {"stars": 5}, {"Books": 1})
        assert await store.do_find_all("Reviews") == []


# ── Delete ──────────────────────────────────────────────────────────────


class TestDeleteRecord:
    @pytest.mark.asyncio
    async def test_books_scenario(self, service, store):
        await service.add_record("Books", {"title": "A"})
        await service.add_record("Books", {"title": "B"})
        await service.delete_record("Books", 1)
        assert await _ids_and_titles(store) == [(1, "B")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("deleted", [1, 3, 5])
    async def test_survivors_are_renumbered_in_order(self, service, store, deleted):
        titles = ["A", "B", "C", "D", "E"]
        await _add_books(service, *titles)
        await service.delete_record("Books", deleted)
        survivors = [t for t in titles if t != titles[deleted - 1]]
        assert await _ids_and_titles(store) == list(zip(range(1, 5), survivors))

    @pytest.mark.asyncio
    async def test_create_after_delete_continues_sequence(self, service, store):
        await _add_books(service, "A", "B", "C")
        await service.delete_record("Books", 2)
        await _add_books(service, "D")
        assert await _ids_and_titles(store) == [(1, "A"), (2, "C"), (3, "D")]

    @pytest.mark.asyncio
    async def test_unknown_collection(self, service):
        with pytest.raises(CollectionNotFound):
            await service.delete_record("Nope", 1)

    @pytest.mark.asyncio
    async def test_empty_collection(self, service):
        await service.add_record("Books", {"title": "A"})
        await service.delete_record("Books", 1)
        with pytest.raises(EmptyCollection):
            await service.delete_record("Books", 1)

    @pytest.mark.asyncio
    async def test_unknown_id(self, service, store):
        await _add_books(service, "A")
        with pytest.raises(DocumentNotFound):
            await service.delete_record("Books", 2)
        assert await _ids_and_titles(store) == [(1, "A")]

    @pytest.mark.asyncio
    async def test_emptied_collection_takes_a_new_shape(self, service, store):
        await service.add_record("Books", {"title": "A"})
        await service.delete_record("Books", 1)
        record = await service.add_record("Books", {"name": "A", "pages": 3})
        assert record["Books_id"] == 1


# ── Edit values ─────────────────────────────────────────────────────────


class TestEditRecord:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["Books_id", "Authors_id", "_id", "anything_id"])
    async def test_id_shaped_fields_are_always_illegal(self, service, field):
        # even for collections and records that do not exist
        with pytest.raises(IllegalFieldName):
            await service.edit_record("Nope", 99, {field: 1})
        await _add_books(service, "A")
        with pytest.raises(IllegalFieldName):
            await service.edit_record("Books", 1, {"title": "B", field: 1})

    @pytest.mark.asyncio
    async def test_combined_update(self, service, store):
        await _add_books(service, "A")
        await service.edit_record("Books", 1, {"title": "Z", "genre": "Poetry"})
        document = await store.do_find_one("Books", "Books_id", 1)
        assert (document["title"], document["genre"]) == ("Z", "Poetry")

    @pytest.mark.asyncio
    async def test_unknown_field(self, service, store):
        await _add_books(service, "A")
        with pytest.raises(UnknownField):
            await service.edit_record("Books", 1, {"title": "Z", "isbn": "123"})
        assert (await store.do_find_one("Books", "Books_id", 1))["title"] == "A"

    @pytest.mark.asyncio
    async def test_invalid_value_leaves_record_untouched(self, service, store):
        await _add_books(service, "A")
        with pytest.raises(InvalidValue):
            await service.edit_record("Books", 1, {"title": "Z", "genre": "Cooking"})
        assert (await store.do_find_one("Books", "Books_id", 1))["title"] == "A"

    @pytest.mark.asyncio
    async def test_invalid_type(self, service):
        await _add_books(service, "A")
        with pytest.raises(InvalidType):
            await service.edit_record("Books", 1, {"title": 42})

    @pytest.mark.asyncio
    async def test_unknown_record(self, service):
        await _add_books(service, "A")
        with pytest.raises(DocumentNotFound):
            await service.edit_record("Books", 2, {"title": "Z"})

    @pytest.mark.asyncio
    async def test_unknown_collection(self, service):
        with pytest.raises(CollectionNotFound):
            await service.edit_record("Nope", 1, {"title": "Z"})


# ── Edit relationship ───────────────────────────────────────────────────


class TestEditRelationship:
    @pytest.mark.asyncio
    async def test_replaces_array_reference(self, service, store):
        await _add_books(service, "A", "B", "C")
        await service.add_record("Loans", {"member": "ann"}, {"Books_id": [1]})
        assert await service.edit_relationship("Loans", 1, {"Books_id": [2, 3]}) == 1
        assert (await store.do_find_one("Loans", "Loans_id", 1))["Books_id"] == [2, 3]

    @pytest.mark.asyncio
    async def test_dangling_reference_writes_nothing(self, service, store):
        await _add_books(service, "A")
        await service.add_record("Loans", {"member": "ann"}, {"Books_id": [1]})
        with pytest.raises(DanglingReference):
            await service.edit_relationship("Loans", 1, {"Books_id": [1, 4]})
        assert (await store.do_find_one("Loans", "Loans_id", 1))["Books_id"] == [1]

    @pytest.mark.asyncio
    async def test_self_reference_is_ignored(self, service, store):
        await _add_books(service, "A", "B")
        assert await service.edit_relationship("Books", 2, {"Books_id": 1}) == 0
        assert await _ids_and_titles(store) == [(1, "A"), (2, "B")]

    @pytest.mark.asyncio
    async def test_field_without_id_suffix(self, service):
        await _add_books(service, "A")
        with pytest.raises(IllegalFieldName):
            await service.edit_relationship("Books", 1, {"title": "Z"})

    @pytest.mark.asyncio
    async def test_declared_kind_is_enforced(self, service):
        await _add_books(service, "A")
        await service.add_record("Loans", {"member": "ann"}, {"Books_id": [1]})
        with pytest.raises(InvalidType):
            await service.edit_relationship("Loans", 1, {"Books_id": 1})

    @pytest.mark.asyncio
    async def test_unknown_record(self, service):
        await _add_books(service, "A")
        with pytest.raises(DocumentNotFound):
            await service.edit_relationship("Books", 5, {"Authors_id": 1})

    @pytest.mark.asyncio
    async def test_new_relationship_field_keeps_shape(self, helper_config, service, store, rules):
        await service.add_record("Authors", {"name": "Ann"})
        await _add_books(service, "A", "B")
        with pytest.raises(UnknownField) as excinfo:
            await service.edit_relationship("Books", 1, {"Authors_id": 1})
        assert excinfo.value.field == "Authors_id"
        assert [list(d) for d in await store.do_find_all("Books")] == [["_id", "Books_id", "title", "genre"]] * 2

        # a service that has never seen the collection still accepts the original shape
        fresh = RecordService(helper_config=helper_config, store=store, rules=rules)
        record = await fresh.add_record("Books", {"title": "C", "genre": "Fiction"})
        assert record["Books_id"] == 3


# ── Read ────────────────────────────────────────────────────────────────


class TestReads:
    @pytest.mark.asyncio
    async def test_list_records(self, service):
        assert await service.list_records("Books") == []
        await _add_books(service, "A", "B")
        assert [d["title"] for d in await service.list_records("Books")] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_field_values(self, service):
        await _add_books(service, "A", "B")
        assert await service.get_field_values("Books", "title") == ["A", "B"]

    @pytest.mark.asyncio
    async def test_field_values_is_all_or_nothing(self, service):
        await _add_books(service, "A")
        with pytest.raises(FieldNotFound):
            await service.get_field_values("Books", "pages")

    @pytest.mark.asyncio
    async def test_latest_id(self, service):
        assert await service.get_latest_id("Books") == 0
        await _add_books(service, "A", "B", "C")
        assert await service.get_latest_id("Books") == 3

    @pytest.mark.asyncio
    async def test_search_compares_external_representation(self, service):
        await service.add_record("Books", {"title": "A", "pages": 3})
        await service.add_record("Books", {"title": "B", "pages": 30})
        matches = await service.search_records("Books", "pages", "3")
        assert [d["title"] for d in matches] == ["A"]

    @pytest.mark.asyncio
    async def test_search_without_matches(self, service):
        await _add_books(service, "A")
        assert await service.search_records("Books", "title", "Z") == []
        assert await service.search_records("Books", "isbn", "A") == []


# ── Locking ─────────────────────────────────────────────────────────────


class TestCollectionLocks:
    @pytest.mark.asyncio
    async def test_locks_are_released_after_mutations(self, service):
        await _add_books(service, "A")
        await service.edit_record("Books", 1, {"title": "B"})
        assert service._locks == {}

    @pytest.mark.asyncio
    async def test_rejected_mutations_on_unknown_collections_leave_no_lock(self, service):
        for n in range(5):
            with pytest.raises(CollectionNotFound):
                await service.delete_record(f"Random{n}", 1)
        assert service._locks == {}
        assert service._lock_users == {}

    @pytest.mark.asyncio
    async def test_concurrent_mutations_release_their_lock(self, service, store):
        await asyncio.gather(*(service.add_record("Books", {"title": str(n)}) for n in range(3)))
        assert service._locks == {}
        assert len(await store.do_find_all("Books")) == 3
