"""
Tests for the world-state stores and selector evaluation.
"""
import json

import pytest
import pytest_asyncio

from securedrive.core.exceptions import InvalidArgument
from securedrive.ledger.selectors import matches, validate_selector
from securedrive.ledger.world_state import InMemoryWorldState, SQLWorldState


def doc(**fields) -> bytes:
    return json.dumps(fields).encode()


async def collect(state, selector):
    return [key async for key, _ in state.query(selector)]


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, test_db):
    if request.param == "memory":
        return InMemoryWorldState()
    return SQLWorldState(test_db)


class TestWorldState:
    """Behavior shared by both store implementations."""

    @pytest.mark.asyncio
    async def test_put_get_commit(self, store):
        await store.put("vehicle_v1", doc(ownerID="alice"))
        await store.commit()

        assert await store.get("vehicle_v1") == doc(ownerID="alice")
        assert await store.get("vehicle_v2") is None

    @pytest.mark.asyncio
    async def test_staged_write_visible_before_commit(self, store):
        await store.put("k", b"1")
        assert await store.get("k") == b"1"

    @pytest.mark.asyncio
    async def test_rollback_discards_staged(self, store):
        await store.put("k", b"1")
        await store.commit()
        await store.put("k", b"2")
        await store.put("other", b"3")

        await store.rollback()

        assert await store.get("k") == b"1"
        assert await store.get("other") is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.put("k", b"1")
        await store.commit()

        await store.delete("k")
        await store.delete("never-there")
        await store.commit()

        assert await store.get("k") is None
        assert await store.exists("k") is False

    @pytest.mark.asyncio
    async def test_empty_key(self, store):
        with pytest.raises(InvalidArgument):
            await store.get("")
        with pytest.raises(InvalidArgument):
            await store.put("", b"1")

    @pytest.mark.asyncio
    async def test_compare_and_put_insert(self, store):
        assert await store.compare_and_put("k", None, b"1") is True
        assert await store.compare_and_put("k", None, b"2") is False
        await store.commit()

        assert await store.get("k") == b"1"

    @pytest.mark.asyncio
    async def test_compare_and_put_update(self, store):
        await store.put("k", b"1")
        await store.commit()

        assert await store.compare_and_put("k", b"1", b"2") is True
        assert await store.compare_and_put("k", b"1", b"3") is False
        await store.commit()

        assert await store.get("k") == b"2"

    @pytest.mark.asyncio
    async def test_query_by_prefix_and_field(self, store):
        await store.put("vehicle_v1", doc(vehicleID="v1", ownerID="alice"))
        await store.put("vehicle_v2", doc(vehicleID="v2", ownerID="bob"))
        await store.put("trip_t1", doc(vehicleID="v1", ownerID="alice"))
        await store.commit()

        keys = await collect(store, {"_id": {"$regex": "^vehicle_"}, "ownerID": "alice"})

        assert keys == ["vehicle_v1"]

    @pytest.mark.asyncio
    async def test_query_in_and_exists(self, store):
        await store.put("vehicle_v1", doc(vehicleID="v1", age="1"))
        await store.put("vehicle_v2", doc(vehicleID="v2"))
        await store.put("vehicle_v3", doc(vehicleID="v3"))
        await store.commit()

        assert await collect(store, {"age": {"$exists": True}}) == ["vehicle_v1"]
        assert await collect(store, {"vehicleID": {"$in": ["v2", "v3"]}}) == [
            "vehicle_v2",
            "vehicle_v3",
        ]

    @pytest.mark.asyncio
    async def test_query_skips_non_json_values(self, store):
        await store.put("raw", b"\x00not json")
        await store.put("vehicle_v1", doc(vehicleID="v1"))
        await store.commit()

        assert await collect(store, {"vehicleID": "v1"}) == ["vehicle_v1"]

    @pytest.mark.asyncio
    async def test_query_rejects_unknown_operator(self, store):
        with pytest.raises(InvalidArgument):
            await collect(store, {"ownerID": {"$gt": 1}})


class TestSelectors:
    """Mango-style selector matching."""

    def test_equality(self):
        assert matches({"a": 1}, "k", {"a": 1})
        assert not matches({"a": 1}, "k", {"a": 2})
        assert not matches({"a": 1}, "k", {})

    def test_eq_operator(self):
        assert matches({"a": {"$eq": "x"}}, "k", {"a": "x"})
        assert not matches({"a": {"$eq": "x"}}, "k", {})

    def test_exists(self):
        assert matches({"a": {"$exists": False}}, "k", {"b": 1})
        assert not matches({"a": {"$exists": False}}, "k", {"a": None})

    def test_regex_on_key(self):
        assert matches({"_id": {"$regex": "^result_"}}, "result_t1", {})
        assert not matches({"_id": {"$regex": "^result_"}}, "trip_t1", {})

    def test_in(self):
        assert matches({"a": {"$in": [1, 2]}}, "k", {"a": 2})
        assert not matches({"a": {"$in": [1, 2]}}, "k", {"a": 3})

    def test_non_mapping_document(self):
        assert not matches({"a": 1}, "k", None)
        assert matches({}, "k", None)

    def test_invalid_selector(self):
        with pytest.raises(InvalidArgument):
            validate_selector(["not", "a", "dict"])
        with pytest.raises(InvalidArgument):
            validate_selector({"a": {"$regex": "("}})
