# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for BeanieDocumentStore — integration tests using mongomock."""

from __future__ import annotations

import pymongo
import pytest

mongomock_motor = pytest.importorskip("mongomock_motor", reason="mongomock-motor not installed")

from beanie import Document, init_beanie
from mongomock_motor import AsyncMongoMockClient

from restfly.crud.service import create_crud
from restfly.data.adapters.mongodb import BeanieDocumentStore
from restfly.data.ports.outbound import DocumentStorePort

# ---------------------------------------------------------------------------
# Test documents
# ---------------------------------------------------------------------------


class Owner(Document):
    name: str
    email: str = ""

    class Settings:
        name = "owners"


class Widget(Document):
    color: str
    size: int = 0
    active: bool = True
    owner: str | None = None
    secret: str = ""

    class Settings:
        name = "widgets"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
async def init_db():
    """Initialise Beanie with an in-memory mock client."""
    client = AsyncMongoMockClient()
    await init_beanie(database=client["test_db"], document_models=[Owner, Widget])
    yield
    client.close()


@pytest.fixture
def owners():
    return BeanieDocumentStore(Owner, hidden_fields=["email"])


@pytest.fixture
def widgets(owners: BeanieDocumentStore):
    return BeanieDocumentStore(Widget, hidden_fields=["secret"], relations={"owner": owners})


@pytest.fixture
async def seeded(widgets: BeanieDocumentStore):
    for color, size, active in [("blue", 3, True), ("red", 1, False), ("blue", 2, True), ("green", 5, False)]:
        await widgets.create({"color": color, "size": size, "active": active})
    return widgets


# ===========================================================================
# 1. Port surface
# ===========================================================================


class TestPortSurface:
    def test_implements_document_store_port(self, widgets: BeanieDocumentStore):
        assert isinstance(widgets, DocumentStorePort)

    def test_name_from_settings(self, widgets: BeanieDocumentStore):
        assert widgets.name == "widgets"
        assert widgets.model is Widget

    def test_revision_id_always_hidden(self, widgets: BeanieDocumentStore):
        assert widgets.hidden_fields() == frozenset({"secret", "revision_id"})

    def test_relation_lookup(self, widgets: BeanieDocumentStore, owners: BeanieDocumentStore):
        assert widgets.relation("owner") is owners
        assert widgets.relation("color") is None


# ===========================================================================
# 2. Reads
# ===========================================================================


class TestReads:
    async def test_equality_coerces_to_field_type(self, seeded: BeanieDocumentStore):
        found = await seeded.find_many({"size": "3"}, [])
        assert [w["color"] for w in found] == ["blue"]

    async def test_boolean_coercion(self, seeded: BeanieDocumentStore):
        found = await seeded.find_many({"active": "false"}, [("size", pymongo.ASCENDING)])
        assert [w["color"] for w in found] == ["red", "green"]

    async def test_not_equal_and_conjunction(self, seeded: BeanieDocumentStore):
        predicate = {"$and": [{"color": {"$ne": "blue"}}, {"color": {"$ne": "red"}}]}
        found = await seeded.find_many(predicate, [])
        assert [w["color"] for w in found] == ["green"]

    async def test_sort_limit_offset(self, seeded: BeanieDocumentStore):
        found = await seeded.find_many({}, [("size", pymongo.DESCENDING)], limit=2, offset=1)
        assert [w["size"] for w in found] == [3, 2]

    async def test_zero_limit_returns_nothing(self, seeded: BeanieDocumentStore):
        assert await seeded.find_many({}, [], limit=0) == []

    async def test_find_one_exposes_identifier_as_string(self, widgets: BeanieDocumentStore):
        created = await widgets.create({"color": "teal"})
        found = await widgets.find_one(created["id"])
        assert found is not None
        assert isinstance(found["id"], str)
        assert found["color"] == "teal"

    async def test_filter_by_identifier(self, widgets: BeanieDocumentStore):
        created = await widgets.create({"color": "teal"})
        await widgets.create({"color": "pink"})
        found = await widgets.find_many({"id": created["id"]}, [])
        assert [w["color"] for w in found] == ["teal"]

    async def test_invalid_object_id_is_not_found(self, widgets: BeanieDocumentStore):
        assert await widgets.find_one("not-an-object-id") is None
        assert await widgets.update("not-an-object-id", {"color": "x"}) is None
        assert await widgets.delete("not-an-object-id") is None


# ===========================================================================
# 3. Writes
# ===========================================================================


class TestWrites:
    async def test_create_ignores_client_identifier(self, widgets: BeanieDocumentStore):
        created = await widgets.create({"id": "bogus", "color": "blue"})
        assert created["id"] != "bogus"

    async def test_patch_merges(self, widgets: BeanieDocumentStore):
        created = await widgets.create({"color": "blue", "size": 4})
        updated = await widgets.update(created["id"], {"size": 9})
        assert updated["color"] == "blue"
        assert updated["size"] == 9
        assert updated["id"] == created["id"]

    async def test_replace_resets_unlisted_fields(self, widgets: BeanieDocumentStore):
        created = await widgets.create({"color": "blue", "size": 4})
        updated = await widgets.update(created["id"], {"color": "red"}, replace=True)
        assert updated["color"] == "red"
        assert updated["size"] == 0
        assert (await widgets.find_one(created["id"]))["color"] == "red"

    async def test_delete_returns_snapshot(self, widgets: BeanieDocumentStore):
        created = await widgets.create({"color": "blue"})
        removed = await widgets.delete(created["id"])
        assert removed["color"] == "blue"
        assert await widgets.find_one(created["id"]) is None


# ===========================================================================
# 4. Through the CRUD operations
# ===========================================================================


class TestCrudIntegration:
    async def test_list_with_query_parameters(self, seeded: BeanieDocumentStore):
        crud = create_crud(seeded)
        result = await crud.get(None, {"color": "!green", "sort": "-size", "columns": "size"})
        assert [r["size"] for r in result] == [3, 2, 1]
        assert all(set(r) == {"id", "size"} for r in result)

    async def test_hidden_fields_never_returned(self, widgets: BeanieDocumentStore):
        crud = create_crud(widgets)
        created = await crud.post({"color": "blue", "secret": "s3cr3t"})
        assert "secret" not in created
        assert "revision_id" not in created

    async def test_populate_owner(self, widgets: BeanieDocumentStore, owners: BeanieDocumentStore):
        owner = await owners.create({"name": "Ann", "email": "ann@example.com"})
        crud = create_crud(widgets)
        created = await crud.post({"color": "blue", "owner": owner["id"]})

        result = await crud.get(created["id"], {"populate": "owner"})

        assert result["owner"] == {"id": owner["id"], "name": "Ann"}
