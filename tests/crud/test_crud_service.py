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
"""Tests for CrudService and create_crud — the four CRUD actions end to end."""

from __future__ import annotations

import pytest

from restfly.core.config import Config
from restfly.crud import CrudOperations, CrudService, create_crud
from restfly.data.adapters.memory import InMemoryDocumentStore
from restfly.kernel.exceptions import StoreException, UsageException


@pytest.fixture
def colors():
    return InMemoryDocumentStore(
        "colors",
        documents=[{"id": 1, "color": "blue"}, {"id": 2, "color": "red"}],
    )


@pytest.fixture
def crud(colors: InMemoryDocumentStore):
    return create_crud(colors, "id")


# ===========================================================================
# 1. create_crud
# ===========================================================================


class TestCreateCrud:
    def test_returns_bound_operations(self, crud: CrudOperations):
        assert isinstance(crud, CrudOperations)
        for name in ("get", "post", "put", "patch", "delete"):
            assert callable(getattr(crud, name))

    def test_operations_are_frozen(self, crud: CrudOperations):
        with pytest.raises(AttributeError):
            crud.get = None  # type: ignore[misc]

    async def test_id_field_defaults_from_config(self):
        store = InMemoryDocumentStore("slugs", id_field="slug", documents=[{"slug": "a", "v": 1}])
        config = Config({"restfly": {"query": {"id_field": "slug"}}})
        crud = create_crud(store, config=config)
        assert await crud.get("a", {"columns": "v"}) == {"slug": "a", "v": 1}

    async def test_max_limit_from_config(self, colors: InMemoryDocumentStore):
        config = Config({"restfly": {"query": {"max_limit": 1}}})
        crud = create_crud(colors, config=config)
        assert len(await crud.get()) == 1
        assert len(await crud.get(None, {"limit": "50"})) == 1


# ===========================================================================
# 2. Reads
# ===========================================================================


class TestGet:
    async def test_list_without_params(self, crud: CrudOperations):
        assert await crud.get() == [{"id": 1, "color": "blue"}, {"id": 2, "color": "red"}]

    async def test_negated_filter(self, crud: CrudOperations):
        assert await crud.get(None, {"color": "!blue"}) == [{"id": 2, "color": "red"}]

    async def test_equality_filter(self, crud: CrudOperations):
        assert await crud.get(None, {"color": "blue"}) == [{"id": 1, "color": "blue"}]

    async def test_no_match_is_empty_list(self, crud: CrudOperations):
        assert await crud.get(None, {"color": "green"}) == []

    async def test_sort_descending(self, crud: CrudOperations):
        result = await crud.get(None, {"sort": "-color"})
        assert [r["color"] for r in result] == ["red", "blue"]

    async def test_get_by_identifier(self, crud: CrudOperations):
        assert await crud.get("2") == {"id": 2, "color": "red"}

    async def test_get_by_identifier_ignores_filters(self, crud: CrudOperations):
        assert await crud.get("2", {"color": "blue", "limit": "0"}) == {"id": 2, "color": "red"}

    async def test_get_missing_resolves_none(self, crud: CrudOperations):
        assert await crud.get("404") is None

    async def test_columns_projection(self, crud: CrudOperations):
        assert await crud.get("1", {"columns": "nothing"}) == {"id": 1}

    @pytest.mark.parametrize(("limit", "offset"), [(1, 0), (1, 1), (5, 0), (2, 2), (0, 0)])
    async def test_page_size(self, crud: CrudOperations, limit: int, offset: int):
        result = await crud.get(None, {"limit": str(limit), "offset": str(offset)})
        assert len(result) == min(limit, max(0, 2 - offset))

    async def test_invalid_pagination_ignored(self, crud: CrudOperations):
        assert len(await crud.get(None, {"limit": "abc", "offset": "-1"})) == 2

    async def test_store_errors_propagate(self):
        class _FailingStore(InMemoryDocumentStore):
            async def find_many(self, *args, **kwargs):
                raise StoreException("boom", code="DOWN")

        failing = create_crud(_FailingStore("failing"))
        with pytest.raises(StoreException, match="boom"):
            await failing.get()


# ===========================================================================
# 3. Create
# ===========================================================================


class TestPost:
    async def test_post_then_get(self, crud: CrudOperations):
        created = await crud.post({"color": "green"})
        assert created["color"] == "green"
        assert await crud.get(str(created["id"])) == created

    async def test_post_projects_result(self, crud: CrudOperations):
        created = await crud.post({"color": "green", "shade": "dark"}, {"columns": "shade"})
        assert set(created) == {"id", "shade"}

    @pytest.mark.parametrize("body", [None, {}, "text", ["a"]])
    async def test_post_requires_body(self, crud: CrudOperations, body):
        with pytest.raises(UsageException) as exc_info:
            await crud.post(body)
        assert exc_info.value.code == "MISSING_BODY"

    async def test_failed_post_leaves_store_untouched(self, crud: CrudOperations, colors: InMemoryDocumentStore):
        with pytest.raises(UsageException):
            await crud.post({})
        assert len(colors) == 2


# ===========================================================================
# 4. Update
# ===========================================================================


class TestPutAndPatch:
    async def test_put_replaces(self, crud: CrudOperations, colors: InMemoryDocumentStore):
        await crud.patch("1", {"shade": "dark"})
        replaced = await crud.put("1", {"color": "navy"})
        assert replaced == {"id": 1, "color": "navy"}

    async def test_patch_merges(self, crud: CrudOperations):
        patched = await crud.patch("1", {"shade": "dark"})
        assert patched == {"id": 1, "color": "blue", "shade": "dark"}

    async def test_identifier_in_body_is_ignored(self, crud: CrudOperations):
        patched = await crud.patch("1", {"id": 99, "color": "cyan"})
        assert patched["id"] == 1
        assert await crud.get("99") is None

    async def test_missing_resource_resolves_none(self, crud: CrudOperations, colors: InMemoryDocumentStore):
        assert await crud.put("404", {"color": "x"}) is None
        assert await crud.patch("404", {"color": "x"}) is None
        assert len(colors) == 2

    @pytest.mark.parametrize("operation", ["put", "patch"])
    @pytest.mark.parametrize("identifier", [None, ""])
    async def test_identifier_required(self, crud: CrudOperations, operation: str, identifier):
        with pytest.raises(UsageException) as exc_info:
            await getattr(crud, operation)(identifier, {"color": "x"})
        assert exc_info.value.code == "MISSING_IDENTIFIER"

    @pytest.mark.parametrize("operation", ["put", "patch"])
    async def test_body_required(self, crud: CrudOperations, operation: str):
        with pytest.raises(UsageException) as exc_info:
            await getattr(crud, operation)("1", None)
        assert exc_info.value.code == "MISSING_BODY"


# ===========================================================================
# 5. Delete
# ===========================================================================


class TestDelete:
    async def test_delete_returns_snapshot(self, crud: CrudOperations):
        removed = await crud.delete("1")
        assert removed == {"id": 1, "color": "blue"}
        assert await crud.get("1") is None

    async def test_delete_missing_resolves_none(self, crud: CrudOperations, colors: InMemoryDocumentStore):
        assert await crud.delete("404") is None
        assert len(colors) == 2

    async def test_delete_requires_identifier(self, crud: CrudOperations):
        with pytest.raises(UsageException):
            await crud.delete(None)

    async def test_delete_projects_snapshot(self, crud: CrudOperations):
        assert await crud.delete("2", {"columns": "none"}) == {"id": 2}


# ===========================================================================
# 6. Service
# ===========================================================================


class TestCrudService:
    def test_exposes_store_and_id_field(self, colors: InMemoryDocumentStore):
        service = CrudService(colors, "id")
        assert service.store is colors
        assert service.id_field == "id"

    async def test_populate_through_service(self):
        owners = InMemoryDocumentStore(
            "owners",
            documents=[{"id": "o1", "name": "Ann", "token": "t"}],
            hidden_fields=["token"],
        )
        pets = InMemoryDocumentStore("pets", documents=[{"id": "p1", "owner": "o1"}]).relate("owner", owners)
        service = CrudService(pets)
        assert await service.get(None, {"populate": "owner"}) == [{"id": "p1", "owner": {"id": "o1", "name": "Ann"}}]


# ===========================================================================
# 7. Operator-like query keys
# ===========================================================================


class TestOperatorKeys:
    @pytest.mark.parametrize("params", [{"$where": "sleep(5000)"}, {"$and": "x"}, {"$or": "!x"}])
    async def test_rejected_before_reaching_store(self, crud: CrudOperations, params):
        with pytest.raises(UsageException) as exc_info:
            await crud.get(None, params)
        assert exc_info.value.code == "INVALID_FIELD"

    async def test_operator_sort_rejected(self, crud: CrudOperations):
        with pytest.raises(UsageException):
            await crud.get(None, {"sort": "-$natural"})

    async def test_ignored_on_identifier_path(self, crud: CrudOperations):
        assert await crud.get("1", {"$where": "sleep(5000)"}) == {"id": 1, "color": "blue"}
