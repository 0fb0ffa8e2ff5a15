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
"""Document store backed by a Beanie ODM model (MongoDB).

No session injection: Beanie uses the Motor client passed to
``init_beanie``. Filter values are coerced with a pydantic ``TypeAdapter``
built from the model's field annotation; values that fail validation are
sent to MongoDB as the raw string.

Usage::

    class Widget(Document):
        color: str
        size: int = 0
        owner: str | None = None

        class Settings:
            name = "widgets"

    widgets = BeanieDocumentStore(Widget, relations={"owner": users})
    crud = create_crud(widgets)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Generic, TypeVar

from beanie import Document, PydanticObjectId
from bson.errors import InvalidId
from pydantic import TypeAdapter, ValidationError

from restfly.data.ports.outbound import DocumentStorePort, Resource

T = TypeVar("T", bound=Document)

# Beanie bookkeeping that never leaves the store.
_INTERNAL_FIELDS = frozenset({"revision_id"})


class BeanieDocumentStore(Generic[T]):
    """Adapt a Beanie :class:`~beanie.Document` model to :class:`DocumentStorePort`.

    Args:
        model: The Beanie document class.
        id_field: Name under which the ``_id`` is exposed (``"id"`` by default).
        hidden_fields: Model fields never exposed by the projector.
        relations: Reference field -> store holding the referenced resources.
    """

    def __init__(
        self,
        model: type[T],
        *,
        id_field: str = "id",
        hidden_fields: Iterable[str] = (),
        relations: Mapping[str, DocumentStorePort] | None = None,
    ) -> None:
        self._model = model
        self._id_field = id_field
        self._hidden = frozenset(hidden_fields) | _INTERNAL_FIELDS
        self._relations: dict[str, DocumentStorePort] = dict(relations or {})
        self._adapters: dict[str, TypeAdapter[Any]] = {}

    @property
    def name(self) -> str:
        settings = getattr(self._model, "Settings", None)
        return getattr(settings, "name", None) or self._model.__name__

    @property
    def model(self) -> type[T]:
        return self._model

    def relate(self, field: str, store: DocumentStorePort) -> BeanieDocumentStore[T]:
        """Register *store* as the target of reference *field*; returns ``self``."""
        self._relations[field] = store
        return self

    def hidden_fields(self) -> frozenset[str]:
        return self._hidden

    def relation(self, field: str) -> DocumentStorePort | None:
        return self._relations.get(field)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_many(
        self,
        predicate: Mapping[str, Any],
        sort: list[tuple[str, int]],
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Resource]:
        # MongoDB treats limit(0) as "no limit".
        if limit == 0:
            return []

        query = self._model.find(self._translate(predicate))
        sort_spec = [(self._field_name(field), direction) for field, direction in sort]
        if sort_spec:
            query = query.sort(sort_spec)
        if offset:
            query = query.skip(offset)
        if limit is not None:
            query = query.limit(limit)

        docs = await query.to_list()
        return [self._to_resource(doc) for doc in docs]

    async def find_one(self, identifier: str) -> Resource | None:
        doc = await self._get(identifier)
        return self._to_resource(doc) if doc is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, body: Mapping[str, Any]) -> Resource:
        doc = self._model.model_validate(self._strip_id(body))
        await doc.insert()
        return self._to_resource(doc)

    async def update(
        self, identifier: str, body: Mapping[str, Any], *, replace: bool = False
    ) -> Resource | None:
        doc = await self._get(identifier)
        if doc is None:
            return None

        changes = self._strip_id(body)
        if not replace:
            changes = {**doc.model_dump(exclude={"id", *_INTERNAL_FIELDS}), **changes}
        updated = self._model.model_validate(changes)
        updated.id = doc.id
        await updated.replace()
        return self._to_resource(updated)

    async def delete(self, identifier: str) -> Resource | None:
        doc = await self._get(identifier)
        if doc is None:
            return None
        snapshot = self._to_resource(doc)
        await doc.delete()
        return snapshot

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get(self, identifier: str) -> T | None:
        try:
            oid = PydanticObjectId(identifier)
        except (InvalidId, TypeError):
            # Not an ObjectId, so nothing can match it.
            return None
        return await self._model.get(oid)

    def _strip_id(self, body: Mapping[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in body.items() if k not in (self._id_field, "id", "_id")}

    def _field_name(self, field: str) -> str:
        return "_id" if field == self._id_field else field

    def _to_resource(self, doc: T) -> Resource:
        data = doc.model_dump(mode="json")
        identifier = data.pop("id", None)
        data[self._id_field] = identifier
        return data

    def _translate(self, predicate: Mapping[str, Any]) -> dict[str, Any]:
        """Rename the identifier to ``_id`` and coerce string values to field types."""
        translated: dict[str, Any] = {}
        for key, condition in predicate.items():
            if key == "$and":
                translated[key] = [self._translate(sub) for sub in condition]
                continue
            field = self._field_name(key)
            if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
                translated[field] = {op: self._coerce(field, value) for op, value in condition.items()}
            else:
                translated[field] = self._coerce(field, condition)
        return translated

    def _coerce(self, field: str, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        if field == "_id":
            try:
                return PydanticObjectId(value)
            except (InvalidId, TypeError):
                return value

        info = self._model.model_fields.get(field)
        if info is None:
            return value
        adapter = self._adapters.get(field)
        if adapter is None:
            adapter = TypeAdapter(info.annotation)
            self._adapters[field] = adapter
        try:
            return adapter.validate_python(value)
        except ValidationError:
            return value
