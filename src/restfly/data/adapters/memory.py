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
"""In-memory document store for testing and single-process applications.

Filter values arrive as strings and are coerced against the type of the
value already stored in each document:

* ``bool``: ``true/1/yes`` and ``false/0/no`` (case-insensitive)
* ``int`` / ``float``: numeric parse
* ``None`` or missing: ``null`` or the empty string
* lists: matches when any element matches
* anything else: string comparison

A value that cannot be coerced never equals the stored value.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

import pymongo
import structlog

from restfly.data.ports.outbound import DocumentStorePort, Resource
from restfly.kernel.exceptions import ConflictException, StoreException

logger = structlog.get_logger("restfly.data.memory")

_TRUE = frozenset({"true", "1", "yes"})
_FALSE = frozenset({"false", "0", "no"})
_NULL = frozenset({"", "null"})


def _equals(stored: Any, expected: Any) -> bool:
    if not isinstance(expected, str) or isinstance(stored, str):
        return stored == expected
    if stored is None:
        return expected.strip().lower() in _NULL
    if isinstance(stored, bool):
        token = expected.strip().lower()
        return (stored and token in _TRUE) or (not stored and token in _FALSE)
    if isinstance(stored, int):
        # Exact integer parse first; float loses precision above 2**53.
        try:
            return stored == int(expected.strip())
        except ValueError:
            pass
    if isinstance(stored, (int, float)):
        try:
            return stored == float(expected)
        except ValueError:
            return False
    if isinstance(stored, (list, tuple)):
        return any(_equals(item, expected) for item in stored)
    return str(stored) == expected


def _is_operator_doc(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(k.startswith("$") for k in condition)


def _matches(document: Mapping[str, Any], predicate: Mapping[str, Any]) -> bool:
    """Evaluate a filter document (equality, ``$ne``, ``$and``) against *document*."""
    for key, condition in predicate.items():
        if key == "$and":
            if not all(_matches(document, sub) for sub in condition):
                return False
            continue
        if key.startswith("$"):
            raise StoreException(f"Unsupported filter operator: {key}", code="UNSUPPORTED_OPERATOR")

        value = document.get(key)
        if _is_operator_doc(condition):
            for op, operand in condition.items():
                if op != "$ne":
                    raise StoreException(f"Unsupported filter operator: {op}", code="UNSUPPORTED_OPERATOR")
                if _equals(value, operand):
                    return False
        elif not _equals(value, condition):
            return False
    return True


def _sort_key(value: Any) -> tuple[int, Any]:
    # Rank types so mixed-type fields still sort: null < numbers < strings < bools < others.
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (3, value)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (4, str(value))


class InMemoryDocumentStore:
    """Insertion-ordered document collection held in a dict.

    Args:
        name: Collection name, used in logs and relation memoization.
        id_field: Name of the identifier field.
        documents: Initial documents; each must carry ``id_field``.
        hidden_fields: Fields never exposed by the projector.
        relations: Reference field -> store holding the referenced resources.

    Documents are deep-copied on the way in and out, so callers never share
    state with the store.
    """

    def __init__(
        self,
        name: str = "resources",
        *,
        id_field: str = "id",
        documents: Iterable[Mapping[str, Any]] = (),
        hidden_fields: Iterable[str] = (),
        relations: Mapping[str, DocumentStorePort] | None = None,
    ) -> None:
        self._name = name
        self._id_field = id_field
        self._hidden = frozenset(hidden_fields)
        self._relations: dict[str, DocumentStorePort] = dict(relations or {})
        self._documents: dict[str, Resource] = {}
        for document in documents:
            if document.get(id_field) is None:
                raise ValueError(f"Seed document for '{name}' is missing '{id_field}'")
            self._documents[str(document[id_field])] = copy.deepcopy(dict(document))

    @property
    def name(self) -> str:
        return self._name

    def relate(self, field: str, store: DocumentStorePort) -> InMemoryDocumentStore:
        """Register *store* as the target of reference *field*; returns ``self``."""
        self._relations[field] = store
        return self

    def hidden_fields(self) -> frozenset[str]:
        return self._hidden

    def relation(self, field: str) -> DocumentStorePort | None:
        return self._relations.get(field)

    def __len__(self) -> int:
        return len(self._documents)

    async def find_many(
        self,
        predicate: Mapping[str, Any],
        sort: list[tuple[str, int]],
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Resource]:
        results = [doc for doc in self._documents.values() if _matches(doc, predicate)]

        # Stable sorts applied last-key-first give multi-key ordering.
        for field, direction in reversed(sort):
            results.sort(key=lambda doc, _f=field: _sort_key(doc.get(_f)), reverse=direction == pymongo.DESCENDING)

        start = offset or 0
        end = None if limit is None else start + limit
        return [copy.deepcopy(doc) for doc in results[start:end]]

    async def find_one(self, identifier: str) -> Resource | None:
        document = self._documents.get(str(identifier))
        return copy.deepcopy(document) if document is not None else None

    async def create(self, body: Mapping[str, Any]) -> Resource:
        document = copy.deepcopy(dict(body))
        if document.get(self._id_field) is None:
            document[self._id_field] = str(uuid.uuid4())
        key = str(document[self._id_field])
        if key in self._documents:
            raise ConflictException(
                f"{self._name} with {self._id_field}={key} already exists",
                code="DUPLICATE_ID",
                context={"collection": self._name, "id": key},
            )
        self._documents[key] = document
        logger.debug("store.created", collection=self._name, id=key)
        return copy.deepcopy(document)

    async def update(
        self, identifier: str, body: Mapping[str, Any], *, replace: bool = False
    ) -> Resource | None:
        key = str(identifier)
        existing = self._documents.get(key)
        if existing is None:
            return None

        changes = {k: copy.deepcopy(v) for k, v in body.items() if k != self._id_field}
        if replace:
            document = {self._id_field: existing[self._id_field], **changes}
        else:
            document = {**existing, **changes}
        self._documents[key] = document
        return copy.deepcopy(document)

    async def delete(self, identifier: str) -> Resource | None:
        document = self._documents.pop(str(identifier), None)
        if document is not None:
            logger.debug("store.deleted", collection=self._name, id=str(identifier))
        return document
