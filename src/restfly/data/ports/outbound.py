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
"""Outbound port: the document store the CRUD engine runs against."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

# A resource as seen by the engine: field name -> value, identifier included.
Resource = dict[str, Any]


@runtime_checkable
class DocumentStorePort(Protocol):
    """Document collection contract.

    ``predicate`` is a MongoDB-style filter document built by
    :class:`~restfly.data.compiler.FilterCompiler`; its values are raw
    strings and coercing them to field types is up to the store.
    ``sort`` is a pymongo sort specification.

    "Not found" is reported by returning ``None``, never by raising. Every
    other failure is raised and reaches the caller unchanged.
    """

    @property
    def name(self) -> str: ...

    async def find_many(
        self,
        predicate: Mapping[str, Any],
        sort: list[tuple[str, int]],
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Resource]: ...

    async def find_one(self, identifier: str) -> Resource | None: ...

    async def create(self, body: Mapping[str, Any]) -> Resource: ...

    async def update(
        self, identifier: str, body: Mapping[str, Any], *, replace: bool = False
    ) -> Resource | None: ...

    async def delete(self, identifier: str) -> Resource | None: ...

    def hidden_fields(self) -> frozenset[str]: ...

    def relation(self, field: str) -> DocumentStorePort | None: ...
