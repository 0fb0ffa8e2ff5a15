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
"""Result projector — field selection and relation population after a fetch."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, overload

import structlog

from restfly.data.ports.outbound import DocumentStorePort, Resource
from restfly.query.spec import ProjectionSpec, RelationSpec

logger = structlog.get_logger("restfly.data")


class ResultProjector:
    """Apply a :class:`ProjectionSpec` and populate relations.

    Fields hidden by the store are always dropped. In inclusion mode only
    the named fields and the identifier survive. Population is single
    level: a populated resource is shaped by its own store's default
    visibility and its references are left as they are.

    Related resources are fetched one identifier at a time, sequentially,
    with a per-call memo so a reference shared by several resources is
    fetched once.
    """

    def __init__(self, id_field: str = "id") -> None:
        self._id_field = id_field

    @overload
    async def project(
        self,
        result: None,
        store: DocumentStorePort,
        projection: ProjectionSpec = ...,
        populate: Sequence[RelationSpec] = ...,
    ) -> None: ...

    @overload
    async def project(
        self,
        result: Resource,
        store: DocumentStorePort,
        projection: ProjectionSpec = ...,
        populate: Sequence[RelationSpec] = ...,
    ) -> Resource: ...

    @overload
    async def project(
        self,
        result: list[Resource],
        store: DocumentStorePort,
        projection: ProjectionSpec = ...,
        populate: Sequence[RelationSpec] = ...,
    ) -> list[Resource]: ...

    async def project(
        self,
        result: Resource | list[Resource] | None,
        store: DocumentStorePort,
        projection: ProjectionSpec = ProjectionSpec(),
        populate: Sequence[RelationSpec] = (),
    ) -> Resource | list[Resource] | None:
        """Project one resource, a list of resources, or pass ``None`` through."""
        if result is None:
            return None

        memo: dict[tuple[str, str], Resource | None] = {}
        if isinstance(result, list):
            return [await self._project_one(r, store, projection, populate, memo) for r in result]
        return await self._project_one(result, store, projection, populate, memo)

    def select(self, resource: Resource, hidden: frozenset[str], projection: ProjectionSpec) -> Resource:
        """Return a copy of *resource* restricted to the projected, visible fields."""
        if projection.is_default:
            return {k: v for k, v in resource.items() if k not in hidden}
        wanted = set(projection.fields)
        wanted.add(self._id_field)
        return {k: v for k, v in resource.items() if k in wanted and k not in hidden}

    async def _project_one(
        self,
        resource: Resource,
        store: DocumentStorePort,
        projection: ProjectionSpec,
        populate: Sequence[RelationSpec],
        memo: dict[tuple[str, str], Resource | None],
    ) -> Resource:
        projected = self.select(resource, store.hidden_fields(), projection)

        for relation in populate:
            if relation.field not in projected:
                continue
            related_store = store.relation(relation.field)
            if related_store is None:
                logger.debug("relation.unknown", collection=store.name, field=relation.field)
                continue
            projected[relation.field] = await self._populate(projected[relation.field], related_store, memo)

        return projected

    async def _populate(
        self,
        reference: Any,
        related_store: DocumentStorePort,
        memo: dict[tuple[str, str], Resource | None],
    ) -> Any:
        if reference is None:
            return None
        if isinstance(reference, (list, tuple)):
            fetched = [await self._fetch(ref, related_store, memo) for ref in reference if ref is not None]
            return [r for r in fetched if r is not None]
        return await self._fetch(reference, related_store, memo)

    async def _fetch(
        self,
        reference: Any,
        related_store: DocumentStorePort,
        memo: dict[tuple[str, str], Resource | None],
    ) -> Resource | None:
        if isinstance(reference, dict):
            # Already embedded by the store.
            return reference
        key = (related_store.name, str(reference))
        if key not in memo:
            found = await related_store.find_one(str(reference))
            memo[key] = (
                self.select(found, related_store.hidden_fields(), ProjectionSpec.all())
                if found is not None
                else None
            )
        cached = memo[key]
        return dict(cached) if cached is not None else None
