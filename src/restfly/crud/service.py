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
"""CRUD orchestrator — parse, fetch or mutate, project.

Every operation is a coroutine resolving to the projected resource(s).
"Not found" resolves to ``None``; malformed calls raise
:class:`~restfly.kernel.exceptions.UsageException`; store failures
propagate unchanged.

Example::

    widgets = InMemoryDocumentStore("widgets")
    crud = create_crud(widgets)

    created = await crud.post({"color": "blue"})
    blues = await crud.get(None, {"color": "blue", "sort": "-size", "limit": "10"})
    gone = await crud.delete(created["id"])
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from restfly.core.config import Config
from restfly.core.properties import QueryProperties
from restfly.data.compiler import FilterCompiler
from restfly.data.ports.outbound import DocumentStorePort, Resource
from restfly.data.projector import ResultProjector
from restfly.kernel.exceptions import UsageException
from restfly.query.parser import QueryParamParser

logger = structlog.get_logger("restfly.crud")

Params = Mapping[str, Any] | None


class CrudService:
    """The four CRUD actions over one store and identifier field.

    Holds only its collaborators; nothing is cached or retained between
    calls, so one instance can serve any number of concurrent requests.
    """

    def __init__(
        self,
        store: DocumentStorePort,
        id_field: str = "id",
        *,
        parser: QueryParamParser | None = None,
        compiler: FilterCompiler | None = None,
        projector: ResultProjector | None = None,
    ) -> None:
        self._store = store
        self._id_field = id_field
        self._parser = parser or QueryParamParser()
        self._compiler = compiler or FilterCompiler()
        self._projector = projector or ResultProjector(id_field)

    @property
    def store(self) -> DocumentStorePort:
        return self._store

    @property
    def id_field(self) -> str:
        return self._id_field

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, identifier: str | None = None, params: Params = None) -> Resource | list[Resource] | None:
        """List resources (no identifier) or fetch one by identifier.

        Filters, ``sort``, ``limit`` and ``offset`` only apply to the list
        form; with an identifier they are ignored.
        """
        if identifier is None:
            return await self._list(params)

        spec = self._parser.parse_selection(params)
        logger.debug("crud.get", collection=self._store.name, id=identifier)
        found = await self._store.find_one(str(identifier))
        return await self._projector.project(found, self._store, spec.projection, spec.populate)

    async def _list(self, params: Params) -> list[Resource]:
        spec = self._parser.parse(params)
        predicate = self._compiler.compile(spec.filters)
        sort = self._compiler.compile_sort(spec.sort)
        logger.debug(
            "crud.list",
            collection=self._store.name,
            predicate=predicate,
            sort=sort,
            limit=spec.limit,
            offset=spec.offset,
        )
        resources = await self._store.find_many(predicate, sort, spec.limit, spec.offset)
        return await self._projector.project(resources, self._store, spec.projection, spec.populate)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def post(self, body: Mapping[str, Any] | None, params: Params = None) -> Resource:
        """Create a resource from *body*; an empty or missing body is a usage error."""
        if not isinstance(body, Mapping) or not body:
            raise UsageException(
                "A non-empty body is required to create a resource",
                code="MISSING_BODY",
                context={"collection": self._store.name},
            )
        spec = self._parser.parse_selection(params)
        created = await self._store.create(dict(body))
        logger.info("crud.created", collection=self._store.name, id=created.get(self._id_field))
        return await self._projector.project(created, self._store, spec.projection, spec.populate)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def put(
        self, identifier: str | None, body: Mapping[str, Any] | None, params: Params = None
    ) -> Resource | None:
        """Replace the resource's fields with *body*; ``None`` if it does not exist."""
        return await self._update("put", identifier, body, params, replace=True)

    async def patch(
        self, identifier: str | None, body: Mapping[str, Any] | None, params: Params = None
    ) -> Resource | None:
        """Merge *body* into the resource; ``None`` if it does not exist."""
        return await self._update("patch", identifier, body, params, replace=False)

    async def _update(
        self,
        operation: str,
        identifier: str | None,
        body: Mapping[str, Any] | None,
        params: Params,
        *,
        replace: bool,
    ) -> Resource | None:
        self._require_identifier(operation, identifier)
        if not isinstance(body, Mapping):
            raise UsageException(
                f"A body is required to {operation} a resource",
                code="MISSING_BODY",
                context={"collection": self._store.name, "id": identifier},
            )
        spec = self._parser.parse_selection(params)
        changes = {k: v for k, v in body.items() if k != self._id_field}
        updated = await self._store.update(str(identifier), changes, replace=replace)
        if updated is None:
            logger.debug(f"crud.{operation}.absent", collection=self._store.name, id=identifier)
            return None
        logger.info(f"crud.{operation}", collection=self._store.name, id=identifier)
        return await self._projector.project(updated, self._store, spec.projection, spec.populate)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, identifier: str | None, params: Params = None) -> Resource | None:
        """Remove the resource and resolve to its pre-deletion snapshot."""
        self._require_identifier("delete", identifier)
        spec = self._parser.parse_selection(params)
        removed = await self._store.delete(str(identifier))
        if removed is None:
            logger.debug("crud.delete.absent", collection=self._store.name, id=identifier)
            return None
        logger.info("crud.deleted", collection=self._store.name, id=identifier)
        return await self._projector.project(removed, self._store, spec.projection, spec.populate)

    def _require_identifier(self, operation: str, identifier: str | None) -> None:
        if identifier is None or str(identifier) == "":
            raise UsageException(
                f"An identifier is required to {operation} a resource",
                code="MISSING_IDENTIFIER",
                context={"collection": self._store.name},
            )


@dataclass(frozen=True)
class CrudOperations:
    """The bound operation handles produced by :func:`create_crud`."""

    get: Callable[..., Awaitable[Resource | list[Resource] | None]]
    post: Callable[..., Awaitable[Resource]]
    put: Callable[..., Awaitable[Resource | None]]
    patch: Callable[..., Awaitable[Resource | None]]
    delete: Callable[..., Awaitable[Resource | None]]


def create_crud(
    store: DocumentStorePort,
    id_field: str | None = None,
    *,
    config: Config | None = None,
) -> CrudOperations:
    """Bind the CRUD operations to *store*.

    ``id_field`` defaults to ``restfly.query.id_field`` from *config*
    (``"id"`` without one); ``restfly.query.max_limit`` caps list reads.
    """
    properties = config.bind(QueryProperties) if config is not None else QueryProperties()
    service = CrudService(
        store,
        id_field or properties.id_field,
        parser=QueryParamParser(max_limit=properties.max_limit),
    )
    return CrudOperations(
        get=service.get,
        post=service.post,
        put=service.put,
        patch=service.patch,
        delete=service.delete,
    )
