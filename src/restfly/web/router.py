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
"""FastAPI transport for :class:`~restfly.crud.service.CrudOperations`.

The router only moves data across the HTTP boundary: query parameters
and the JSON body go in untouched, a resolved value becomes a 200 (201 for
creation), ``None`` becomes a 404, and exceptions are left to the handler
installed by :func:`~restfly.web.errors.register_exception_handlers`.

Example::

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(crud_router("widgets", create_crud(widgets)))
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter
from fastapi.encoders import jsonable_encoder
from starlette.requests import Request
from starlette.responses import JSONResponse

from restfly.crud.service import CrudOperations
from restfly.kernel.exceptions import UsageException
from restfly.web.errors import error_body


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise UsageException("Request body is not valid JSON", code="INVALID_JSON") from exc


def _respond(request: Request, result: Any, status_code: int = 200) -> JSONResponse:
    if result is None:
        return JSONResponse(
            error_body(request, 404, "Resource not found", "NOT_FOUND"),
            status_code=404,
        )
    return JSONResponse(jsonable_encoder(result), status_code=status_code)


def crud_router(name: str, operations: CrudOperations, *, tags: list[str] | None = None) -> APIRouter:
    """Build an :class:`APIRouter` exposing *operations* under ``/{name}``."""
    router = APIRouter(prefix=f"/{name}", tags=tags or [name])

    async def list_resources(request: Request) -> JSONResponse:
        return _respond(request, await operations.get(None, request.query_params))

    async def get_resource(identifier: str, request: Request) -> JSONResponse:
        return _respond(request, await operations.get(identifier, request.query_params))

    async def create_resource(request: Request) -> JSONResponse:
        body = await _read_body(request)
        return _respond(request, await operations.post(body, request.query_params), status_code=201)

    async def replace_resource(identifier: str, request: Request) -> JSONResponse:
        body = await _read_body(request)
        return _respond(request, await operations.put(identifier, body, request.query_params))

    async def patch_resource(identifier: str, request: Request) -> JSONResponse:
        body = await _read_body(request)
        return _respond(request, await operations.patch(identifier, body, request.query_params))

    async def delete_resource(identifier: str, request: Request) -> JSONResponse:
        return _respond(request, await operations.delete(identifier, request.query_params))

    router.add_api_route("", list_resources, methods=["GET"], summary=f"List {name}")
    router.add_api_route("/{identifier}", get_resource, methods=["GET"], summary=f"Get one {name} resource")
    router.add_api_route("", create_resource, methods=["POST"], status_code=201, summary=f"Create {name}")
    router.add_api_route("/{identifier}", replace_resource, methods=["PUT"], summary=f"Replace {name}")
    router.add_api_route("/{identifier}", patch_resource, methods=["PATCH"], summary=f"Update {name}")
    router.add_api_route("/{identifier}", delete_resource, methods=["DELETE"], summary=f"Delete {name}")
    return router
