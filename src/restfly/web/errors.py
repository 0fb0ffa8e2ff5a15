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
"""Global exception handler — RFC 7807 inspired error responses."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from restfly.kernel.exceptions import (
    BusinessException,
    ConflictException,
    InfrastructureException,
    RestflyException,
    StoreException,
    UsageException,
)

logger = structlog.get_logger("restfly.web")

# Exception -> HTTP status code mapping (most specific first)
_STATUS_MAP: dict[type, int] = {
    UsageException: 400,
    ConflictException: 409,
    StoreException: 502,
    ValidationError: 422,
    # Application-defined subclasses of the base categories
    BusinessException: 400,
    InfrastructureException: 502,
}


def get_status_code(exc: Exception) -> int:
    """Map an exception to its HTTP status code (500 when unmapped)."""
    for exc_type, status in _STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return status
    return 500


def error_body(request: Request, status: int, message: str, code: str, context: dict | None = None) -> dict[str, Any]:
    """Build the JSON error envelope shared by every error response."""
    body: dict[str, Any] = {
        "error": {
            "message": message,
            "code": code,
            "transaction_id": str(uuid.uuid4()),
            "timestamp": datetime.now(UTC).isoformat(),
            "status": status,
            "path": request.url.path,
        }
    }
    if context:
        body["error"]["context"] = context
    return body


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all exceptions with structured JSON responses."""
    status = get_status_code(exc)

    if isinstance(exc, RestflyException):
        body = error_body(request, status, str(exc), exc.code or type(exc).__name__, exc.context)
    elif isinstance(exc, ValidationError):
        body = error_body(
            request,
            status,
            "Resource failed schema validation",
            "VALIDATION_ERROR",
            {"errors": exc.errors(include_url=False, include_context=False)},
        )
    else:
        logger.exception("request.failed", path=request.url.path)
        body = error_body(request, status, "Internal server error", "INTERNAL_ERROR")

    return JSONResponse(body, status_code=status)


def register_exception_handlers(app: Any) -> None:
    """Register the global exception handler on a FastAPI/Starlette application.

    Known types are registered individually so they are answered by the
    exception middleware; the ``Exception`` entry covers everything else.
    """
    for exc_type in (RestflyException, ValidationError, Exception):
        app.add_exception_handler(exc_type, global_exception_handler)
