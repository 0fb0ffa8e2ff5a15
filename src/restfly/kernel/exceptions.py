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
"""Exception hierarchy shared by the query engine, stores and transports.

"Not found" has no exception here: identifier-based
operations resolve to ``None`` instead of raising.
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class RestflyException(Exception):
    """Base exception for all restfly errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "MISSING_BODY").
        context: Arbitrary key-value pairs describing the failing call.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(RestflyException):
    """Errors caused by the caller rather than by a collaborator."""


class UsageException(BusinessException):
    """Malformed invocation of a CRUD operation (e.g. missing body on create)."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(RestflyException):
    """Failures raised by a collaborator such as the document store."""


class StoreException(InfrastructureException):
    """A store fetch or mutation failed."""


class ConflictException(StoreException):
    """The store rejected a mutation because it conflicts with existing state."""
