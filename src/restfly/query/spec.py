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
"""Normalized query description produced from raw request parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Query keys that configure the query itself and never become filters.
RESERVED_KEYS: frozenset[str] = frozenset({"columns", "populate", "limit", "offset", "sort"})


class Direction(Enum):
    """Sort direction of a single sort clause."""

    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class FilterClause:
    """Equality (or negated equality) test on one field.

    ``value`` is always the raw string with any leading ``!`` removed.
    """

    field: str
    value: str
    negate: bool = False


@dataclass(frozen=True)
class SortClause:
    """A single sort order: field name + direction."""

    field: str
    direction: Direction = Direction.ASCENDING

    @staticmethod
    def asc(field: str) -> SortClause:
        return SortClause(field=field, direction=Direction.ASCENDING)

    @staticmethod
    def desc(field: str) -> SortClause:
        return SortClause(field=field, direction=Direction.DESCENDING)


@dataclass(frozen=True)
class ProjectionSpec:
    """Which fields a returned resource keeps.

    An empty ``fields`` tuple is the default mode (every visible field);
    otherwise only the named fields are included. Exclusion lists are not
    supported, so exactly one mode is ever active.
    """

    fields: tuple[str, ...] = ()

    @staticmethod
    def all() -> ProjectionSpec:
        return ProjectionSpec()

    @staticmethod
    def include(*fields: str) -> ProjectionSpec:
        return ProjectionSpec(fields=tuple(dict.fromkeys(f for f in fields if f)))

    @property
    def is_default(self) -> bool:
        return not self.fields


@dataclass(frozen=True)
class RelationSpec:
    """A reference field whose value is replaced by the referenced resource."""

    field: str


@dataclass(frozen=True)
class QuerySpec:
    """Result of parsing one request's query parameters.

    Attributes:
        filters: AND-combined clauses, in declared order.
        sort: Sort clauses; each breaks ties left by the previous one.
        projection: Field inclusion for returned resources.
        populate: Relations to expand.
        limit: Maximum number of resources, ``None`` for no limit.
        offset: Number of resources to skip, ``None`` for none.
    """

    filters: tuple[FilterClause, ...] = ()
    sort: tuple[SortClause, ...] = ()
    projection: ProjectionSpec = field(default_factory=ProjectionSpec)
    populate: tuple[RelationSpec, ...] = ()
    limit: int | None = None
    offset: int | None = None

    @property
    def is_paged(self) -> bool:
        return self.limit is not None or self.offset is not None
