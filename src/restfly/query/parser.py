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
"""Query string parser — turns raw request parameters into a :class:`QuerySpec`.

Grammar
-------
**Reserved keys:** ``columns``, ``populate``, ``sort``, ``limit``, ``offset``

**List-valued keys** (``columns``, ``populate``, ``sort``) accept comma or
whitespace separated tokens, repeated keys, or both::

    ?columns=name,age&columns=email

**Sort tokens:** ``age`` = ascending, ``-age`` = descending

**Pagination:** ``limit`` / ``offset`` are non-negative integers. Anything
else (``abc``, ``-3``, ``1.5``) is treated as if the key were absent.

**Filters:** every other key is an equality filter. A value starting with
``!`` negates it::

    ?color=!blue          -> color != "blue"
    ?color=red&size=L     -> color == "red" AND size == "L"

The parser is total: it never raises, whatever the input.

Example::

    parser = QueryParamParser()
    spec = parser.parse({"color": "!blue", "sort": "-age", "limit": "10"})
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from typing import Any

import structlog

from restfly.query.spec import (
    RESERVED_KEYS,
    FilterClause,
    ProjectionSpec,
    QuerySpec,
    RelationSpec,
    SortClause,
)

logger = structlog.get_logger("restfly.query")

_TOKEN_SPLIT_RE = re.compile(r"[,\s]+")
_NEGATION_PREFIX = "!"
_DESCENDING_PREFIX = "-"

# limit/offset must fit a signed 64-bit BSON integer.
_MAX_COUNT = 2**63 - 1
_MAX_COUNT_DIGITS = len(str(_MAX_COUNT))


class QueryParamParser:
    """Parse raw query parameters into a :class:`QuerySpec`.

    Args:
        max_limit: Optional cap on ``limit``. Larger limits are clamped and a
            missing limit becomes ``max_limit``.
    """

    def __init__(self, max_limit: int | None = None) -> None:
        self._max_limit = max_limit

    def parse(self, params: Mapping[str, Any] | None) -> QuerySpec:
        """Parse every supported key of *params*."""
        grouped = self._group(params)

        filters: list[FilterClause] = []
        for key, values in grouped.items():
            if key in RESERVED_KEYS:
                continue
            filters.extend(self._parse_filter(key, value) for value in values)

        spec = QuerySpec(
            filters=tuple(filters),
            sort=self._parse_sort(grouped.get("sort", [])),
            projection=self._parse_projection(grouped.get("columns", [])),
            populate=self._parse_populate(grouped.get("populate", [])),
            limit=self._apply_max_limit(self._parse_count(grouped.get("limit", []))),
            offset=self._parse_count(grouped.get("offset", [])),
        )
        logger.debug(
            "query.parsed",
            filters=len(spec.filters),
            sort=len(spec.sort),
            limit=spec.limit,
            offset=spec.offset,
        )
        return spec

    def parse_selection(self, params: Mapping[str, Any] | None) -> QuerySpec:
        """Parse only ``columns`` and ``populate`` (single-resource reads and writes)."""
        grouped = self._group(params)
        return QuerySpec(
            projection=self._parse_projection(grouped.get("columns", [])),
            populate=self._parse_populate(grouped.get("populate", [])),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _iter_items(params: Mapping[str, Any]) -> Iterator[tuple[str, Any]]:
        # Multi-dicts (Starlette QueryParams, werkzeug MultiDict) keep repeats here.
        multi_items = getattr(params, "multi_items", None)
        if callable(multi_items):
            yield from multi_items()
            return
        for key, value in params.items():
            if isinstance(value, (list, tuple)):
                for item in value:
                    yield key, item
            else:
                yield key, value

    @classmethod
    def _group(cls, params: Mapping[str, Any] | None) -> dict[str, list[str]]:
        """Group values by key in first-seen order, dropping ``None`` values."""
        grouped: dict[str, list[str]] = {}
        if not params:
            return grouped
        for key, value in cls._iter_items(params):
            if value is None:
                continue
            grouped.setdefault(str(key), []).append(value if isinstance(value, str) else str(value))
        return grouped

    @staticmethod
    def _tokens(values: list[str]) -> list[str]:
        tokens: list[str] = []
        for value in values:
            tokens.extend(t for t in _TOKEN_SPLIT_RE.split(value) if t)
        return tokens

    @staticmethod
    def _parse_filter(key: str, value: str) -> FilterClause:
        if value.startswith(_NEGATION_PREFIX):
            return FilterClause(field=key, value=value[len(_NEGATION_PREFIX) :], negate=True)
        return FilterClause(field=key, value=value)

    @classmethod
    def _parse_sort(cls, values: list[str]) -> tuple[SortClause, ...]:
        clauses: list[SortClause] = []
        for token in cls._tokens(values):
            if token.startswith(_DESCENDING_PREFIX):
                field = token[len(_DESCENDING_PREFIX) :]
                if field:
                    clauses.append(SortClause.desc(field))
            else:
                clauses.append(SortClause.asc(token))
        return tuple(clauses)

    @classmethod
    def _parse_projection(cls, values: list[str]) -> ProjectionSpec:
        return ProjectionSpec.include(*cls._tokens(values))

    @classmethod
    def _parse_populate(cls, values: list[str]) -> tuple[RelationSpec, ...]:
        return tuple(RelationSpec(field=f) for f in dict.fromkeys(cls._tokens(values)))

    @staticmethod
    def _parse_count(values: list[str]) -> int | None:
        """Parse the last value as a non-negative integer, ``None`` if invalid."""
        if not values:
            return None
        raw = values[-1].strip()
        # isdecimal() rejects signs, so negatives fall out here too.
        if not raw.isdecimal() or len(raw.lstrip("0")) > _MAX_COUNT_DIGITS:
            return None
        count = int(raw)
        return count if count <= _MAX_COUNT else None

    def _apply_max_limit(self, limit: int | None) -> int | None:
        if self._max_limit is None:
            return limit
        if limit is None:
            return self._max_limit
        return min(limit, self._max_limit)
