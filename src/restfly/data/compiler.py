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
"""Filter compiler — turns parsed filter and sort clauses into store operations.

The native predicate is a MongoDB filter document, understood directly by
the Beanie adapter and evaluated by the in-memory adapter::

    compile([FilterClause("color", "blue", negate=True)])
        -> {"color": {"$ne": "blue"}}

    compile([FilterClause("color", "red"), FilterClause("size", "L")])
        -> {"$and": [{"color": "red"}, {"size": "L"}]}
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pymongo

from restfly.kernel.exceptions import UsageException
from restfly.query.spec import Direction, FilterClause, SortClause

_OPERATOR_PREFIX = "$"


class FilterCompiler:
    """Compile :class:`FilterClause` / :class:`SortClause` sequences.

    Only AND-combined equality and inequality are produced. Values are
    passed through as strings. Field names starting with ``$`` would be
    read as operators by the store and are rejected with
    :class:`UsageException`.
    """

    def compile(self, filters: Sequence[FilterClause]) -> dict[str, Any]:
        """Build a complete filter document; ``{}`` matches everything."""
        clauses = [self._build_clause(clause) for clause in filters]
        if not clauses:
            return {}
        if len(clauses) == 1:
            return clauses[0]
        # A list keeps declared order and repeated fields, which a merged dict would lose.
        return {"$and": clauses}

    def compile_sort(self, sort: Sequence[SortClause]) -> list[tuple[str, int]]:
        """Build a pymongo sort specification."""
        return [
            (
                self._check_field(clause.field),
                pymongo.DESCENDING if clause.direction is Direction.DESCENDING else pymongo.ASCENDING,
            )
            for clause in sort
        ]

    @staticmethod
    def _check_field(field: str) -> str:
        if field.startswith(_OPERATOR_PREFIX):
            raise UsageException(
                f"Invalid field name: {field}",
                code="INVALID_FIELD",
                context={"field": field},
            )
        return field

    @classmethod
    def _build_clause(cls, clause: FilterClause) -> dict[str, Any]:
        field = cls._check_field(clause.field)
        if clause.negate:
            return {field: {"$ne": clause.value}}
        return {field: clause.value}
