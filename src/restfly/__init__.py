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
"""restfly — HTTP query parameters to document store CRUD operations.

restfly parses raw query parameters (filters, ``sort``, ``limit``,
``offset``, ``columns``, ``populate``) into a normalized
:class:`~restfly.query.spec.QuerySpec`, compiles it into MongoDB-style
filter documents, and exposes framework-independent CRUD operations over a
:class:`~restfly.data.ports.outbound.DocumentStorePort`.

Adapters:
    - **In-memory** (``restfly.data.adapters.memory``): tests and single-process apps.
    - **MongoDB** (``restfly.data.adapters.mongodb``): Beanie ODM.
    - **FastAPI** (``restfly.web``): HTTP routes and error responses.
"""

from restfly.core.config import Config, config_properties
from restfly.core.properties import QueryProperties
from restfly.crud.service import CrudOperations, CrudService, create_crud
from restfly.data.adapters.memory import InMemoryDocumentStore
from restfly.data.compiler import FilterCompiler
from restfly.data.ports.outbound import DocumentStorePort, Resource
from restfly.data.projector import ResultProjector
from restfly.kernel.exceptions import (
    ConflictException,
    RestflyException,
    StoreException,
    UsageException,
)
from restfly.query.parser import QueryParamParser
from restfly.query.spec import (
    Direction,
    FilterClause,
    ProjectionSpec,
    QuerySpec,
    RelationSpec,
    SortClause,
)

__version__ = "0.1.0"

__all__ = [
    # Query
    "Direction",
    "FilterClause",
    "ProjectionSpec",
    "QueryParamParser",
    "QuerySpec",
    "RelationSpec",
    "SortClause",
    # Data
    "DocumentStorePort",
    "FilterCompiler",
    "InMemoryDocumentStore",
    "Resource",
    "ResultProjector",
    # CRUD
    "CrudOperations",
    "CrudService",
    "create_crud",
    # Config
    "Config",
    "QueryProperties",
    "config_properties",
    # Errors
    "ConflictException",
    "RestflyException",
    "StoreException",
    "UsageException",
]
