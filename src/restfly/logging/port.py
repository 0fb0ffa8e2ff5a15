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
"""Logging port — what :func:`~restfly.logging.configure_logging` drives.

:class:`~restfly.logging.structlog_adapter.StructlogAdapter` is the
implementation used by default. Applications that route structlog events
elsewhere pass their own adapter instead::

    configure_logging(config, adapter=MyAdapter())
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from restfly.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    """Configures rendering and levels for the ``restfly.*`` loggers."""

    def configure(self, config: Config) -> None:
        """Apply the ``restfly.logging`` section of *config*."""
        ...

    def get_logger(self, name: str) -> Any:
        """Return a bound logger emitting event-style messages under *name*."""
        ...

    def set_level(self, name: str, level: str) -> None:
        """Change the level of one logger (e.g. ``restfly.crud``)."""
        ...
