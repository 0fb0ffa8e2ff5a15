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
"""StructlogAdapter — LoggingPort implementation backed by structlog.

Library modules log through ``structlog.get_logger("restfly.<area>")``;
this adapter decides how those events are rendered.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from restfly.core.config import Config
from restfly.logging.port import LoggingPort


class StructlogAdapter(LoggingPort):
    """Configure structlog from ``restfly.logging.*``.

    Recognised keys:

    * ``restfly.logging.format``: ``console`` (default) or ``json``.
    * ``restfly.logging.level.root``: root level, ``INFO`` by default.
    * ``restfly.logging.level.<logger>``: per-logger overrides, e.g.
      ``restfly.crud: DEBUG`` to trace every CRUD call.
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        level_section = dict(config.get_section("restfly.logging.level"))
        self._root_level = str(level_section.pop("root", "INFO")).upper()
        self._module_levels = {k: str(v).upper() for k, v in level_section.items()}
        self._format = str(config.get("restfly.logging.format", "console")).lower()

        self._setup_structlog()
        for module, level in self._module_levels.items():
            self.set_level(module, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the level of the stdlib logger structlog writes through."""
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _setup_structlog(self) -> None:
        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]

        if self._format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=getattr(logging, self._root_level, logging.INFO),
            force=True,
        )


def configure_logging(config: Config, adapter: LoggingPort | None = None) -> LoggingPort:
    """Configure logging for a restfly application and return the adapter.

    A :class:`StructlogAdapter` is used unless *adapter* is given.
    """
    port: LoggingPort = adapter if adapter is not None else StructlogAdapter()
    port.configure(config)
    return port
