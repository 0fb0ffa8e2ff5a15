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
"""Hierarchical configuration loaded from YAML/TOML files and env vars.

Keys are addressed with dot notation (``restfly.query.max_limit``). Any key
can be overridden through an environment variable built from the key
without its ``restfly.`` prefix: ``RESTFLY_QUERY_MAX_LIMIT``.

Example::

    config = Config.from_file("restfly.yaml", active_profiles=["dev"])
    props = config.bind(QueryProperties)
"""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import tomllib
import types
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, Union, get_args, get_origin, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_CONFIG_PROPERTIES_ATTR = "__restfly_config_prefix__"
_ENV_PREFIX = "RESTFLY_"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass as bindable to a configuration prefix.

    Usage::

        @config_properties(prefix="restfly.query")
        @dataclass
        class QueryProperties:
            max_limit: int | None = None
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (``RESTFLY_SECTION_KEY``)
    2. Profile overlay files (``restfly-{profile}.yaml``)
    3. The main configuration file or dict
    4. Packaged defaults (``restfly-defaults.yaml``)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Config file paths that were loaded, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load configuration from a YAML or TOML file.

        Profile overlays are looked up next to *path* as
        ``{stem}-{profile}{suffix}``. A missing *path* is not an error; the
        defaults (if requested) are still loaded.
        """
        path = Path(path)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append("restfly-defaults.yaml (defaults)")

        if path.is_file():
            data = cls._deep_merge(data, cls._load_config_data(path))
            sources.append(str(path))

            for profile in active_profiles or []:
                profile_path = path.parent / f"{path.stem}-{profile}{path.suffix}"
                if profile_path.is_file():
                    data = cls._deep_merge(data, cls._load_config_data(profile_path))
                    sources.append(f"{profile_path} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    @staticmethod
    def _load_config_data(path: Path) -> dict[str, Any]:
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return tomllib.load(f) or {}
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        defaults_file = importlib.resources.files("restfly.resources").joinpath("restfly-defaults.yaml")
        with importlib.resources.as_file(defaults_file) as p, open(p) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge *override* into *base*, override values winning."""
        merged = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def env_key(key: str) -> str:
        """Environment variable name overriding *key*: ``restfly.a.b-c`` -> ``RESTFLY_A_B_C``."""
        base = key.removeprefix("restfly.")
        return _ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first."""
        env_val = os.environ.get(self.env_key(key))
        if env_val is not None:
            return env_val

        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return default
            current = current.get(part)
            if current is None:
                return default
        return current

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get all values under a prefix as a dict (empty if absent)."""
        current: Any = self._data
        for part in prefix.split("."):
            if not isinstance(current, dict):
                return {}
            current = current.get(part, {})
        return current if isinstance(current, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Bind configuration to a ``@config_properties`` dataclass.

        Values come from the prefix section, overridden per field by the
        matching environment variable. String values are coerced to the
        annotated ``int``/``float``/``bool`` type (``Optional`` unwrapped).
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = self.get_section(prefix)
        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            env_val = os.environ.get(self.env_key(f"{prefix}.{field.name}"))
            if env_val is not None:
                value: Any = env_val
            elif field.name in section:
                value = section[field.name]
            else:
                continue
            kwargs[field.name] = self._coerce(value, hints.get(field.name))

        return config_cls(**kwargs)

    @staticmethod
    def _coerce(value: Any, expected_type: Any) -> Any:
        if not isinstance(value, str):
            return value

        origin = get_origin(expected_type)
        if origin is Union or origin is types.UnionType:
            args = [a for a in get_args(expected_type) if a is not type(None)]
            if value.strip().lower() in ("", "none", "null"):
                return None
            expected_type = args[0] if len(args) == 1 else str

        if expected_type is int:
            return int(value)
        if expected_type is float:
            return float(value)
        if expected_type is bool:
            return value.lower() in ("true", "1", "yes")
        return value
