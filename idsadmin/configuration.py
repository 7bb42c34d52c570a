"""
Configuration source and hosting environment descriptor.

Configuration is read from one or more YAML files, later files overriding
earlier ones, and then overlaid with prefixed environment variables where a
double underscore separates sections:

    ADMIN_CONNECTION_STRINGS__IDENTITY_DB=postgresql+asyncpg://...

is equivalent to ``connection_strings: {identity_db: ...}`` in YAML.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from idsadmin.constants import (
    CONFIGURATION_ENV_PREFIX,
    CONFIGURATION_ENV_SEPARATOR,
    DEVELOPMENT_ENVIRONMENT,
    ENVIRONMENT_VARIABLE,
    PRODUCTION_ENVIRONMENT,
    STAGING_ENVIRONMENT,
)


def _merge(target: dict, overlay: Mapping) -> dict:
    """
    Recursively merge overlay into target, overlay values winning.
    """
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        elif isinstance(value, Mapping):
            target[key] = _merge({}, value)
        else:
            target[key] = value
    return target


def _parse_scalar(raw: str) -> Any:
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    # Only scalars; "a: b" in an env var should stay a string.
    if isinstance(value, (dict, list)):
        return raw
    return value


class Configuration:
    """
    Layered, read-only key/value configuration.
    """

    def __init__(self, data: Optional[Mapping] = None):
        self._data = _merge({}, data or {})

    @classmethod
    def load(
        cls,
        *paths: Path,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = CONFIGURATION_ENV_PREFIX,
    ) -> "Configuration":
        data: dict = {}
        for path in paths:
            path = Path(path)
            if not path.is_file():
                continue
            doc = yaml.safe_load(path.read_text(encoding="utf-8"))
            if doc is None:
                continue
            if not isinstance(doc, dict):
                raise ValueError(f"{path} must contain a mapping at the top level")
            _merge(data, doc)

        environ = os.environ if environ is None else environ
        for name, raw in environ.items():
            if not name.startswith(prefix) or name == ENVIRONMENT_VARIABLE:
                continue
            parts = [p.lower() for p in name[len(prefix) :].split(CONFIGURATION_ENV_SEPARATOR)]
            if not all(parts):
                continue
            node = data
            for part in parts[:-1]:
                if not isinstance(node.get(part), dict):
                    node[part] = {}
                node = node[part]
            node[parts[-1]] = _parse_scalar(raw)
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by a colon separated path, e.g. "admin_configuration:client_id".
        """
        node: Any = self._data
        for part in key.split(":"):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_section(self, name: str) -> dict:
        value = self.get(name)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError(f"configuration section {name} must be a mapping")
        return dict(value)

    def has_section(self, name: str) -> bool:
        return isinstance(self.get(name), dict)

    def as_dict(self) -> dict:
        return _merge({}, self._data)


@dataclass(frozen=True)
class HostingEnvironment:
    environment_name: str = PRODUCTION_ENVIRONMENT
    application_name: str = "idsadmin"
    content_root: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> "HostingEnvironment":
        environ = os.environ if environ is None else environ
        name = environ.get(ENVIRONMENT_VARIABLE) or PRODUCTION_ENVIRONMENT
        return cls(environment_name=name, **kwargs)

    def is_environment(self, name: str) -> bool:
        return self.environment_name.lower() == name.lower()

    def is_development(self) -> bool:
        return self.is_environment(DEVELOPMENT_ENVIRONMENT)

    def is_staging(self) -> bool:
        return self.is_environment(STAGING_ENVIRONMENT)

    def is_production(self) -> bool:
        return self.is_environment(PRODUCTION_ENVIRONMENT)
