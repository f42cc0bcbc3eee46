"""Builder configuration and its translation into ``IMPORT_*`` variables.

Recognized top-level keys (camelCase or snake_case):

``cache``
    Accepted but has no effect. The build step uses the engine cache root
    and the packaged function uses its bundled cache.
``curl_opts``
    Extra options passed through to every network fetch made by the script.
``debug``
    Enables import tracing output.
``reload``
    Forces dependencies to be downloaded again instead of reused.
``server``
    Overrides the import server URL.
``import``
    Open-ended table; every key becomes an additional ``IMPORT_*`` variable.

Any other top-level key is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from shellpack.errors import ValidationError

ENV_PREFIX = "IMPORT_"
ALLOWED_KEYS = ("cache", "curl_opts", "debug", "reload", "server")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_WORD = re.compile(r"[^A-Za-z0-9]+")


def snake_upper(key: str) -> str:
    """Return ``curlOpts`` / ``curl-opts`` / ``curl_opts`` as ``CURL_OPTS``."""
    spaced = _CAMEL_BOUNDARY.sub("_", key)
    return _NON_WORD.sub("_", spaced).strip("_").upper()


@dataclass(frozen=True, slots=True)
class BuilderConfig:
    cache: str | None = None
    curl_opts: str | None = None
    debug: str | None = None
    reload: str | None = None
    server: str | None = None
    imports: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> BuilderConfig:
        if not raw:
            return cls()
        values: dict[str, str] = {}
        imports: dict[str, str] = {}
        for key, value in raw.items():
            if not isinstance(key, str):
                continue
            name = snake_upper(key).lower()
            if name == "import":
                imports = _parse_imports(value)
            elif name in ALLOWED_KEYS:
                values[name] = _coerce(key, value)
        return cls(imports=imports, **values)

    def to_env(self) -> dict[str, str]:
        env: dict[str, str] = {}
        for name in ALLOWED_KEYS:
            value = getattr(self, name)
            if value is not None:
                env[f"{ENV_PREFIX}{name.upper()}"] = value
        for key, value in self.imports.items():
            env[f"{ENV_PREFIX}{snake_upper(key)}"] = value
        return env


def _parse_imports(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(
            "Config `import` must be a table.",
            context={"type": type(value).__name__},
        )
    parsed: dict[str, str] = {}
    for key, item in value.items():
        if not isinstance(key, str) or not snake_upper(key):
            raise ValidationError("Config `import` keys must be non-empty strings.")
        parsed[key] = _coerce(f"import.{key}", item)
    return parsed


def _coerce(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    raise ValidationError(
        f"Config `{key}` must be a string.",
        context={"key": key, "type": type(value).__name__},
    )
