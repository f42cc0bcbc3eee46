"""Deterministic cache path derivation for traced dependency identifiers.

Every identifier maps to a pair of cache-relative paths that share the
same normalized suffix::

    <root>/links/<normalized>      symbolic reference to a data blob
    <root>/locations/<normalized>  provenance metadata for the link

Nothing in this module touches the filesystem.
"""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path

from shellpack.errors import ValidationError

DEFAULT_OUTPUT_PREFIX = ".import-cache"
SCHEME_SEPARATOR = "://"

LINKS_DIR = "links"
LOCATIONS_DIR = "locations"
BIN_DIR = "bin"


def normalize_identifier(identifier: str) -> str:
    """Return the filesystem-safe relative path for *identifier*."""
    value = identifier.strip()
    if not value:
        raise ValidationError("Dependency identifier is empty.")
    value = value.replace(SCHEME_SEPARATOR, "/", 1).replace("\\", "/")
    normalized = posixpath.normpath(value)
    if (
        normalized in {".", ".."}
        or normalized.startswith("../")
        or normalized.startswith("/")
    ):
        raise ValidationError(
            "Dependency identifier escapes the cache namespace.",
            hint="Identifiers must normalize to a relative path below the cache root.",
            context={"identifier": identifier, "normalized": normalized},
        )
    return normalized


@dataclass(frozen=True, slots=True)
class CacheLayout:
    """On-disk cache root plus the prefix its files take inside a bundle."""

    root: Path
    output_prefix: str = DEFAULT_OUTPUT_PREFIX

    @property
    def links_dir(self) -> Path:
        return self.root / LINKS_DIR

    @property
    def locations_dir(self) -> Path:
        return self.root / LOCATIONS_DIR

    @property
    def bin_dir(self) -> Path:
        return self.root / BIN_DIR

    def link_path(self, identifier: str) -> Path:
        return self.links_dir / normalize_identifier(identifier)

    def location_path(self, identifier: str) -> Path:
        return self.locations_dir / normalize_identifier(identifier)

    def contains(self, path: Path) -> bool:
        relative = os.path.relpath(os.path.normpath(path), os.path.normpath(self.root))
        return relative != ".." and not relative.startswith(".." + os.sep)

    def output_path(self, path: Path) -> str:
        """Map a path below the cache root into the bundle namespace."""
        if not self.contains(path):
            raise ValidationError(
                "Path is outside the cache root.",
                context={"path": str(path), "root": str(self.root)},
            )
        relative = os.path.relpath(os.path.normpath(path), os.path.normpath(self.root))
        return posixpath.normpath(posixpath.join(self.output_prefix, Path(relative).as_posix()))
