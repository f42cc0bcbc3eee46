"""Dependency cache layout, link resolution, and persistence APIs."""

from .links import ResolvedDependency, read_link_target, resolve_dependency
from .paths import DEFAULT_OUTPUT_PREFIX, CacheLayout, normalize_identifier
from .store import cache_root_for, prepare_cache

__all__ = [
    "DEFAULT_OUTPUT_PREFIX",
    "CacheLayout",
    "ResolvedDependency",
    "cache_root_for",
    "normalize_identifier",
    "prepare_cache",
    "read_link_target",
    "resolve_dependency",
]
