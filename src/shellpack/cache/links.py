"""Single-hop resolution of link entries to their backing data blobs."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path

from shellpack.cache.paths import CacheLayout, normalize_identifier
from shellpack.errors import MissingLocationError, UnresolvedLinkError


@dataclass(frozen=True, slots=True)
class ResolvedDependency:
    """All cache files one traced identifier contributes to a bundle."""

    identifier: str
    normalized: str
    link_path: Path
    location_path: Path
    data_path: Path
    link_output: str
    location_output: str
    data_output: str

    @property
    def link_target(self) -> str:
        """Relative target of the link inside the bundle namespace."""
        return posixpath.relpath(self.data_output, posixpath.dirname(self.link_output))


def read_link_target(link_path: Path, *, identifier: str) -> Path:
    """Return the absolute data path *link_path* points at."""
    try:
        target = os.readlink(link_path)
    except FileNotFoundError as exc:
        raise UnresolvedLinkError(
            f"Traced dependency `{identifier}` has no link entry.",
            identifier=identifier,
            hint="The build step must write the cache entry before tracing the identifier.",
            context={"path": str(link_path)},
        ) from exc
    except OSError as exc:
        raise UnresolvedLinkError(
            f"Link entry for `{identifier}` is not a symbolic reference.",
            identifier=identifier,
            context={"path": str(link_path), "cause": str(exc)},
        ) from exc
    return Path(os.path.normpath(link_path.parent / target))


def resolve_dependency(layout: CacheLayout, identifier: str) -> ResolvedDependency:
    """Resolve link, location and data blob for *identifier* or raise."""
    normalized = normalize_identifier(identifier)
    link_path = layout.links_dir / normalized
    location_path = layout.locations_dir / normalized

    data_path = read_link_target(link_path, identifier=identifier)
    if not location_path.is_file():
        raise MissingLocationError(
            f"Traced dependency `{identifier}` has no location metadata.",
            identifier=identifier,
            hint="Link and location entries are written as a pair; clear the cache and rebuild.",
            context={"path": str(location_path)},
        )
    if not layout.contains(data_path):
        raise UnresolvedLinkError(
            f"Link entry for `{identifier}` points outside the cache.",
            identifier=identifier,
            context={"path": str(link_path), "target": str(data_path)},
        )
    if not data_path.is_file():
        raise UnresolvedLinkError(
            f"Data for `{identifier}` is missing from the cache.",
            identifier=identifier,
            hint="Clear the cache and rebuild.",
            context={"path": str(link_path), "target": str(data_path)},
        )

    return ResolvedDependency(
        identifier=identifier,
        normalized=normalized,
        link_path=link_path,
        location_path=location_path,
        data_path=data_path,
        link_output=layout.output_path(link_path),
        location_output=layout.output_path(location_path),
        data_output=layout.output_path(data_path),
    )
