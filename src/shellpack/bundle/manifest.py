"""File manifest handed to the packaging layer.

A manifest maps deployment-relative POSIX paths to :class:`FileEntry`
values. Symbolic references are kept as explicit indirection records
(``link_target``) and resolved through the manifest itself, so a bundle
stays consistent on filesystems without symlink support.
"""

from __future__ import annotations

import hashlib
import json
import os
import posixpath
import stat
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import cbor2

from shellpack.errors import ValidationError


@dataclass(frozen=True, slots=True)
class FileEntry:
    source: Path | None = None
    data: bytes | None = None
    mode: int = 0o644
    link_target: str | None = None

    @classmethod
    def from_path(cls, path: Path, *, follow_symlinks: bool = False) -> FileEntry:
        st = os.stat(path, follow_symlinks=follow_symlinks)
        if stat.S_ISLNK(st.st_mode):
            return cls.symlink(os.readlink(path))
        return cls(source=path, mode=stat.S_IMODE(st.st_mode))

    @classmethod
    def from_bytes(cls, data: bytes, *, mode: int = 0o644) -> FileEntry:
        return cls(data=data, mode=mode)

    @classmethod
    def symlink(cls, target: str) -> FileEntry:
        return cls(mode=0o777, link_target=Path(target).as_posix())

    @property
    def is_link(self) -> bool:
        return self.link_target is not None

    def read_bytes(self) -> bytes:
        if self.link_target is not None:
            return self.link_target.encode("utf-8")
        if self.data is not None:
            return self.data
        if self.source is None:
            raise ValidationError("File entry has neither a source nor inline data.")
        return self.source.read_bytes()

    def sha256(self) -> str:
        return hashlib.sha256(self.read_bytes()).hexdigest()


def normalize_output_path(path: str) -> str:
    normalized = posixpath.normpath(path.replace("\\", "/"))
    if normalized in {".", ".."} or normalized.startswith(("../", "/")):
        raise ValidationError(
            "Manifest paths must be relative and stay inside the bundle.",
            context={"path": path},
        )
    return normalized


class FileManifest:
    """Deduplicated path to file mapping; sealed once handed off."""

    def __init__(self) -> None:
        self._entries: dict[str, FileEntry] = {}
        self._sealed = False

    def add(self, path: str, entry: FileEntry) -> bool:
        """Insert *entry* unless *path* is already taken; return whether it was."""
        self._ensure_open()
        key = normalize_output_path(path)
        if key in self._entries:
            return False
        self._entries[key] = entry
        return True

    def replace(self, path: str, entry: FileEntry) -> None:
        self._ensure_open()
        self._entries[normalize_output_path(path)] = entry

    def seal(self) -> FileManifest:
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self._entries

    def __getitem__(self, path: str) -> FileEntry:
        return self._entries[path]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def paths(self) -> list[str]:
        return sorted(self._entries)

    def items(self) -> list[tuple[str, FileEntry]]:
        return [(path, self._entries[path]) for path in sorted(self._entries)]

    def resolve_link(self, path: str) -> str | None:
        """Return the manifest path a symbolic record at *path* points at."""
        entry = self._entries[path]
        if entry.link_target is None:
            return None
        return posixpath.normpath(posixpath.join(posixpath.dirname(path), entry.link_target))

    def dangling_links(self) -> list[str]:
        dangling: list[str] = []
        for path in self.paths():
            target = self.resolve_link(path)
            if target is not None and not self._is_bundled(target):
                dangling.append(path)
        return dangling

    def _is_bundled(self, target: str) -> bool:
        # A directory is bundled when any entry lives below it.
        if target in self._entries:
            return True
        prefix = target + "/"
        return any(key.startswith(prefix) for key in self._entries)

    def verify_links(self) -> None:
        dangling = self.dangling_links()
        if dangling:
            raise ValidationError(
                "Manifest contains symbolic references whose targets are not bundled.",
                context={"paths": ", ".join(dangling)},
            )

    def to_payload(self) -> list[dict[str, object]]:
        payload: list[dict[str, object]] = []
        for path, entry in self.items():
            record: dict[str, object] = {"path": path, "mode": entry.mode}
            if entry.link_target is not None:
                record["link_target"] = entry.link_target
            else:
                record["sha256"] = entry.sha256()
            payload.append(record)
        return payload

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self.to_payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self.to_payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def digest(self) -> str:
        return hashlib.sha256(self.to_cbor()).hexdigest()

    def _ensure_open(self) -> None:
        if self._sealed:
            raise ValidationError("Manifest is sealed and can no longer be modified.")
