"""Selection of shared cache executables for a single bundle.

The cache ``bin`` directory is shared by every dependency version ever
fetched. Plain files always ship; symbolic references ship only when the
data they point at was pulled in by this build's trace.
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path

from shellpack.bundle.manifest import FileEntry, FileManifest
from shellpack.cache.paths import CacheLayout
from shellpack.errors import BinDirectoryError
from shellpack.observability import StructuredLogger


def select_bin_entries(
    layout: CacheLayout,
    manifest: FileManifest,
    *,
    logger: StructuredLogger | None = None,
) -> list[tuple[str, FileEntry]]:
    """Return ``(bundle_path, entry)`` pairs for the bin entries to ship.

    Must run after the traced dependencies are in *manifest*.
    """
    bin_dir = layout.bin_dir
    try:
        with os.scandir(bin_dir) as it:
            dir_entries = sorted(it, key=lambda item: item.name)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise BinDirectoryError(
            "Failed to enumerate the cache bin directory.",
            context={"path": str(bin_dir), "cause": str(exc)},
        ) from exc

    bin_output = layout.output_path(bin_dir)
    selected: list[tuple[str, FileEntry]] = []
    for dir_entry in dir_entries:
        output_path = posixpath.join(bin_output, dir_entry.name)
        if dir_entry.is_symlink():
            target_output = _target_output(layout, Path(dir_entry.path))
            if target_output is None or target_output not in manifest:
                if logger is not None:
                    logger.log(
                        operation="select_bin_entries",
                        phase="bin",
                        level="debug",
                        message=f"Skipping `{dir_entry.name}`; its target was not traced.",
                        extra={"target": target_output},
                    )
                continue
            relative = posixpath.relpath(target_output, bin_output)
            selected.append((output_path, FileEntry.symlink(relative)))
        elif dir_entry.is_file(follow_symlinks=False):
            selected.append((output_path, FileEntry.from_path(Path(dir_entry.path))))
    return selected


def _target_output(layout: CacheLayout, link: Path) -> str | None:
    try:
        raw_target = os.readlink(link)
    except OSError as exc:
        raise BinDirectoryError(
            "Failed to read a symbolic reference in the cache bin directory.",
            context={"path": str(link), "cause": str(exc)},
        ) from exc
    target = Path(os.path.normpath(link.parent / raw_target))
    if not layout.contains(target):
        return None
    return layout.output_path(target)
