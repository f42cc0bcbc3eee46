"""Location of the persistent dependency cache and its enumeration."""

from __future__ import annotations

from pathlib import Path

PLATFORM_CACHE_DIR = Path(".now") / "cache"
ENGINE_NAME = "import"


def cache_root_for(work_path: str | Path) -> Path:
    return Path(work_path) / PLATFORM_CACHE_DIR / ENGINE_NAME


def prepare_cache(work_path: str | Path) -> dict[str, Path]:
    """Return every cache file keyed by its path relative to *work_path*.

    Symbolic references are listed as-is and never followed, so the
    platform persists the links themselves.
    """
    work_root = Path(work_path)
    root = cache_root_for(work_root)
    if not root.is_dir():
        return {}
    files: dict[str, Path] = {}
    for path in sorted(root.rglob("*")):
        if path.is_symlink() or path.is_file():
            files[path.relative_to(work_root).as_posix()] = path
    return files
