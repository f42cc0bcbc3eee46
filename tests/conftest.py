"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from shellpack.cache import CacheLayout


@pytest.fixture
def layout(tmp_path: Path) -> CacheLayout:
    root = tmp_path / "cache"
    root.mkdir()
    return CacheLayout(root=root, output_prefix=".cache")


@pytest.fixture
def add_dependency(layout: CacheLayout) -> Callable[..., Path]:
    """Write a link/location/data triple the way the build step does."""

    def _add(
        identifier: str,
        *,
        blob: str,
        content: bytes = b"payload",
        location: bool = True,
    ) -> Path:
        normalized = identifier.replace("://", "/", 1)
        data_path = layout.root / "data" / blob
        data_path.parent.mkdir(parents=True, exist_ok=True)
        if not data_path.exists():
            data_path.write_bytes(content)

        link_path = layout.links_dir / normalized
        link_path.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(os.path.relpath(data_path, link_path.parent), link_path)

        if location:
            location_path = layout.locations_dir / normalized
            location_path.parent.mkdir(parents=True, exist_ok=True)
            location_path.write_text(f"https://{normalized}\n", encoding="utf-8")
        return data_path

    return _add


@pytest.fixture
def work_path(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    (path / "index.sh").write_text("handler() { echo hi; }\n", encoding="utf-8")
    return path
