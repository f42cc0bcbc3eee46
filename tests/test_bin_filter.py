import os
from collections.abc import Callable
from pathlib import Path

import pytest

from shellpack.bundle import FileEntry, FileManifest, select_bin_entries
from shellpack.cache import CacheLayout
from shellpack.errors import BinDirectoryError
from shellpack.observability import StructuredLogger


def _bin(layout: CacheLayout) -> Path:
    layout.bin_dir.mkdir(parents=True, exist_ok=True)
    return layout.bin_dir


def test_missing_bin_directory_means_no_binaries(layout: CacheLayout) -> None:
    assert select_bin_entries(layout, FileManifest()) == []


def test_plain_files_always_ship(layout: CacheLayout) -> None:
    (_bin(layout) / "foo").write_text("#!/bin/sh\n", encoding="utf-8")

    selected = dict(select_bin_entries(layout, FileManifest()))

    assert list(selected) == [".cache/bin/foo"]
    assert selected[".cache/bin/foo"].source == layout.bin_dir / "foo"


def test_untraced_symlink_targets_are_excluded(layout: CacheLayout) -> None:
    bin_dir = _bin(layout)
    (bin_dir / "foo").write_text("#!/bin/sh\n", encoding="utf-8")
    os.symlink("../data/untracked", bin_dir / "bar")
    logger = StructuredLogger()

    selected = dict(select_bin_entries(layout, FileManifest(), logger=logger))

    assert ".cache/bin/foo" in selected
    assert ".cache/bin/bar" not in selected
    assert logger.records_at_level("debug")


def test_traced_symlink_targets_ship_as_links(
    layout: CacheLayout,
    add_dependency: Callable[..., Path],
) -> None:
    data_path = add_dependency("a.com/x", blob="abc")
    os.symlink(os.path.relpath(data_path, _bin(layout)), layout.bin_dir / "x")
    manifest = FileManifest()
    manifest.add(".cache/data/abc", FileEntry(source=data_path))

    selected = dict(select_bin_entries(layout, manifest))

    assert selected[".cache/bin/x"].link_target == "../data/abc"


def test_absolute_symlink_targets_are_rewritten_relative(layout: CacheLayout) -> None:
    data_path = layout.root / "data" / "abc"
    data_path.parent.mkdir(parents=True)
    data_path.write_bytes(b"x")
    os.symlink(data_path, _bin(layout) / "x")
    manifest = FileManifest()
    manifest.add(".cache/data/abc", FileEntry(source=data_path))

    selected = dict(select_bin_entries(layout, manifest))

    assert selected[".cache/bin/x"].link_target == "../data/abc"


def test_symlinks_leaving_the_cache_are_excluded(layout: CacheLayout, tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.write_bytes(b"x")
    os.symlink(outside, _bin(layout) / "escape")

    assert select_bin_entries(layout, FileManifest()) == []


def test_subdirectories_are_ignored(layout: CacheLayout) -> None:
    (_bin(layout) / "nested").mkdir()

    assert select_bin_entries(layout, FileManifest()) == []


def test_enumeration_errors_other_than_missing_are_fatal(
    layout: CacheLayout,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _bin(layout)

    def _fail(path: object) -> None:
        raise PermissionError("denied")

    monkeypatch.setattr(os, "scandir", _fail)

    with pytest.raises(BinDirectoryError) as excinfo:
        select_bin_entries(layout, FileManifest())

    assert "denied" in str(excinfo.value)


def test_bin_path_that_is_a_file_is_fatal(layout: CacheLayout) -> None:
    layout.bin_dir.write_text("not a directory", encoding="utf-8")

    with pytest.raises(BinDirectoryError):
        select_bin_entries(layout, FileManifest())
