import json
import os
from pathlib import Path

import pytest

from shellpack.bundle import FileEntry, FileManifest
from shellpack.errors import ValidationError


def test_add_is_insert_if_absent() -> None:
    manifest = FileManifest()

    assert manifest.add("a/b", FileEntry.from_bytes(b"first"))
    assert not manifest.add("a/./b", FileEntry.from_bytes(b"second"))

    assert len(manifest) == 1
    assert manifest["a/b"].read_bytes() == b"first"


def test_replace_overwrites() -> None:
    manifest = FileManifest()
    manifest.add("index.sh", FileEntry.from_bytes(b"old"))

    manifest.replace("index.sh", FileEntry.from_bytes(b"new"))

    assert manifest["index.sh"].read_bytes() == b"new"


@pytest.mark.parametrize("path", ["/etc/passwd", "../escape", "."])
def test_paths_must_stay_inside_bundle(path: str) -> None:
    with pytest.raises(ValidationError):
        FileManifest().add(path, FileEntry.from_bytes(b""))


def test_sealed_manifest_rejects_mutation() -> None:
    manifest = FileManifest().seal()

    with pytest.raises(ValidationError):
        manifest.add("x", FileEntry.from_bytes(b""))
    with pytest.raises(ValidationError):
        manifest.replace("x", FileEntry.from_bytes(b""))


def test_links_resolve_through_the_manifest() -> None:
    manifest = FileManifest()
    manifest.add(".cache/data/abc", FileEntry.from_bytes(b"blob"))
    manifest.add(".cache/links/a.com/x", FileEntry.symlink("../../data/abc"))
    manifest.add(".cache/bin/tool", FileEntry.symlink("../data/missing"))

    assert manifest.resolve_link(".cache/links/a.com/x") == ".cache/data/abc"
    assert manifest.resolve_link(".cache/data/abc") is None
    assert manifest.dangling_links() == [".cache/bin/tool"]
    with pytest.raises(ValidationError):
        manifest.verify_links()


def test_link_to_a_bundled_directory_is_not_dangling() -> None:
    manifest = FileManifest()
    manifest.add("vendor/v1/tool.sh", FileEntry.from_bytes(b"echo"))
    manifest.add("vendor/current", FileEntry.symlink("v1"))
    manifest.add("vendor/stale", FileEntry.symlink("v0"))
    manifest.add("vendor/partial", FileEntry.symlink("v"))

    assert manifest.dangling_links() == ["vendor/partial", "vendor/stale"]


def test_from_path_keeps_mode_and_symlinks(tmp_path: Path) -> None:
    script = tmp_path / "tool"
    script.write_text("#!/bin/sh\n", encoding="utf-8")
    script.chmod(0o755)
    link = tmp_path / "alias"
    os.symlink("tool", link)

    assert FileEntry.from_path(script).mode == 0o755
    assert FileEntry.from_path(link).link_target == "tool"
    assert FileEntry.from_path(link, follow_symlinks=True).source == link


def test_serialization_is_sorted_and_stable() -> None:
    first = FileManifest()
    first.add("b", FileEntry.from_bytes(b"2"))
    first.add("a", FileEntry.from_bytes(b"1", mode=0o755))
    second = FileManifest()
    second.add("a", FileEntry.from_bytes(b"1", mode=0o755))
    second.add("b", FileEntry.from_bytes(b"2"))

    payload = json.loads(first.to_json())

    assert [record["path"] for record in payload] == ["a", "b"]
    assert payload[0]["mode"] == 0o755
    assert first.to_cbor() == second.to_cbor()
    assert first.digest() == second.digest()
    assert len(first.digest()) == 64
