"""Bundle assembly from runtime files, build output, and traced dependencies.

Merge order, first writer wins:

1. fixed runtime files and fetched helpers
2. the build script's output tree
3. link, location and data entries for every traced identifier
4. shared bin entries whose targets were traced

The entrypoint source is then always placed under its own path. Trace
resolution and helper fetches run on a bounded thread pool; the first
failure cancels outstanding work and no manifest is returned.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from shellpack.bundle.bin_filter import select_bin_entries
from shellpack.bundle.manifest import FileEntry, FileManifest
from shellpack.cache.links import ResolvedDependency, resolve_dependency
from shellpack.cache.paths import CacheLayout, normalize_identifier
from shellpack.errors import ValidationError
from shellpack.fetch.http import HelperBinary, fetch_helper
from shellpack.observability import StructuredLogger

DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True, slots=True)
class RuntimeFile:
    output_path: str
    source: Path
    mode: int = 0o755


@dataclass(frozen=True, slots=True)
class BundleInputs:
    layout: CacheLayout
    work_path: Path
    entrypoint: str
    trace: Sequence[str] = ()
    output_dir: Path | None = None
    runtime_files: tuple[RuntimeFile, ...] = ()
    helpers: tuple[HelperBinary, ...] = ()
    helper_cache_dir: Path | None = None
    max_workers: int = DEFAULT_MAX_WORKERS


def unique_identifiers(trace: Sequence[str]) -> list[str]:
    """Drop repeated identifiers and aliases that normalize to the same path."""
    seen: dict[str, str] = {}
    for identifier in trace:
        seen.setdefault(normalize_identifier(identifier), identifier)
    return [seen[key] for key in sorted(seen)]


def assemble_bundle(
    inputs: BundleInputs,
    *,
    logger: StructuredLogger | None = None,
) -> FileManifest:
    """Build the sealed manifest for one packaging run."""
    logger = logger or StructuredLogger()
    identifiers = unique_identifiers(inputs.trace)
    helper_cache_dir = inputs.helper_cache_dir or inputs.layout.root / "helpers"

    with ThreadPoolExecutor(max_workers=max(1, inputs.max_workers)) as pool:
        futures: list[Future[Any]] = [
            pool.submit(fetch_helper, helper, cache_dir=helper_cache_dir)
            for helper in inputs.helpers
        ]
        futures.extend(
            pool.submit(resolve_dependency, inputs.layout, identifier)
            for identifier in identifiers
        )
        results = _collect(futures)
    helper_paths: list[Path] = results[: len(inputs.helpers)]
    dependencies: list[ResolvedDependency] = results[len(inputs.helpers) :]

    manifest = FileManifest()
    for runtime_file in inputs.runtime_files:
        manifest.add(
            runtime_file.output_path,
            FileEntry(source=runtime_file.source, mode=runtime_file.mode),
        )
    for helper, path in zip(inputs.helpers, helper_paths, strict=True):
        manifest.add(helper.bundle_path, FileEntry(source=path, mode=helper.mode))

    if inputs.output_dir is not None:
        _add_tree(manifest, inputs.output_dir)

    for dependency in dependencies:
        _add_dependency(manifest, dependency, logger=logger)

    for path, entry in select_bin_entries(inputs.layout, manifest, logger=logger):
        manifest.add(path, entry)

    entrypoint_path = inputs.work_path / inputs.entrypoint
    if not entrypoint_path.is_file():
        raise ValidationError(
            "Entrypoint source file does not exist.",
            context={"entrypoint": inputs.entrypoint, "path": str(entrypoint_path)},
        )
    manifest.replace(inputs.entrypoint, FileEntry.from_path(entrypoint_path, follow_symlinks=True))

    manifest.verify_links()
    logger.log(
        operation="assemble_bundle",
        phase="assemble",
        message=f"Assembled {len(manifest)} files from {len(dependencies)} traced dependencies.",
    )
    return manifest.seal()


def _collect(futures: list[Future[Any]]) -> list[Any]:
    """Wait for *futures*; on the first failure cancel the rest and raise."""
    if not futures:
        return []
    done, pending = wait(futures, return_when=FIRST_EXCEPTION)
    for future in pending:
        future.cancel()
    for future in futures:
        if future in done:
            exc = future.exception()
            if exc is not None:
                raise exc
    return [future.result() for future in futures]


def _add_dependency(
    manifest: FileManifest,
    dependency: ResolvedDependency,
    *,
    logger: StructuredLogger,
) -> None:
    manifest.add(dependency.link_output, FileEntry.symlink(dependency.link_target))
    manifest.add(
        dependency.location_output,
        FileEntry.from_path(dependency.location_path, follow_symlinks=True),
    )
    data_entry = FileEntry.from_path(dependency.data_path, follow_symlinks=True)
    if not manifest.add(dependency.data_output, data_entry):
        logger.log(
            operation="assemble_bundle",
            phase="dependencies",
            identifier=dependency.identifier,
            level="debug",
            message="Data blob already bundled by another identifier.",
            extra={"path": dependency.data_output},
        )


def _add_tree(manifest: FileManifest, root: Path) -> None:
    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        current = Path(dirpath)
        linked_dirs = [name for name in dirnames if (current / name).is_symlink()]
        for name in sorted([*filenames, *linked_dirs]):
            path = current / name
            manifest.add(path.relative_to(root).as_posix(), FileEntry.from_path(path))
