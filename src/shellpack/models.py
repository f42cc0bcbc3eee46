"""Typed dataclasses for build requests and packaged function output."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from shellpack.bundle.assembler import DEFAULT_MAX_WORKERS
from shellpack.bundle.manifest import FileManifest
from shellpack.cache.paths import DEFAULT_OUTPUT_PREFIX
from shellpack.config import BuilderConfig
from shellpack.fetch.http import HelperBinary
from shellpack.observability import StructuredLogger

Runtime = Literal["provided"]


@dataclass(frozen=True, slots=True)
class BuildRequest:
    work_path: Path
    entrypoint: str
    files: Mapping[str, Path] = field(default_factory=dict)
    config: BuilderConfig = field(default_factory=BuilderConfig)
    helpers: tuple[HelperBinary, ...] = ()
    output_prefix: str = DEFAULT_OUTPUT_PREFIX
    max_workers: int = DEFAULT_MAX_WORKERS


@dataclass(frozen=True, slots=True)
class LambdaSpec:
    files: FileManifest
    handler: str
    runtime: Runtime = "provided"
    environment: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BuildResult:
    output: LambdaSpec
    logger: StructuredLogger
    trace: tuple[str, ...] = ()
