"""Public package entrypoint for the shell function packager."""

from .builder import analyze, build, build_env, provision, run_build_script
from .bundle import (
    BundleInputs,
    FileEntry,
    FileManifest,
    RuntimeFile,
    assemble_bundle,
    select_bin_entries,
)
from .cache import CacheLayout, normalize_identifier, prepare_cache, resolve_dependency
from .config import BuilderConfig
from .errors import (
    BinDirectoryError,
    BuildExecutionError,
    FetchError,
    MissingLocationError,
    ReproducibilityError,
    ShellpackError,
    UnresolvedLinkError,
    ValidationError,
)
from .fetch import HelperBinary
from .models import BuildRequest, BuildResult, LambdaSpec
from .observability import StructuredLogger
from .trace import read_trace

__all__ = [
    "BinDirectoryError",
    "BuildExecutionError",
    "BuildRequest",
    "BuildResult",
    "BuilderConfig",
    "BundleInputs",
    "CacheLayout",
    "FetchError",
    "FileEntry",
    "FileManifest",
    "HelperBinary",
    "LambdaSpec",
    "MissingLocationError",
    "ReproducibilityError",
    "RuntimeFile",
    "ShellpackError",
    "StructuredLogger",
    "UnresolvedLinkError",
    "ValidationError",
    "analyze",
    "assemble_bundle",
    "build",
    "build_env",
    "normalize_identifier",
    "prepare_cache",
    "provision",
    "read_trace",
    "resolve_dependency",
    "run_build_script",
    "select_bin_entries",
]
