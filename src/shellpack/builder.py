"""Build orchestration for shell-script functions.

Provisions the working directory, runs the packaged ``builder.sh`` with the
entrypoint, reads the dependency trace it leaves behind, and assembles the
bundle from the shared dependency cache.
"""

from __future__ import annotations

import hashlib
import os
import shutil
import subprocess
from collections.abc import Mapping
from pathlib import Path

from shellpack.bundle.assembler import BundleInputs, RuntimeFile, assemble_bundle
from shellpack.cache.paths import CacheLayout
from shellpack.cache.store import cache_root_for
from shellpack.config import BuilderConfig
from shellpack.errors import BuildExecutionError, ValidationError
from shellpack.models import BuildRequest, BuildResult, LambdaSpec
from shellpack.observability import StructuredLogger
from shellpack.trace import read_trace

RUNTIME_DIR = Path(__file__).resolve().parent / "runtime"
BUILDER_SCRIPT = RUNTIME_DIR / "builder.sh"
TRACE_FILENAME = ".import-trace"

RUNTIME_FILES = (
    RuntimeFile(output_path="bootstrap", source=RUNTIME_DIR / "bootstrap"),
    RuntimeFile(output_path="runtime.sh", source=RUNTIME_DIR / "runtime.sh"),
)


def dist_path_for(work_path: Path, entrypoint: str) -> Path:
    return work_path / ".now" / "dist" / entrypoint


def trace_path_for(work_path: Path) -> Path:
    return work_path / TRACE_FILENAME


def analyze(work_path: str | Path, entrypoint: str) -> str:
    """Return the sha256 digest of the entrypoint source."""
    source = Path(work_path) / entrypoint
    try:
        return hashlib.sha256(source.read_bytes()).hexdigest()
    except FileNotFoundError as exc:
        raise ValidationError(
            "Entrypoint source file does not exist.",
            context={"entrypoint": entrypoint, "path": str(source)},
        ) from exc


def provision(files: Mapping[str, Path], work_path: Path) -> None:
    """Copy source *files* into *work_path* under their relative names."""
    for name, source in sorted(files.items()):
        destination = work_path / name
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.exists() and destination.samefile(source):
            continue
        shutil.copy2(source, destination)


def build_env(
    request: BuildRequest,
    *,
    layout: CacheLayout,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    base = dict(os.environ if base_env is None else base_env)
    path = base.get("PATH", "")
    env = {
        **base,
        **request.config.to_env(),
        "PATH": f"{layout.bin_dir}:{path}" if path else str(layout.bin_dir),
        "IMPORT_CACHE": str(layout.root),
        "IMPORT_TRACE": str(trace_path_for(request.work_path)),
        "DIST": str(dist_path_for(request.work_path, request.entrypoint)),
        "BUILDER": str(RUNTIME_DIR),
        "ENTRYPOINT": request.entrypoint,
    }
    return env


def run_build_script(
    request: BuildRequest,
    *,
    env: Mapping[str, str],
    logger: StructuredLogger,
) -> None:
    command = ["bash", str(BUILDER_SCRIPT), request.entrypoint]
    result = subprocess.run(
        command,
        cwd=request.work_path,
        env=dict(env),
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise BuildExecutionError(
            "Build script failed.",
            hint="Check the entrypoint's build() function and its imports.",
            context={
                "command": " ".join(command),
                "returncode": str(result.returncode),
                "stderr": result.stderr[-2000:] if result.stderr else "",
            },
        )
    logger.log(
        operation="build",
        phase="script",
        message="Build script completed.",
        extra={"stdout": result.stdout[-2000:]} if result.stdout else None,
    )


def build(request: BuildRequest, *, logger: StructuredLogger | None = None) -> BuildResult:
    logger = logger or StructuredLogger()
    work_path = request.work_path
    work_path.mkdir(parents=True, exist_ok=True)
    provision(request.files, work_path)
    if not (work_path / request.entrypoint).is_file():
        raise ValidationError(
            "Entrypoint source file does not exist.",
            context={"entrypoint": request.entrypoint, "path": str(work_path / request.entrypoint)},
        )

    layout = CacheLayout(root=cache_root_for(work_path), output_prefix=request.output_prefix)
    layout.root.mkdir(parents=True, exist_ok=True)
    dist_path = dist_path_for(work_path, request.entrypoint)
    dist_path.mkdir(parents=True, exist_ok=True)

    run_build_script(request, env=build_env(request, layout=layout), logger=logger)
    trace = read_trace(trace_path_for(work_path), logger=logger)

    manifest = assemble_bundle(
        BundleInputs(
            layout=layout,
            work_path=work_path,
            entrypoint=request.entrypoint,
            trace=trace,
            output_dir=dist_path,
            runtime_files=RUNTIME_FILES,
            helpers=request.helpers,
            max_workers=request.max_workers,
        ),
        logger=logger,
    )
    output = LambdaSpec(
        files=manifest,
        handler=request.entrypoint,
        environment=function_environment(
            request.config,
            entrypoint=request.entrypoint,
            output_prefix=request.output_prefix,
        ),
    )
    return BuildResult(output=output, logger=logger, trace=tuple(trace))


def function_environment(
    config: BuilderConfig,
    *,
    entrypoint: str,
    output_prefix: str,
) -> dict[str, str]:
    env = config.to_env()
    # The bootstrap derives IMPORT_CACHE from the bundled prefix.
    env.pop("IMPORT_CACHE", None)
    env["IMPORT_CACHE_DIR"] = output_prefix
    env["SCRIPT_FILENAME"] = entrypoint
    return env
