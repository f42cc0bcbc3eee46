"""Content-addressed fetch of statically linked runtime helpers.

Helpers land in ``<cache_dir>/<sha256>``. A pinned digest is checked both
on download and on every cache hit; an unpinned helper is downloaded on
every call and stored under the digest of what arrived.
"""

from __future__ import annotations

import hashlib
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from urllib.request import urlopen

from shellpack.errors import FetchError, ReproducibilityError, ShellpackError


@dataclass(frozen=True, slots=True)
class HelperBinary:
    """An executable shipped with every bundle, fetched once and cached."""

    name: str
    url: str
    sha256: str = ""
    output_path: str = ""
    mode: int = 0o755

    @property
    def bundle_path(self) -> str:
        return self.output_path or f"bin/{self.name}"


def fetch(url: str, *, sha256: str, cache_dir: str | Path) -> Path:
    """Return the cached path for *url*, downloading it when needed."""
    cache_path = Path(cache_dir)
    cache_path.mkdir(parents=True, exist_ok=True)

    if sha256:
        cached = cache_path / sha256
        if cached.exists():
            _verify_digest(cached.read_bytes(), expected=sha256, source=str(cached))
            return cached

    with urlopen(url) as response:  # noqa: S310 - digest is checked before use
        payload = response.read()
    digest = _verify_digest(payload, expected=sha256, source=url)

    artifact_path = cache_path / digest
    if not artifact_path.exists():
        _write_atomic(artifact_path, payload)
    return artifact_path


def fetch_helper(helper: HelperBinary, *, cache_dir: str | Path) -> Path:
    """Fetch *helper*, reporting any failure with the helper's name."""
    try:
        return fetch(helper.url, sha256=helper.sha256, cache_dir=cache_dir)
    except (OSError, ShellpackError) as exc:
        raise FetchError(
            f"Failed to fetch runtime helper `{helper.name}`: {exc}",
            hint="Runtime helpers are required; check the URL and network access.",
            context={"helper": helper.name, "url": helper.url, "cause": str(exc)},
        ) from exc


def _verify_digest(payload: bytes, *, expected: str, source: str) -> str:
    actual = hashlib.sha256(payload).hexdigest()
    if expected and actual != expected:
        raise ReproducibilityError(
            "Helper content hash mismatch.",
            hint="Pin the digest of a trusted immutable artifact, or clear the helper cache.",
            context={"source": source, "expected": expected, "actual": actual},
        )
    return actual


def _write_atomic(path: Path, payload: bytes) -> None:
    # Concurrent fetches of one digest each write their own temp file.
    with tempfile.NamedTemporaryFile(dir=path.parent, prefix=".fetch-", delete=False) as handle:
        handle.write(payload)
        temp_name = handle.name
    try:
        os.replace(temp_name, path)
    except OSError:
        Path(temp_name).unlink(missing_ok=True)
        raise
