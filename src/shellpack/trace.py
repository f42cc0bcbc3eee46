"""Trace log reader for dependency identifiers recorded during a build."""

from __future__ import annotations

from pathlib import Path

from shellpack.errors import ValidationError
from shellpack.observability import StructuredLogger


def read_trace(path: str | Path, *, logger: StructuredLogger | None = None) -> list[str]:
    """Return the identifiers in *path*, one per line, then remove the file.

    A missing or blank trace means no external dependencies were used.
    """
    trace_path = Path(path)
    try:
        raw = trace_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        if logger is not None:
            logger.log(operation="read_trace", phase="trace", message="No trace log was written.")
        return []
    except UnicodeDecodeError as exc:
        raise ValidationError(
            "Trace log is not valid UTF-8.",
            hint="The build step must write one identifier per line as UTF-8 text.",
            context={"path": str(trace_path), "cause": str(exc)},
        ) from exc

    identifiers = [line.strip() for line in raw.splitlines() if line.strip()] if raw else []

    try:
        trace_path.unlink()
    except OSError as exc:
        # Cleanup only affects disk hygiene.
        if logger is not None:
            logger.log(
                operation="read_trace",
                phase="trace",
                level="warning",
                message="Failed to remove trace log.",
                extra={"path": str(trace_path), "error": str(exc)},
            )

    if logger is not None:
        logger.log(
            operation="read_trace",
            phase="trace",
            message=f"Read {len(identifiers)} traced identifiers.",
        )
    return identifiers
