from pathlib import Path

import pytest

from shellpack.errors import ValidationError
from shellpack.observability import StructuredLogger
from shellpack.trace import read_trace


def test_missing_trace_means_no_dependencies(tmp_path: Path) -> None:
    assert read_trace(tmp_path / "absent") == []


def test_blank_trace_means_no_dependencies(tmp_path: Path) -> None:
    trace = tmp_path / "trace"
    trace.write_text("  \n\n", encoding="utf-8")

    assert read_trace(trace) == []
    assert not trace.exists()


def test_trace_lines_are_trimmed_and_kept_in_order(tmp_path: Path) -> None:
    trace = tmp_path / "trace"
    trace.write_text("b.com/y\n  a.com/x  \n\nb.com/y\n", encoding="utf-8")

    assert read_trace(trace) == ["b.com/y", "a.com/x", "b.com/y"]
    assert not trace.exists()


def test_cleanup_failure_is_logged_not_raised(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    trace = tmp_path / "trace"
    trace.write_text("a.com/x\n", encoding="utf-8")

    def _fail(self: Path, missing_ok: bool = False) -> None:
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(Path, "unlink", _fail)
    logger = StructuredLogger()

    assert read_trace(trace, logger=logger) == ["a.com/x"]
    warnings = logger.records_at_level("warning")
    assert len(warnings) == 1
    assert "read-only filesystem" in warnings[0]["extra"]["error"]


def test_undecodable_trace_is_a_validation_error(tmp_path: Path) -> None:
    trace = tmp_path / "trace"
    trace.write_bytes(b"a.com/x\n\xff\xfe\n")

    with pytest.raises(ValidationError) as excinfo:
        read_trace(trace)

    assert excinfo.value.context["path"] == str(trace)
