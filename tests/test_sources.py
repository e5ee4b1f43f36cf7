from __future__ import annotations

from pathlib import Path

import pytest

from logtab.config import LogView
from logtab.errors import SourceError
from logtab.services import check_access, normalize_path, read_file_lines, read_lines


def _view(filename: str | None = None, source: str = "file") -> LogView:
    options = {"filename": filename} if filename is not None else {}
    return LogView(name="app", source=source, options=options)


def test_read_lines_strips_line_endings(tmp_path: Path) -> None:
    log_file = tmp_path / "app.log"
    log_file.write_bytes(b'{"msg":"one"}\r\n{"msg":"two"}\nthree')

    rows = read_lines(_view(str(log_file)))

    assert rows == ['{"msg":"one"}', '{"msg":"two"}', "three"]


def test_empty_file_has_no_rows(tmp_path: Path) -> None:
    log_file = tmp_path / "empty.log"
    log_file.write_text("", encoding="utf-8")

    assert read_file_lines(log_file) == []


def test_undecodable_bytes_are_replaced(tmp_path: Path) -> None:
    log_file = tmp_path / "app.log"
    log_file.write_bytes(b"\xffok\n")

    assert read_file_lines(log_file) == ["\ufffdok"]


def test_missing_filename_option() -> None:
    with pytest.raises(SourceError, match="filename"):
        read_lines(_view())


def test_unsupported_source() -> None:
    with pytest.raises(SourceError, match="unsupported source"):
        read_lines(_view("/var/log/app.log", source="journald"))


def test_nonexistent_file(tmp_path: Path) -> None:
    with pytest.raises(SourceError, match="does not exist"):
        read_lines(_view(str(tmp_path / "missing.log")))


def test_directory_is_not_a_log_file(tmp_path: Path) -> None:
    allowed, reason = check_access(tmp_path)

    assert allowed is False
    assert reason is not None and "is not a file" in reason
    with pytest.raises(SourceError):
        read_file_lines(tmp_path)


def test_check_access_accepts_readable_files(tmp_path: Path) -> None:
    log_file = tmp_path / "app.log"
    log_file.write_text("line\n", encoding="utf-8")

    assert check_access(log_file) == (True, None)


def test_home_relative_filename(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    (tmp_path / "app.log").write_text("line\n", encoding="utf-8")

    assert read_lines(_view("~/app.log")) == ["line"]


def test_relative_paths_resolve_against_cwd(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert normalize_path("logs/app.log") == (tmp_path / "logs" / "app.log").resolve()


def test_lone_carriage_return_stays_inside_the_row(tmp_path: Path) -> None:
    log_file = tmp_path / "app.log"
    log_file.write_bytes(b"a\rb\nc\r\n\n")

    assert read_file_lines(log_file) == ["a\rb", "c", ""]
