from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from ..config import LogView
from ..errors import SourceError

logger = logging.getLogger(__name__)

FILE_SOURCE = "file"
ACCESS_HINT = "Re-launch logtab with elevated permissions (for example `sudo`) to read this file."


def normalize_path(raw: str | Path) -> Path:
    """Expand and absolutize a user supplied path without failing on missing targets."""

    path = raw if isinstance(raw, Path) else Path(str(raw))
    path = path.expanduser()
    try:
        if path.is_absolute():
            return path.resolve(strict=False)
        return (Path.cwd() / path).resolve(strict=False)
    except OSError:
        return path


def check_access(path: Path) -> tuple[bool, str | None]:
    """Verify *path* is a readable regular file."""

    try:
        exists = path.exists()
    except PermissionError:
        return False, f"Permission denied while checking '{path}'. {ACCESS_HINT}"

    if not exists:
        return False, f"Path '{path}' does not exist."
    if not path.is_file():
        return False, f"Path '{path}' is not a file."
    if not os.access(path, os.R_OK):
        return False, f"Read access required for file '{path}'. {ACCESS_HINT}"
    return True, None


def read_file_lines(path: Path) -> list[str]:
    allowed, reason = check_access(path)
    if not allowed:
        raise SourceError(reason or f"Cannot read '{path}'.")
    started = time.perf_counter()
    try:
        with path.open("r", encoding="utf-8", errors="replace", newline="") as handle:
            text = handle.read()
    except OSError as exc:
        raise SourceError(f"Failed to read {path}: {exc}") from exc
    # Only "\n" ends a row; a lone "\r" stays part of it.
    rows = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
    if not text or text.endswith("\n"):
        rows.pop()
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("Scanned '%s' in %d ms. %d rows found.", path, elapsed_ms, len(rows))
    return rows


def read_lines(view: LogView) -> list[str]:
    """Load every raw line of *view*'s source into memory."""

    source = view.source or FILE_SOURCE
    if source != FILE_SOURCE:
        raise SourceError(f"View {view.name!r} uses unsupported source {source!r}.")
    filename = view.options.get("filename")
    if not filename:
        raise SourceError(f"View {view.name!r} has no 'filename' option.")
    return read_file_lines(normalize_path(filename))
