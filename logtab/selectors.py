"""
Selector evaluation.

A selector describes how to pull a display value out of a raw log line:

    "."                               the raw line, unchanged
    "json(level)"                     the `level` key of the line parsed as JSON
    "json(data) | json(timestamp)"    `data` holds a JSON-encoded string; parse
                                      it again and take its `timestamp`
    "json(.) | json(msg)"             `json(.)` keeps the current value

An attribute carries an ordered list of selectors. The first one that yields
a non-empty string wins.
"""
from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

Extractor = Callable[[str], str]

IDENTITY_SELECTOR = "."
STAGE_SEPARATOR = "|"
INVALID_MARKER = "Invalid"
TIME_TYPE = "time"
DEFAULT_TIME_FORMAT = "%b %d %H:%M:%S.%3f"

RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt]"
    r"(?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def lookup_path(raw: str, path: str) -> str:
    """Return the value at dotted *path* inside the JSON document *raw*.

    Objects are walked by key, arrays by integer index. Strings come back
    unquoted, `null` and missing paths as "", anything else as compact JSON.
    """

    try:
        node = json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        return ""
    for part in path.split("."):
        if isinstance(node, dict):
            if part not in node:
                return ""
            node = node[part]
        elif isinstance(node, list):
            try:
                index = int(part)
                if index < 0:
                    return ""
                node = node[index]
            except (ValueError, IndexError):
                return ""
        else:
            return ""
    return _stringify(node)


def _stringify(node: object) -> str:
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    return json.dumps(node, separators=(",", ":"), ensure_ascii=False)


def _parse_stage(stage: str) -> Optional[str]:
    stage = stage.strip()
    if stage.startswith("json(") and stage.endswith(")"):
        return stage[5:-1].strip()
    return None


def compile_selector(selector: str) -> Extractor:
    """Compile one selector expression into an extractor."""

    if selector.strip() == IDENTITY_SELECTOR:
        return _identity

    paths = []
    for stage in selector.split(STAGE_SEPARATOR):
        path = _parse_stage(stage)
        # Unknown stages and json(.) keep the current value.
        if path is None or path == IDENTITY_SELECTOR:
            continue
        paths.append(path)

    def extract(row: str) -> str:
        value = row
        for path in paths:
            value = lookup_path(value, path)
            if not value:
                return ""
        return value

    return extract


def _identity(row: str) -> str:
    return row


def parse_rfc3339(value: str) -> Optional[datetime]:
    match = RFC3339_RE.match(value.strip())
    if not match:
        return None
    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")
    offset = match.group("offset")
    try:
        stamp = datetime.fromisoformat(f"{match.group('date')}T{match.group('time')}.{fraction}")
        if offset in ("Z", "z"):
            tz = timezone.utc
        else:
            sign = -1 if offset[0] == "-" else 1
            hours, minutes = int(offset[1:3]), int(offset[4:6])
            tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    except ValueError:
        return None
    return stamp.replace(tzinfo=tz)


def format_time(value: str, fmt: Optional[str] = None) -> str:
    """Format an RFC 3339 timestamp, or return the "Invalid" marker."""

    stamp = parse_rfc3339(value)
    if stamp is None:
        return INVALID_MARKER
    pattern = fmt if fmt is not None else DEFAULT_TIME_FORMAT
    pattern = pattern.replace("%3f", f"{stamp.microsecond // 1000:03d}")
    try:
        return stamp.strftime(pattern)
    except ValueError:
        return INVALID_MARKER


def compile_attribute(
    selectors: Sequence[str],
    type_: str = "plain",
    fmt: Optional[str] = None,
) -> Extractor:
    """Build the value function for a column.

    Selectors are tried in order and the first non-empty result wins. For the
    `time` type the result is parsed as RFC 3339 and reformatted with *fmt*.
    """

    extractors = [compile_selector(selector) for selector in selectors]

    def evaluate(row: str) -> str:
        value = ""
        for extractor in extractors:
            value = extractor(row)
            if value:
                break
        if type_ == TIME_TYPE:
            return format_time(value, fmt)
        return value

    return evaluate
