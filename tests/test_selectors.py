import json

import pytest

from logtab.selectors import (
    INVALID_MARKER,
    compile_attribute,
    compile_selector,
    format_time,
    lookup_path,
    parse_rfc3339,
)

ROW = '{"level":"info","msg":"hello world","time":"2020-01-01T00:00:00Z"}'


def test_identity_selector_returns_row_unchanged() -> None:
    evaluate = compile_attribute([".", "json(level)"])

    assert evaluate(ROW) == ROW
    assert evaluate("not json at all") == "not json at all"


def test_first_non_empty_selector_wins() -> None:
    assert compile_attribute(["json(msg)", "json(level)"])(ROW) == "hello world"
    assert compile_attribute(["json(nope)", "json(level)"])(ROW) == "info"


def test_missing_path_falls_back_to_next_selector() -> None:
    evaluate = compile_attribute(["json(missing)", "json(present)"])

    assert evaluate('{"present":"X"}') == "X"


def test_every_selector_empty_yields_empty_string() -> None:
    evaluate = compile_attribute(["json(a)", "json(b)"])

    assert evaluate(ROW) == ""
    assert compile_attribute([])(ROW) == ""


def test_chained_stages_reparse_nested_json_strings() -> None:
    inner = json.dumps({"timestamp": "2021-05-06T07:08:09Z", "event": "boot"})
    row = json.dumps({"data": inner})

    assert compile_selector("json(data) | json(event)")(row) == "boot"
    assert compile_selector("json(data)|json(.)|json(timestamp)")(row) == "2021-05-06T07:08:09Z"


def test_dot_stage_keeps_current_value() -> None:
    assert compile_selector("json(.) | json(level)")(ROW) == "info"
    assert compile_selector("json(.)")(ROW) == ROW


def test_empty_selector_means_raw_line() -> None:
    assert compile_attribute([""])(ROW) == ROW


def test_dotted_paths_and_array_indices() -> None:
    row = '{"data":{"event":"login","tags":["a","b"]}}'

    assert lookup_path(row, "data.event") == "login"
    assert lookup_path(row, "data.tags.1") == "b"
    assert lookup_path(row, "data.tags.7") == ""
    assert lookup_path(row, "data.event.deeper") == ""


def test_non_string_values_are_rendered_as_json() -> None:
    row = '{"n":42,"f":1.5,"ok":true,"none":null,"obj":{"a":1},"list":[1,2]}'

    assert lookup_path(row, "n") == "42"
    assert lookup_path(row, "f") == "1.5"
    assert lookup_path(row, "ok") == "true"
    assert lookup_path(row, "none") == ""
    assert lookup_path(row, "obj") == '{"a":1}'
    assert lookup_path(row, "list") == "[1,2]"


def test_parse_failures_never_raise() -> None:
    evaluate = compile_attribute(["json(level)"])

    assert evaluate("plain text line") == ""
    assert evaluate("") == ""
    assert evaluate("{broken") == ""


def test_time_type_uses_default_format() -> None:
    evaluate = compile_attribute(["json(time)"], "time")

    assert evaluate('{"time":"2020-01-02T03:04:05.678Z"}') == "Jan 02 03:04:05.678"


def test_time_type_uses_explicit_format() -> None:
    evaluate = compile_attribute(["json(time)"], "time", "%H:%M:%S.%3f")

    assert evaluate('{"time":"2020-01-02T03:04:05.678Z"}') == "03:04:05.678"


def test_time_keeps_the_offset_of_the_timestamp() -> None:
    assert format_time("2020-01-01T12:00:00+02:00", "%H:%M %z") == "12:00 +0200"


def test_time_truncates_nanoseconds_to_milliseconds() -> None:
    assert format_time("2020-01-01T00:00:00.123456789Z", "%3f") == "123"


@pytest.mark.parametrize("fmt", [None, "%H:%M", "%Y"])
@pytest.mark.parametrize(
    "value",
    ["", "yesterday", "2020-01-01", "2020-01-01T00:00:00", "2020-13-01T00:00:00Z", "2020-01-01 00:00:00Z"],
)
def test_invalid_time_is_always_marked_invalid(value: str, fmt) -> None:
    assert format_time(value, fmt) == INVALID_MARKER


def test_time_type_with_no_value_is_invalid() -> None:
    evaluate = compile_attribute(["json(time)"], "time")

    assert evaluate('{"level":"info"}') == INVALID_MARKER


def test_parse_rfc3339_accepts_lowercase_markers() -> None:
    stamp = parse_rfc3339("2020-01-01t10:20:30z")

    assert stamp is not None
    assert (stamp.hour, stamp.minute, stamp.second) == (10, 20, 30)


def test_plain_type_returns_value_unchanged() -> None:
    evaluate = compile_attribute(["json(time)"], "plain", "%H")

    assert evaluate(ROW) == "2020-01-01T00:00:00Z"


def test_deeply_nested_json_yields_empty_string() -> None:
    row = "[" * 100_000

    assert lookup_path(row, "0") == ""
    assert compile_attribute(["json(level)", "."])(row) == row
    assert compile_attribute(["json(time)"], "time")(row) == INVALID_MARKER


def test_negative_array_index_is_not_a_match() -> None:
    row = '{"tags":["a","b"]}'

    assert lookup_path(row, "tags.-1") == ""
    assert compile_attribute(["json(tags.-1)", "json(tags.0)"])(row) == "a"
