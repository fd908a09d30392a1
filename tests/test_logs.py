import io
import json

import pytest

from cloudshell.logs import (
    VALID_FORMAT_STRINGS,
    VALID_LEVEL_STRINGS,
    FieldLogger,
    Format,
    Level,
    init_logging,
    with_field,
    with_fields,
)


def _json_entries(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


@pytest.fixture
def json_stream():
    stream = io.StringIO()
    init_logging(Format.JSON, Level.TRACE, stream)
    return stream


@pytest.mark.parametrize("level", VALID_LEVEL_STRINGS)
def test_every_valid_level_string_is_accepted(level):
    assert VALID_LEVEL_STRINGS == ("trace", "debug", "info", "warn", "error")
    stream = io.StringIO()
    init_logging("json", level, stream)
    with_fields({}).error("boom")
    assert [entry["@message"] for entry in _json_entries(stream)] == ["boom"]


@pytest.mark.parametrize("log_format", VALID_FORMAT_STRINGS)
def test_every_valid_format_string_is_accepted(log_format):
    assert VALID_FORMAT_STRINGS == ("json", "text")
    stream = io.StringIO()
    init_logging(log_format, "debug", stream)
    with_fields({}).error("boom")
    assert "boom" in stream.getvalue()


def test_json_entry_carries_message_and_fields(json_stream):
    with_fields({"connection": "abc", "count": 3}).info("hello %s", "world")
    (entry,) = _json_entries(json_stream)
    assert entry["@message"] == "hello world"
    assert entry["@data"] == {"connection": "abc", "count": 3}
    assert entry["@level"] == "info"
    assert {"@file", "@func", "@timestamp"} <= set(entry)


def test_with_field_sets_single_field(json_stream):
    logger = with_field("key", "value")
    assert logger.fields == {"key": "value"}
    logger.debug("x")
    assert _json_entries(json_stream)[0]["@data"] == {"key": "value"}


def test_trace_is_emitted_at_trace_level(json_stream):
    with_fields({}).trace("deep")
    entries = _json_entries(json_stream)
    assert [entry["@level"] for entry in entries] == ["trace"]


def test_level_filters_lower_entries():
    stream = io.StringIO()
    init_logging("json", "warn", stream)
    logger = with_fields({})
    logger.info("hidden")
    logger.debug("hidden")
    logger.warn("shown")
    logger.error("also shown")
    entries = _json_entries(stream)
    assert [entry["@message"] for entry in entries] == ["shown", "also shown"]
    assert entries[0]["@level"] == "warning"


def test_text_format_quotes_values_and_sorts_fields():
    stream = io.StringIO()
    init_logging(Format.TEXT, Level.DEBUG, stream)
    with_fields({"zeta": 1, "alpha": "a"}).info("hello world")
    line = stream.getvalue().strip()
    assert 'msg="hello world"' in line
    assert 'level="info"' in line
    assert line.index('alpha="a"') < line.index('zeta="1"')
    assert line.startswith('time="')


def test_field_logger_does_not_share_caller_dict(json_stream):
    fields = {"a": 1}
    logger = FieldLogger(fields)
    fields["b"] = 2
    logger.info("m")
    assert _json_entries(json_stream)[0]["@data"] == {"a": 1}


def test_unknown_format_raises():
    with pytest.raises(ValueError):
        init_logging("xml", "debug", io.StringIO())


def test_unknown_level_raises():
    with pytest.raises(ValueError):
        init_logging("text", "verbose", io.StringIO())