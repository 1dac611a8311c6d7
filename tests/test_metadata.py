from __future__ import annotations

import json

import pytest

from hec_forwarder import metadata
from hec_forwarder.metadata import build_message, epoch_seconds


def test_iso_timestamp_with_z_suffix_converts_to_epoch_seconds() -> None:
    assert epoch_seconds("2017-01-01T00:00:00Z") == 1483228800.0


def test_iso_timestamp_with_offset_is_honoured() -> None:
    assert epoch_seconds("2017-01-01T01:00:00+01:00") == 1483228800.0


def test_naive_iso_timestamp_is_read_as_utc() -> None:
    assert epoch_seconds("2017-01-01T00:00:00.500") == 1483228800.5


def test_numeric_timestamp_is_passed_through() -> None:
    assert epoch_seconds(1483228800) == 1483228800.0


@pytest.mark.parametrize("value", ["not-a-date", "", True, None, {"t": 1}])
def test_unparseable_timestamp_falls_back_to_now(
    value: object,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(metadata.time, "time", lambda: 42.5)

    assert epoch_seconds(value) == 42.5


def test_build_message_serializes_entry_losslessly() -> None:
    entry = {"eventName": "PutObject", "nested": {"n": [1, 2.5, None, True]}, "name": "café"}

    message = build_message(
        entry,
        time_s=10.0,
        host="serverless",
        source="lambda:fn",
        sourcetype="aws:cloudtrail",
    )

    assert json.loads(message.content) == entry
    assert message.metadata.index is None


def test_hec_event_includes_index_only_when_set() -> None:
    without_index = build_message(
        {"a": 1}, time_s=1.0, host="h", source="s", sourcetype="st"
    ).to_hec_event()
    with_index = build_message(
        {"a": 1}, time_s=1.0, host="h", source="s", sourcetype="st", index="main"
    ).to_hec_event()

    assert "index" not in without_index
    assert with_index["index"] == "main"
    assert with_index == {
        "time": 1.0,
        "host": "h",
        "source": "s",
        "sourcetype": "st",
        "index": "main",
        "event": '{"a":1}',
    }
