from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest

from services.attack_index import AttackIntervalIndex
from services.errors import DataNotReady, IndexOutOfRange, InvalidParameter, MalformedTimestamp
from services.query_engine import DatasetSnapshot, DatasetState, HistoryMode, QueryEngine
from services.record_store import RecordStore
from services.timestamps import epoch_millis

_BASE = datetime(2015, 12, 22, 16, 0, 0, tzinfo=timezone.utc)


def _row(offset_seconds: int, fit101: str) -> Dict[str, str]:
    instant = _BASE + timedelta(seconds=offset_seconds)
    return {
        "Timestamp": instant.strftime("%d/%m/%Y %I:%M:%S %p"),
        "FIT101": fit101,
        "MV101": "2",
        "Normal/Attack": "Normal",
    }


def _engine(offsets: List[int], attack_rows: List[Dict[str, str]] | None = None) -> QueryEngine:
    records = RecordStore.from_rows([_row(offset, str(offset / 10)) for offset in offsets])
    attacks = AttackIntervalIndex.from_rows(attack_rows or [])
    engine = QueryEngine()
    engine.publish(DatasetSnapshot(records=records, attacks=attacks))
    return engine


def _ready(offsets: int = 10) -> QueryEngine:
    return _engine(list(range(offsets)))


def test_queries_before_publish_are_not_ready() -> None:
    engine = QueryEngine()

    assert engine.state is DatasetState.loading
    with pytest.raises(DataNotReady):
        engine.info()
    with pytest.raises(DataNotReady):
        engine.by_index(0)
    with pytest.raises(DataNotReady):
        engine.by_timestamp("22/12/2015 16:00:00")
    with pytest.raises(DataNotReady):
        engine.history("FIT101", 0, 10)
    with pytest.raises(DataNotReady):
        engine.attacks()


def test_same_engine_serves_queries_after_publish() -> None:
    engine = QueryEngine()
    with pytest.raises(DataNotReady):
        engine.by_index(0)

    records = RecordStore.from_rows([_row(offset, "1.0") for offset in range(3)])
    engine.publish(DatasetSnapshot(records=records, attacks=AttackIntervalIndex([])))

    assert engine.state is DatasetState.ready
    assert engine.by_index(0).record.index == 0
    assert engine.info().total_records == 3


def test_failed_load_reports_not_ready_with_reason() -> None:
    engine = QueryEngine()
    engine.mark_failed("Attack.csv missing")

    assert engine.state is DatasetState.failed
    with pytest.raises(DataNotReady) as excinfo:
        engine.info()
    assert "Attack.csv missing" in excinfo.value.message
    assert excinfo.value.status_code == 503


def test_publish_only_once() -> None:
    engine = _ready()

    with pytest.raises(RuntimeError):
        engine.publish(DatasetSnapshot(records=RecordStore([]), attacks=AttackIntervalIndex([])))


def test_info_summary() -> None:
    engine = _engine(
        [2, 0, 1],
        [
            {
                "Attack #": "1",
                "Attack": "x",
                "Start Time": "22/12/2015 16:00:00",
                "End Time": "16:00:01",
                "Attack Point": "MV-101",
            },
            {"Attack #": "2", "Start Time": "bad", "End Time": "16:00:01"},
        ],
    )

    info = engine.info()

    assert info.total_records == 3
    assert info.start_timestamp == "22/12/2015 04:00:00 PM"
    assert info.end_timestamp == "22/12/2015 04:00:02 PM"
    assert info.device_ids == ("FIT101", "MV101")
    assert info.attack_count == 1
    assert info.dropped_records == 0
    assert info.dropped_attacks == 1


def test_info_on_empty_store_is_not_ready() -> None:
    engine = _engine([])

    with pytest.raises(DataNotReady):
        engine.info()


def test_by_index_returns_previous_and_diff() -> None:
    rows = [
        {"Timestamp": "22/12/2015 04:00:00 PM", "FIT101": "2.5", "Normal/Attack": "Normal"},
        {"Timestamp": "22/12/2015 04:00:01 PM", "FIT101": "2.6", "Normal/Attack": "Normal"},
    ]
    engine = QueryEngine()
    engine.publish(
        DatasetSnapshot(records=RecordStore.from_rows(rows), attacks=AttackIntervalIndex([]))
    )

    view = engine.by_index(1)

    assert view.record.index == 1
    assert view.previous is not None and view.previous.index == 0
    assert view.changes["FIT101"] == pytest.approx(0.1)
    assert view.attack.is_active is False
    assert view.attack.attack_id is None
    assert view.attack.description is None
    assert view.attack.targets == ()

    first = engine.by_index("0")
    assert first.previous is None
    assert first.changes == {}


@pytest.mark.parametrize("index", [-1, 10, "abc", "1.5", None, True, "0_1", "\uff11"])
def test_by_index_out_of_range(index) -> None:
    engine = _ready()

    with pytest.raises(IndexOutOfRange) as excinfo:
        engine.by_index(index)
    assert excinfo.value.status_code == 404


def test_by_index_reports_active_attack() -> None:
    engine = _engine(
        [0, 1, 2, 3],
        [
            {
                "Attack #": "4",
                "Attack": "Spoof FIT-101",
                "Start Time": "22/12/2015 16:00:01",
                "End Time": "16:00:02",
                "Attack Point": "FIT-101,MV-101",
            }
        ],
    )

    assert engine.by_index(0).attack.is_active is False
    status = engine.by_index(1).attack
    assert status.is_active is True
    assert status.attack_id == "4"
    assert status.description == "Spoof FIT-101"
    assert status.targets == ("FIT101", "MV101")
    assert engine.by_index(2).attack.is_active is True
    assert engine.by_index(3).attack.is_active is False


def test_by_timestamp_nearest_and_boundaries() -> None:
    engine = _engine([0, 10, 20])

    assert engine.by_timestamp("22/12/2015 16:00:12").index == 1
    assert engine.by_timestamp("22/12/2015 04:00:19 PM").index == 2
    assert engine.by_timestamp("01/01/2000 00:00:00").index == 0
    last = engine.by_timestamp("01/01/2030 00:00:00")
    assert last.index == 2
    assert last.timestamp == "22/12/2015 04:00:20 PM"


@pytest.mark.parametrize("query", [None, "", "   ", "yesterday", "2015-12-22 16:00:00"])
def test_by_timestamp_rejects_bad_queries(query) -> None:
    engine = _ready()

    with pytest.raises(MalformedTimestamp) as excinfo:
        engine.by_timestamp(query)
    assert excinfo.value.status_code == 400


def test_history_counts_records_as_seconds() -> None:
    engine = _ready(10)

    points = engine.history("FIT101", 5, 3)

    assert [p.value for p in points] == pytest.approx([0.2, 0.3, 0.4, 0.5])
    assert points[0].timestamp_ms == epoch_millis(_BASE + timedelta(seconds=2))


@pytest.mark.parametrize(
    ("end", "window"),
    [(0, 0), (0, 60), (3, 2), (9, 9), (9, 100), (12, 5), (20, 5), (15, 20), (4, -2), (-3, 1)],
)
def test_history_window_sizes(end: int, window: int) -> None:
    n = 10
    engine = _ready(n)

    points = engine.history("FIT101", end, window)

    start = max(0, end - window)
    expected = len(range(start, min(end, n - 1) + 1)) if start < n else 0
    assert len(points) == expected
    assert len(points) <= max(0, end - start + 1)
    if end - window >= n:
        assert points == []


def test_history_accepts_string_parameters() -> None:
    engine = _ready(10)

    assert len(engine.history("FIT101", "5", " 3 ")) == 4


def test_history_passes_nan_through() -> None:
    rows = [
        {"Timestamp": "22/12/2015 16:00:00", "FIT101": "1.0"},
        {"Timestamp": "22/12/2015 16:00:01", "FIT101": "bad"},
    ]
    engine = QueryEngine()
    engine.publish(
        DatasetSnapshot(records=RecordStore.from_rows(rows), attacks=AttackIntervalIndex([]))
    )

    points = engine.history("FIT101", 1, 60)

    assert len(points) == 2
    assert points[0].value == 1.0
    assert math.isnan(points[1].value)


@pytest.mark.parametrize(
    ("device_id", "end", "window"),
    [
        ("NOPE", 1, 1),
        ("", 1, 1),
        (None, 1, 1),
        ("Timestamp", 1, 1),
        ("Normal/Attack", 1, 1),
        ("FIT101", "x", 1),
        ("FIT101", 1, "1.5"),
        ("FIT101", None, 1),
        ("FIT101", "1_0", 1),
        ("FIT101", "\uff15", 1),
        ("FIT101", 5, "1_0"),
    ],
)
def test_history_invalid_parameters(device_id, end, window) -> None:
    engine = _ready()

    with pytest.raises(InvalidParameter):
        engine.history(device_id, end, window)


def test_history_time_mode_uses_elapsed_seconds() -> None:
    engine = _engine([0, 1, 5, 6, 7])

    by_time = engine.history("FIT101", 4, 3, mode="time")
    by_records = engine.history("FIT101", 4, 3, mode=HistoryMode.records)

    assert [p.value for p in by_time] == pytest.approx([0.5, 0.6, 0.7])
    assert [p.value for p in by_records] == pytest.approx([0.1, 0.5, 0.6, 0.7])


def test_history_unknown_mode() -> None:
    engine = _ready()

    with pytest.raises(InvalidParameter):
        engine.history("FIT101", 1, 1, mode="hours")


def test_attacks_are_sorted_by_number() -> None:
    engine = _engine(
        [0],
        [
            {"Attack #": "3", "Start Time": "22/12/2015 10:00:00", "End Time": "10:01:00"},
            {"Attack #": "1", "Start Time": "22/12/2015 11:00:00", "End Time": "11:01:00"},
        ],
    )

    assert [attack.attack_id for attack in engine.attacks()] == ["1", "3"]
