"""Read-only queries over the loaded dataset snapshot."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from functools import lru_cache
from threading import Lock
from typing import Dict, List, Optional, Tuple, Union

from models.records import AttackInterval, SensorRecord
from services.attack_index import AttackIntervalIndex
from services.errors import DataNotReady, IndexOutOfRange, InvalidParameter, MalformedTimestamp
from services.record_store import RecordNotFound, RecordStore
from services.timestamps import epoch_millis, normalize_timestamp

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"[+-]?[0-9]+")


class DatasetState(str, Enum):
    """Lifecycle of the in-memory dataset."""

    loading = "loading"
    ready = "ready"
    failed = "failed"


class HistoryMode(str, Enum):
    """How the history window is measured."""

    records = "records"
    time = "time"


@dataclass(frozen=True)
class DatasetSnapshot:
    records: RecordStore
    attacks: AttackIntervalIndex
    loaded_at: Optional[datetime] = None
    load_ms: Optional[int] = None


@dataclass(frozen=True)
class DatasetInfo:
    total_records: int
    start_timestamp: str
    end_timestamp: str
    device_ids: Tuple[str, ...]
    attack_count: int
    dropped_records: int
    dropped_attacks: int


@dataclass(frozen=True)
class AttackStatus:
    is_active: bool = False
    attack_id: Optional[str] = None
    description: Optional[str] = None
    targets: Tuple[str, ...] = ()

    @classmethod
    def from_interval(cls, interval: Optional[AttackInterval]) -> "AttackStatus":
        if interval is None:
            return cls()
        return cls(
            is_active=True,
            attack_id=interval.attack_id,
            description=interval.description,
            targets=interval.targets,
        )


@dataclass(frozen=True)
class RecordView:
    record: SensorRecord
    previous: Optional[SensorRecord]
    attack: AttackStatus
    changes: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TimestampMatch:
    index: int
    timestamp: str


@dataclass(frozen=True)
class HistoryPoint:
    timestamp_ms: int
    value: float


def _parse_int(raw: Union[int, str, None]) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if raw is None:
        return None
    text = str(raw).strip()
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)


def _diff(record: SensorRecord, previous: Optional[SensorRecord]) -> Dict[str, float]:
    if previous is None:
        return {}
    changes: Dict[str, float] = {}
    for device_id, value in record.values.items():
        if device_id in previous.values:
            changes[device_id] = value - previous.values[device_id]
    return changes


class QueryEngine:
    """Answers dashboard queries once a dataset snapshot has been published."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._state = DatasetState.loading
        self._snapshot: Optional[DatasetSnapshot] = None
        self._failure: Optional[str] = None

    @property
    def state(self) -> DatasetState:
        return self._state

    @property
    def failure(self) -> Optional[str]:
        return self._failure

    def publish(self, snapshot: DatasetSnapshot) -> None:
        """Install the loaded snapshot and move to ``ready``."""
        with self._lock:
            if self._state is not DatasetState.loading:
                raise RuntimeError(f"Cannot publish a dataset while {self._state.value}.")
            self._snapshot = snapshot
            self._state = DatasetState.ready
        logger.info(
            "Dataset ready",
            extra={
                "state": DatasetState.ready.value,
                "row_count": len(snapshot.records),
                "attack_count": len(snapshot.attacks),
            },
        )

    def mark_failed(self, reason: str) -> None:
        with self._lock:
            if self._state is not DatasetState.loading:
                raise RuntimeError(f"Cannot fail a dataset load while {self._state.value}.")
            self._failure = reason
            self._state = DatasetState.failed
        logger.error(
            "Dataset load failed",
            extra={"state": DatasetState.failed.value, "reason": reason},
        )

    def info(self) -> DatasetInfo:
        snapshot = self._require_snapshot()
        store = snapshot.records
        if not len(store):
            raise DataNotReady("Data not loaded yet.")
        return DatasetInfo(
            total_records=len(store),
            start_timestamp=store.first().timestamp,
            end_timestamp=store.last().timestamp,
            device_ids=store.device_ids(),
            attack_count=len(snapshot.attacks),
            dropped_records=store.dropped,
            dropped_attacks=snapshot.attacks.dropped,
        )

    def by_index(self, index: Union[int, str]) -> RecordView:
        snapshot = self._require_snapshot()
        position = _parse_int(index)
        if position is None:
            raise IndexOutOfRange("Index out of bounds")
        try:
            record = snapshot.records.get(position)
        except RecordNotFound as exc:
            raise IndexOutOfRange("Index out of bounds") from exc

        previous = snapshot.records.previous(position)
        attack = AttackStatus.from_interval(snapshot.attacks.containing(record.instant))
        return RecordView(
            record=record,
            previous=previous,
            attack=attack,
            changes=_diff(record, previous),
        )

    def by_timestamp(self, query: Optional[str]) -> TimestampMatch:
        snapshot = self._require_snapshot()
        if query is None or not query.strip():
            raise MalformedTimestamp("Missing time query parameter.")
        try:
            target = normalize_timestamp(query)
        except MalformedTimestamp as exc:
            raise MalformedTimestamp(
                'Invalid time format. Use "DD/MM/YYYY HH:MM:SS" format.'
            ) from exc

        store = snapshot.records
        if not len(store):
            raise DataNotReady("Data not loaded yet.")
        index = store.nearest_index(target)
        return TimestampMatch(index=index, timestamp=store.get(index).timestamp)

    def history(
        self,
        device_id: Optional[str],
        end_index: Union[int, str, None],
        window_seconds: Union[int, str, None],
        mode: Union[HistoryMode, str] = HistoryMode.records,
    ) -> List[HistoryPoint]:
        """Readings of one device leading up to ``end_index``.

        In ``records`` mode the window counts records back from ``end_index``
        and treats each record as one second. ``time`` mode measures the window
        against the end record's instant instead.
        """
        snapshot = self._require_snapshot()
        store = snapshot.records
        if not device_id:
            raise InvalidParameter("Missing required parameters: deviceId, endIndex, seconds")
        if device_id not in store.device_ids():
            raise InvalidParameter(f"Unknown device {device_id!r}.")

        end = _parse_int(end_index)
        window = _parse_int(window_seconds)
        if end is None or window is None:
            raise InvalidParameter("Invalid numerical parameters.")

        try:
            history_mode = HistoryMode(mode)
        except ValueError as exc:
            raise InvalidParameter(f"Unknown history mode {mode!r}.") from exc

        if history_mode is HistoryMode.time:
            start = self._time_window_start(store, end, window)
        else:
            start = max(0, end - window)

        return [
            HistoryPoint(
                timestamp_ms=epoch_millis(record.instant),
                value=record.values.get(device_id, math.nan),
            )
            for record in store.slice(start, end)
        ]

    def attacks(self) -> List[AttackInterval]:
        return self._require_snapshot().attacks.list_sorted()

    @staticmethod
    def _time_window_start(store: RecordStore, end: int, window: int) -> int:
        if end < 0 or end >= len(store) or window < 0:
            return max(0, end - window)
        cutoff = store.get(end).instant - timedelta(seconds=window)
        return store.index_at_or_after(cutoff)

    def _require_snapshot(self) -> DatasetSnapshot:
        snapshot = self._snapshot
        if self._state is DatasetState.failed:
            raise DataNotReady(f"Dataset failed to load: {self._failure}")
        if self._state is not DatasetState.ready or snapshot is None:
            raise DataNotReady("Data not loaded yet.")
        return snapshot


@lru_cache
def build_default_engine() -> QueryEngine:
    """Process-wide engine shared by the API routes and the loader."""
    return QueryEngine()
