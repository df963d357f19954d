"""Sorted, index-addressed store of SWaT sensor readings."""

from __future__ import annotations

import logging
import math
from bisect import bisect_left
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from models.records import SensorRecord
from services.timestamps import MalformedTimestamp, normalize_timestamp

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMN = "Timestamp"
LABEL_COLUMN = "Normal/Attack"
RESERVED_COLUMNS = frozenset({TIMESTAMP_COLUMN, LABEL_COLUMN})


class RecordNotFound(LookupError):
    """Raised when an index does not address a stored record."""


def parse_reading(raw: Optional[str]) -> float:
    """Read a device cell as a float; anything unreadable becomes NaN."""
    if raw is None:
        return math.nan
    try:
        return float(raw)
    except ValueError:
        return math.nan


@dataclass(frozen=True)
class _PendingRecord:
    instant: datetime
    timestamp: str
    values: Dict[str, float]
    label: Optional[str]


class RecordStore:
    """Immutable sequence of :class:`SensorRecord` ordered by instant."""

    def __init__(self, records: Iterable[SensorRecord], dropped: int = 0) -> None:
        self._records: Tuple[SensorRecord, ...] = tuple(records)
        self._instants: List[datetime] = [record.instant for record in self._records]
        self.dropped = dropped
        for position, record in enumerate(self._records):
            if record.index != position:
                raise ValueError("Record indexes must be dense and match their position.")
            if position and record.instant < self._records[position - 1].instant:
                raise ValueError("Records must be sorted by instant.")

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, str]]) -> "RecordStore":
        """Build a store from raw CSV rows, dropping rows with unreadable timestamps."""
        pending: List[_PendingRecord] = []
        dropped = 0
        for row_number, row in enumerate(rows, start=1):
            raw_timestamp = row.get(TIMESTAMP_COLUMN) or ""
            try:
                instant = normalize_timestamp(raw_timestamp)
            except MalformedTimestamp as exc:
                dropped += 1
                logger.debug(
                    "Dropping sensor row",
                    extra={"row_number": row_number, "reason": str(exc)},
                )
                continue
            values = {
                key: parse_reading(value)
                for key, value in row.items()
                if key and key not in RESERVED_COLUMNS
            }
            pending.append(
                _PendingRecord(
                    instant=instant,
                    timestamp=raw_timestamp,
                    values=values,
                    label=row.get(LABEL_COLUMN),
                )
            )

        # sorted() is stable, so rows sharing an instant keep their file order.
        pending = sorted(pending, key=lambda item: item.instant)
        records = (
            SensorRecord(
                index=index,
                instant=item.instant,
                timestamp=item.timestamp,
                values=item.values,
                label=item.label,
            )
            for index, item in enumerate(pending)
        )
        return cls(records, dropped=dropped)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, index: int) -> SensorRecord:
        if index < 0 or index >= len(self._records):
            raise RecordNotFound(f"Index {index} is outside 0..{len(self._records) - 1}.")
        return self._records[index]

    def previous(self, index: int) -> Optional[SensorRecord]:
        if index <= 0:
            return None
        return self.get(index - 1)

    def first(self) -> SensorRecord:
        return self.get(0)

    def last(self) -> SensorRecord:
        return self.get(len(self._records) - 1)

    def nearest_index(self, target: datetime) -> int:
        """Index of the record closest in time to ``target``.

        Equal distances resolve to the smaller index.
        """
        if not self._records:
            raise RecordNotFound("The record store is empty.")

        position = bisect_left(self._instants, target)
        if position == 0:
            return 0
        if position == len(self._instants):
            return self._first_with_instant(self._instants[-1])

        before = self._instants[position - 1]
        after = self._instants[position]
        if target - before <= after - target:
            return self._first_with_instant(before)
        return position

    def index_at_or_after(self, target: datetime) -> int:
        """First index whose instant is not earlier than ``target``."""
        return bisect_left(self._instants, target)

    def slice(self, start: int, end: int) -> List[SensorRecord]:
        """Records from ``start`` to ``end`` inclusive, clamped to the store."""
        start = max(0, start)
        if start >= len(self._records):
            return []
        end = min(end, len(self._records) - 1)
        if end < start:
            return []
        return list(self._records[start : end + 1])

    def device_ids(self) -> Tuple[str, ...]:
        if not self._records:
            return ()
        return tuple(self._records[0].values.keys())

    def _first_with_instant(self, instant: datetime) -> int:
        return bisect_left(self._instants, instant)
