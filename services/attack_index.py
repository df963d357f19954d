"""Lookup of labelled attack windows."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Optional, Tuple

from models.records import AttackInterval
from services.timestamps import MalformedTimestamp, normalize_timestamp, parse_time_of_day

logger = logging.getLogger(__name__)

ID_COLUMN = "Attack #"
DESCRIPTION_COLUMN = "Attack"
START_COLUMN = "Start Time"
END_COLUMN = "End Time"
TARGETS_COLUMN = "Attack Point"

_TARGET_SEPARATORS = re.compile(r"[;,]")
_NON_DIGITS = re.compile(r"[^0-9]")


def parse_targets(raw: Optional[str]) -> Tuple[str, ...]:
    """Split an ``Attack Point`` cell into device identifiers without hyphens."""
    if not raw:
        return ()
    targets = []
    for part in _TARGET_SEPARATORS.split(raw):
        device_id = part.strip().replace("-", "")
        if device_id:
            targets.append(device_id)
    return tuple(targets)


def resolve_end(start: datetime, raw_end: str) -> datetime:
    """Apply an end time of day to the start date, rolling past midnight if needed."""
    hour, minute, second = parse_time_of_day(raw_end)
    end = start.replace(hour=hour, minute=minute, second=second, microsecond=0)
    if end < start:
        end += timedelta(days=1)
    return end


def _sort_key(attack: AttackInterval) -> Tuple[int, int]:
    digits = _NON_DIGITS.sub("", attack.attack_id)
    if not digits:
        return (1, 0)
    return (0, int(digits))


class AttackIntervalIndex:
    """Attack windows in file order, answering point-in-time containment."""

    def __init__(self, intervals: Iterable[AttackInterval], dropped: int = 0) -> None:
        self._intervals: Tuple[AttackInterval, ...] = tuple(intervals)
        self.dropped = dropped

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, str]]) -> "AttackIntervalIndex":
        intervals: List[AttackInterval] = []
        dropped = 0
        for row_number, row in enumerate(rows, start=1):
            raw_start = row.get(START_COLUMN) or ""
            raw_end = row.get(END_COLUMN) or ""
            if not raw_end.strip():
                dropped += 1
                logger.debug(
                    "Dropping attack row",
                    extra={"row_number": row_number, "reason": "missing end time"},
                )
                continue
            try:
                start = normalize_timestamp(raw_start)
                end = resolve_end(start, raw_end)
            except MalformedTimestamp as exc:
                dropped += 1
                logger.debug(
                    "Dropping attack row",
                    extra={"row_number": row_number, "reason": str(exc)},
                )
                continue

            intervals.append(
                AttackInterval(
                    attack_id=row.get(ID_COLUMN) or "N/A",
                    description=row.get(DESCRIPTION_COLUMN) or "No description",
                    start=start,
                    end=end,
                    targets=parse_targets(row.get(TARGETS_COLUMN)),
                )
            )
        return cls(intervals, dropped=dropped)

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self):
        return iter(self._intervals)

    def containing(self, instant: datetime) -> Optional[AttackInterval]:
        """First interval, in stored order, whose inclusive bounds cover ``instant``."""
        for interval in self._intervals:
            if interval.contains(instant):
                return interval
        return None

    def list_sorted(self) -> List[AttackInterval]:
        """Intervals ordered by the number in their identifier."""
        return sorted(self._intervals, key=_sort_key)
