"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from models.records import AttackInterval, SensorRecord
from services.query_engine import (
    AttackStatus,
    DatasetInfo,
    HistoryPoint,
    RecordView,
    TimestampMatch,
)
from services.timestamps import epoch_millis, format_timestamp


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    if value is None or math.isnan(value) or math.isinf(value):
        return None
    return value


class ApiModel(BaseModel):
    """Snake-case fields rendered as the camelCase keys the dashboard reads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    error: str


class DatasetInfoResponse(ApiModel):
    total_records: int = Field(..., ge=0)
    start_time: str
    end_time: str
    device_names: List[str]
    attack_count: int = Field(..., ge=0)
    dropped_records: int = Field(..., ge=0)
    dropped_attacks: int = Field(..., ge=0)

    @classmethod
    def from_info(cls, info: DatasetInfo) -> "DatasetInfoResponse":
        return cls(
            total_records=info.total_records,
            start_time=info.start_timestamp,
            end_time=info.end_timestamp,
            device_names=list(info.device_ids),
            attack_count=info.attack_count,
            dropped_records=info.dropped_records,
            dropped_attacks=info.dropped_attacks,
        )


class RecordPayload(ApiModel):
    """A sensor record; unreadable device values are rendered as ``null``."""

    index: int = Field(..., ge=0)
    timestamp: str
    js_timestamp: int
    label: Optional[str] = None
    values: Dict[str, Optional[float]] = Field(default_factory=dict)

    @field_serializer("values")
    def serialize_values(self, values: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
        return {key: _finite_or_none(value) for key, value in values.items()}

    @classmethod
    def from_record(cls, record: SensorRecord) -> "RecordPayload":
        return cls(
            index=record.index,
            timestamp=record.timestamp,
            js_timestamp=epoch_millis(record.instant),
            label=record.label,
            values=dict(record.values),
        )


class AttackInfo(ApiModel):
    is_active: bool
    attack_id: Optional[str] = None
    description: Optional[str] = None
    targets: List[str] = Field(default_factory=list)

    @classmethod
    def from_status(cls, status: AttackStatus) -> "AttackInfo":
        return cls(
            is_active=status.is_active,
            attack_id=status.attack_id,
            description=status.description,
            targets=list(status.targets),
        )


class RecordResponse(ApiModel):
    timestamp_data: RecordPayload
    prev_timestamp_data: Optional[RecordPayload] = None
    changes: Dict[str, Optional[float]] = Field(default_factory=dict)
    attack_info: AttackInfo

    @field_serializer("changes")
    def serialize_changes(self, changes: Dict[str, Optional[float]]) -> Dict[str, Optional[float]]:
        return {key: _finite_or_none(value) for key, value in changes.items()}

    @classmethod
    def from_view(cls, view: RecordView) -> "RecordResponse":
        previous = view.previous
        return cls(
            timestamp_data=RecordPayload.from_record(view.record),
            prev_timestamp_data=RecordPayload.from_record(previous) if previous else None,
            changes=dict(view.changes),
            attack_info=AttackInfo.from_status(view.attack),
        )


class TimestampMatchResponse(ApiModel):
    index: int = Field(..., ge=0)
    timestamp: str

    @classmethod
    def from_match(cls, match: TimestampMatch) -> "TimestampMatchResponse":
        return cls(index=match.index, timestamp=match.timestamp)


class HistoryPointResponse(ApiModel):
    js_timestamp: int
    value: Optional[float] = None

    @field_serializer("value")
    def serialize_value(self, value: Optional[float]) -> Optional[float]:
        return _finite_or_none(value)

    @classmethod
    def from_point(cls, point: HistoryPoint) -> "HistoryPointResponse":
        return cls(js_timestamp=point.timestamp_ms, value=point.value)


class AttackSummary(ApiModel):
    """Catalog entry; ``start_time`` can be sent straight back to ``by-timestamp``."""

    id: str
    description: str
    start_time: str
    end_time: str
    js_start_timestamp: int
    js_end_timestamp: int
    targets: List[str] = Field(default_factory=list)

    @classmethod
    def from_interval(cls, interval: AttackInterval) -> "AttackSummary":
        return cls(
            id=interval.attack_id,
            description=interval.description,
            start_time=format_timestamp(interval.start),
            end_time=format_timestamp(interval.end),
            js_start_timestamp=epoch_millis(interval.start),
            js_end_timestamp=epoch_millis(interval.end),
            targets=list(interval.targets),
        )


class HealthResponse(BaseModel):
    status: str
    dataset: str
    detail: Optional[str] = None
