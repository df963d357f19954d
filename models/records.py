"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True, slots=True)
class SensorRecord:
    """One row of the SWaT dataset, addressed by its position after sorting."""

    index: int
    instant: datetime
    timestamp: str
    values: Mapping[str, float] = field(default_factory=dict)
    label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AttackInterval:
    """A labelled window during which the listed devices were under attack."""

    attack_id: str
    description: str
    start: datetime
    end: datetime
    targets: Tuple[str, ...] = ()

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end
