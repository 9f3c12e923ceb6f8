from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from ..common.datetime_utils import is_after_cutoff
from ..core.constants import LATE_CUTOFF
from .model import AttendanceRecord
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    late_cutoff: time = LATE_CUTOFF

    def for_arrival(self, *, at: datetime) -> AttendanceStrategy:
        if is_after_cutoff(at, self.late_cutoff):
            return LateStrategy()
        return NormalStrategy()

    def for_departure(self, *, record: AttendanceRecord) -> AttendanceStrategy:
        if record.check_in_time is None:
            return AbsentStrategy()
        return NormalStrategy()
