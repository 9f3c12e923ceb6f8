from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """Departure recorded without any arrival."""

    def decide_arrival(self, *, at: datetime, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=record.status)

    def decide_departure(self, *, at: datetime, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT)
