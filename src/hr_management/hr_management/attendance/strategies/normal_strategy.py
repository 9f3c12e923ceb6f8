from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time arrival, departure after an arrival."""

    def decide_arrival(self, *, at: datetime, record: AttendanceRecord) -> StatusDecision:
        if record.check_out_time is not None:
            return StatusDecision(status=record.status)
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_departure(self, *, at: datetime, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
