from __future__ import annotations

from datetime import datetime

from ...core.constants import LATE_NOTE
from ...core.enums import AttendanceStatus
from ..model import AttendanceRecord
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Arrival after the cutoff."""

    def decide_arrival(self, *, at: datetime, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, note=LATE_NOTE)

    def decide_departure(self, *, at: datetime, record: AttendanceRecord) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
