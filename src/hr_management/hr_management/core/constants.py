"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

from .enums import LeaveType

DEFAULT_LEAVE_BALANCE = 25
DEFAULT_HISTORY_LIMIT = 200

# Arrivals strictly after this minute are late.
LATE_CUTOFF = time(9, 0)

BALANCE_CONSUMING_TYPES = frozenset({LeaveType.ANNUAL, LeaveType.PAID})

LATE_NOTE = "Late arrival automatically detected by the system"
ABSENCE_NOTE = "Absence automatically recorded by the system"
