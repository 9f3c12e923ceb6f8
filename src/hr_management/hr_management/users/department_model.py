from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Department:
    dept_id: int
    name: str
    manager_id: Optional[int] = None
    member_ids: FrozenSet[int] = field(default_factory=frozenset)
