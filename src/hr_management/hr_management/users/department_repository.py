from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .department_model import Department


class DepartmentRepository(Protocol):
    def list_all(self) -> Sequence[Department]:
        raise NotImplementedError

    def get_by_id(self, dept_id: int) -> Optional[Department]:
        raise NotImplementedError

    def get_managed_by(self, manager_id: int) -> Optional[Department]:
        """Department led by ``manager_id`` (at most one)."""

        raise NotImplementedError

    def set_manager(self, dept_id: int, manager_id: Optional[int]) -> bool:
        raise NotImplementedError

    def add_member(self, dept_id: int, employee_id: int) -> bool:
        raise NotImplementedError

    def remove_member(self, dept_id: int, employee_id: int) -> bool:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Department]:
        raise NotImplementedError

    def create(self, name: str) -> int:
        raise NotImplementedError

    def rename(self, dept_id: int, name: str) -> bool:
        raise NotImplementedError

    def delete(self, dept_id: int) -> bool:
        """Drop the department and its membership rows; members keep their accounts."""

        raise NotImplementedError
