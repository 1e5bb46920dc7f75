from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Class


class ClassRepository(Protocol):
    def get(self, class_id: str) -> Optional[Class]:
        raise NotImplementedError

    def create(self, *, class_id: str, title: str, lecturer: str, description: Optional[str] = None) -> Class:
        """Insert a class. Raises ConflictError when class_id is taken."""

        raise NotImplementedError

    def update_details(self, *, class_id: str, title: str, description: Optional[str]) -> bool:
        raise NotImplementedError

    def delete(self, class_id: str) -> bool:
        """Remove the class and its enrollments.

        Raises ConflictError while attendance records still reference it.
        """

        raise NotImplementedError

    def add_student(self, *, class_id: str, student: str) -> None:
        """Idempotent: adding an enrolled student changes nothing."""

        raise NotImplementedError

    def remove_student(self, *, class_id: str, student: str) -> None:
        """Idempotent: removing a non-enrolled student changes nothing."""

        raise NotImplementedError

    def is_enrolled(self, *, class_id: str, student: str) -> bool:
        raise NotImplementedError

    def list_for_member(self, address: str) -> Sequence[Class]:
        """Classes where `address` is the lecturer or an enrolled student."""

        raise NotImplementedError
