from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Storage for attendance records.

    Implementations must reject a second validated record for the same
    (class_id, student, UTC day), raising AlreadyValidatedError.
    """

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_mark(self, *, class_id: str, student: str, marked_at: datetime) -> AttendanceRecord:
        raise NotImplementedError

    def create_validated(self, *, class_id: str, student: str, validated_at: datetime) -> AttendanceRecord:
        """Insert a record that is validated from the start (marked_at = validated_at)."""

        raise NotImplementedError

    def find_latest_pending(self, *, class_id: str, student: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_validated_on_day(self, *, class_id: str, student: str, day: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def mark_validated(self, *, attendance_id: int, validated_at: datetime) -> AttendanceRecord:
        """Flip an unvalidated record to validated.

        Raises NotFoundError if absent, InvalidStateError if already validated,
        AlreadyValidatedError if another record holds that day's validation.
        """

        raise NotImplementedError

    def set_badge_ref(self, *, attendance_id: int, badge_ref: str) -> bool:
        raise NotImplementedError

    def list_for_class(self, *, class_id: str, limit: int) -> Sequence[AttendanceRecord]:
        """Newest first by validated_at, falling back to marked_at."""

        raise NotImplementedError

    def list_for_student(self, *, student: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_by_class_for_student(self, *, student: str) -> dict[str, tuple[int, int, int]]:
        """Per class_id: (total, attended, validated) over every record of the student."""

        raise NotImplementedError

    def list_badged_for_student(self, *, student: str) -> Sequence[AttendanceRecord]:
        """All of the student's records carrying a badge reference, newest first."""

        raise NotImplementedError

    def list_missing_badges(self, *, limit: int) -> Sequence[AttendanceRecord]:
        """Validated records whose badge was never issued, oldest first."""

        raise NotImplementedError
