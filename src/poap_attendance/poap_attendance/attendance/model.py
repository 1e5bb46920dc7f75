from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import AttendanceState, BadgeStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance claim for one class.

    References class and student by identifier only. Once `validated` is set
    the record never changes again, except for attaching the badge reference.
    """

    attendance_id: int
    class_id: str
    student: str
    marked_at: Optional[datetime]
    validated: bool = False
    validated_at: Optional[datetime] = None
    badge_ref: Optional[str] = None

    @property
    def state(self) -> AttendanceState:
        return AttendanceState.VALIDATED if self.validated else AttendanceState.MARKED

    @property
    def badge_status(self) -> Optional[BadgeStatus]:
        if not self.validated:
            return None
        return BadgeStatus.ISSUED if self.badge_ref else BadgeStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "classId": self.class_id,
            "student": self.student,
            "markedAt": to_iso(self.marked_at),
            "validated": self.validated,
            "validatedAt": to_iso(self.validated_at),
            "badgeRef": self.badge_ref,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class ClassAttendanceStats:
    """Read-model: a student's attendance totals in one class."""

    class_id: str
    class_title: str
    total: int
    attended: int
    validated: int

    def to_dict(self) -> dict:
        return {
            "classId": self.class_id,
            "classTitle": self.class_title,
            "total": self.total,
            "attended": self.attended,
            "validated": self.validated,
        }
