from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..classes.service import EnrollmentRegistry
from ..common.datetime_utils import utc_now
from ..common.validators import normalize_address, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import AuthorizationError, NotFoundError
from ..identities.model import Identity
from .model import AttendanceRecord, ClassAttendanceStats
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Owns attendance records; every mutation goes through here."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        registry: EnrollmentRegistry,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._attendance = attendance
        self._registry = registry
        self._clock = clock

    def mark_attendance(self, class_id: str, student: str, at: Optional[datetime] = None) -> AttendanceRecord:
        """Student self-report. Repeat marks before validation are all kept."""
        class_id = require_non_empty(class_id, "classId")
        student = normalize_address(student, "student")

        if not self._registry.is_enrolled(class_id, student):
            raise AuthorizationError("Student is not enrolled in this class")

        record = self._attendance.create_mark(class_id=class_id, student=student, marked_at=at or self._clock())
        logger.info("Attendance marked: class=%s student=%s id=%s", class_id, student, record.attendance_id)
        return record

    def find_pending(self, class_id: str, student: str) -> Optional[AttendanceRecord]:
        return self._attendance.find_latest_pending(class_id=class_id, student=student)

    def find_pending_for_validation(self, class_id: str, student: str) -> AttendanceRecord:
        record = self.find_pending(class_id, student)
        if not record:
            raise NotFoundError("No pending attendance to validate")
        return record

    def find_validated_today(self, class_id: str, student: str, today: date) -> Optional[AttendanceRecord]:
        return self._attendance.find_validated_on_day(class_id=class_id, student=student, day=today)

    def record_validation(self, attendance_id: int, validated_at: datetime) -> AttendanceRecord:
        record = self._attendance.mark_validated(attendance_id=int(attendance_id), validated_at=validated_at)
        logger.info("Attendance validated: id=%s at=%s", record.attendance_id, validated_at.isoformat())
        return record

    def record_direct_validation(self, class_id: str, student: str, validated_at: datetime) -> AttendanceRecord:
        record = self._attendance.create_validated(class_id=class_id, student=student, validated_at=validated_at)
        logger.info("Attendance recorded validated: class=%s student=%s id=%s", class_id, student, record.attendance_id)
        return record

    def attach_badge(self, attendance_id: int, badge_ref: str) -> bool:
        return self._attendance.set_badge_ref(attendance_id=int(attendance_id), badge_ref=badge_ref)

    def missing_badges(self, limit: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_missing_badges(limit=int(limit))

    def list_for_class(self, class_id: str, viewer: Identity, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        class_id = require_non_empty(class_id, "classId")
        if not self._registry.is_member(class_id, viewer.address):
            raise AuthorizationError("Not authorized to view attendance")
        return self._attendance.list_for_class(class_id=class_id, limit=limit)

    def list_for_student(self, student: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_student(student=normalize_address(student), limit=limit)

    def stats_for_student(self, student: str) -> list[ClassAttendanceStats]:
        counts = self._attendance.count_by_class_for_student(student=normalize_address(student))

        out: list[ClassAttendanceStats] = []
        for class_id, (total, attended, validated) in sorted(counts.items()):
            try:
                title = self._registry.get_class(class_id).title
            except NotFoundError:
                title = class_id
            out.append(
                ClassAttendanceStats(
                    class_id=class_id,
                    class_title=title,
                    total=total,
                    attended=attended,
                    validated=validated,
                )
            )
        return out

    def badges_for_student(self, student: str) -> Sequence[AttendanceRecord]:
        return self._attendance.list_badged_for_student(student=normalize_address(student))
