from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Closed set of account roles used for authorization."""

    STUDENT = "student"
    LECTURER = "lecturer"
    ADMIN = "admin"


class AttendanceState(str, Enum):
    """Lifecycle of one attendance record. Validated is terminal."""

    MARKED = "marked"
    VALIDATED = "validated"


class ValidationPolicy(str, Enum):
    """How a record becomes Marked before a lecturer validates it.

    REQUIRE_MARK: the student must have marked attendance first.
    LECTURER_DIRECT: the lecturer may validate without a prior mark; the record
    is created on the spot with marked_at = validated_at.
    """

    REQUIRE_MARK = "require_mark"
    LECTURER_DIRECT = "lecturer_direct"


class BadgeStatus(str, Enum):
    ISSUED = "issued"
    PENDING = "pending"
