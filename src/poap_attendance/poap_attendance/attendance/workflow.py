from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..badges.gateway import BadgeGateway
from ..classes.service import EnrollmentRegistry
from ..common.datetime_utils import utc_now
from ..common.validators import normalize_address, require_non_empty
from ..core.constants import BADGE_NO_EXPIRY, BADGE_ROLE_STUDENT, DEFAULT_RETRY_BATCH
from ..core.enums import BadgeStatus, ValidationPolicy
from ..core.exceptions import (
    AlreadyValidatedError,
    AuthorizationError,
    GatewayError,
    InvalidStateError,
    NotFoundError,
)
from .model import AttendanceRecord
from .service import AttendanceLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOutcome:
    """Validation always committed; badge fields report the side effect."""

    record: AttendanceRecord
    badge_ref: Optional[str] = None
    badge_error: Optional[str] = None

    @property
    def validated_at(self) -> datetime:
        if self.record.validated_at is None:
            raise InvalidStateError(f"Attendance record {self.record.attendance_id} is not validated")
        return self.record.validated_at

    @property
    def badge_status(self) -> BadgeStatus:
        return BadgeStatus.ISSUED if self.badge_ref else BadgeStatus.PENDING


@dataclass(frozen=True)
class RetryReport:
    attempted: int
    issued: int
    failed: int


class ValidationWorkflow:
    """Marked -> Validated transition, then best-effort badge issuance.

    The check-and-commit relies on the ledger's storage uniqueness on
    (class, student, validated day); the badge call happens after the commit
    and its failure never reverts the validation.
    """

    def __init__(
        self,
        registry: EnrollmentRegistry,
        ledger: AttendanceLedger,
        badges: BadgeGateway,
        *,
        policy: ValidationPolicy = ValidationPolicy.REQUIRE_MARK,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._registry = registry
        self._ledger = ledger
        self._badges = badges
        self._policy = policy
        self._clock = clock

    @property
    def policy(self) -> ValidationPolicy:
        return self._policy

    def validate(self, class_id: str, lecturer: str, student: str) -> ValidationOutcome:
        class_id = require_non_empty(class_id, "classId")
        lecturer = normalize_address(lecturer, "lecturer")
        student = normalize_address(student, "studentAddress")

        if not self._registry.is_owner(class_id, lecturer):
            raise AuthorizationError("Not authorized to validate attendance")
        if not self._registry.is_enrolled(class_id, student):
            raise AuthorizationError("Student is not enrolled in this class")

        now = self._clock()
        existing = self._ledger.find_validated_today(class_id, student, now.date())
        if existing and existing.validated_at:
            raise AlreadyValidatedError(existing.validated_at)

        record = self._commit(class_id, student, now)
        badge_ref, badge_error = self._issue_badge(record)
        return ValidationOutcome(record=record, badge_ref=badge_ref, badge_error=badge_error)

    def _commit(self, class_id: str, student: str, now: datetime) -> AttendanceRecord:
        if self._policy is ValidationPolicy.REQUIRE_MARK:
            pending = self._ledger.find_pending_for_validation(class_id, student)
        elif self._policy is ValidationPolicy.LECTURER_DIRECT:
            pending = self._ledger.find_pending(class_id, student)
            if pending is None:
                return self._ledger.record_direct_validation(class_id, student, now)
        else:
            raise ValueError(f"Unsupported validation policy: {self._policy!r}")

        try:
            return self._ledger.record_validation(pending.attendance_id, now)
        except InvalidStateError:
            # Lost a race on the same pending record.
            winner = self._ledger.find_validated_today(class_id, student, now.date())
            if winner and winner.validated_at:
                raise AlreadyValidatedError(winner.validated_at) from None
            logger.error(
                "Attendance %s already validated with no validation today: class=%s student=%s",
                pending.attendance_id,
                class_id,
                student,
            )
            raise

    def _issue_badge(self, record: AttendanceRecord) -> tuple[Optional[str], Optional[str]]:
        try:
            title = self._registry.get_class(record.class_id).title
        except NotFoundError:
            title = record.class_id
        except Exception:
            logger.exception("Class lookup failed for attendance %s", record.attendance_id)
            title = record.class_id

        try:
            receipt = self._badges.issue_badge(
                recipient=record.student,
                title=title,
                role=BADGE_ROLE_STUDENT,
                expiry=BADGE_NO_EXPIRY,
            )
        except GatewayError as e:
            logger.warning("Badge issuance failed for attendance %s: %s", record.attendance_id, e)
            return None, str(e)
        except Exception:
            logger.exception("Badge issuance crashed for attendance %s", record.attendance_id)
            return None, "Badge issuance failed"

        # Validation is committed either way; an unrecorded badge leaves the record pending.
        try:
            self._ledger.attach_badge(record.attendance_id, receipt.transaction_ref)
        except Exception:
            logger.exception(
                "Badge %s issued but not recorded for attendance %s",
                receipt.transaction_ref,
                record.attendance_id,
            )
            return None, "Badge issued but could not be recorded"
        logger.info("Badge issued for attendance %s: %s", record.attendance_id, receipt.transaction_ref)
        return receipt.transaction_ref, None

    def retry_pending_badges(self, *, limit: int = DEFAULT_RETRY_BATCH) -> RetryReport:
        """Re-issue badges for validated records that have none yet."""
        records = self._ledger.missing_badges(limit)
        issued = 0
        for record in records:
            badge_ref, _ = self._issue_badge(record)
            if badge_ref:
                issued += 1
        report = RetryReport(attempted=len(records), issued=issued, failed=len(records) - issued)
        logger.info("Badge retry: %s", report)
        return report
