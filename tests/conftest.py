from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import date, datetime
from types import SimpleNamespace
from typing import Optional
from unittest.mock import MagicMock

import pytest

from src.poap_attendance.poap_attendance.attendance.model import AttendanceRecord
from src.poap_attendance.poap_attendance.badges.gateway import BadgeReceipt
from src.poap_attendance.poap_attendance.classes.model import Class
from src.poap_attendance.poap_attendance.container import wire
from src.poap_attendance.poap_attendance.core.enums import ValidationPolicy
from src.poap_attendance.poap_attendance.core.exceptions import (
    AlreadyValidatedError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from src.poap_attendance.poap_attendance.identities.model import (
    AdminIdentity,
    LecturerIdentity,
    StudentIdentity,
    role_of,
)

ADMIN = "0x00000000000000000000000000000000000000a1"
LECTURER = "0x00000000000000000000000000000000000000b1"
OTHER_LECTURER = "0x00000000000000000000000000000000000000b2"
STUDENT = "0x00000000000000000000000000000000000000c1"
OTHER_STUDENT = "0x00000000000000000000000000000000000000c2"


class InMemoryIdentities:
    def __init__(self):
        self._by_address = {}
        self.referenced: set[str] = set()

    def get_by_address(self, address):
        return self._by_address.get(address)

    def create(self, identity):
        self._by_address[identity.address] = identity

    def replace(self, identity):
        if identity.address not in self._by_address:
            return False
        self._by_address[identity.address] = identity
        return True

    def delete(self, address):
        return self._by_address.pop(address, None) is not None

    def is_referenced(self, address):
        return address in self.referenced

    def list_all(self, *, role=None):
        items = [i for i in self._by_address.values() if role is None or role_of(i) == role]
        return sorted(items, key=lambda i: i.name)


class InMemoryClasses:
    def __init__(self, attendance=None):
        self._classes: dict[str, Class] = {}
        self._attendance = attendance

    def get(self, class_id):
        return self._classes.get(class_id)

    def create(self, *, class_id, title, lecturer, description=None):
        if class_id in self._classes:
            raise ConflictError(f"Class '{class_id}' already exists")
        self._classes[class_id] = Class(class_id=class_id, title=title, lecturer=lecturer, description=description)
        return self._classes[class_id]

    def update_details(self, *, class_id, title, description):
        klass = self._classes.get(class_id)
        if not klass:
            return False
        self._classes[class_id] = replace(klass, title=title, description=description)
        return True

    def delete(self, class_id):
        if self._attendance and any(r.class_id == class_id for r in self._attendance.all()):
            raise ConflictError("Class has attendance records and cannot be deleted")
        return self._classes.pop(class_id, None) is not None

    def add_student(self, *, class_id, student):
        klass = self._classes[class_id]
        self._classes[class_id] = replace(klass, students=klass.students | {student})

    def remove_student(self, *, class_id, student):
        klass = self._classes[class_id]
        self._classes[class_id] = replace(klass, students=klass.students - {student})

    def is_enrolled(self, *, class_id, student):
        klass = self._classes.get(class_id)
        return bool(klass and student in klass.students)

    def list_for_member(self, address):
        return [c for c in self._classes.values() if c.lecturer == address or address in c.students]


class InMemoryAttendance:
    """Mirrors the MySQL unique key on (class_id, student, validated day)."""

    def __init__(self):
        self._records: dict[int, AttendanceRecord] = {}
        self._id = 0
        self._lock = threading.Lock()

    def _validated_on(self, class_id, student, day) -> Optional[AttendanceRecord]:
        for r in self._records.values():
            if r.class_id == class_id and r.student == student and r.validated and r.validated_at.date() == day:
                return r
        return None

    def all(self):
        return list(self._records.values())

    def get(self, attendance_id):
        return self._records.get(attendance_id)

    def create_mark(self, *, class_id, student, marked_at):
        with self._lock:
            self._id += 1
            rec = AttendanceRecord(attendance_id=self._id, class_id=class_id, student=student, marked_at=marked_at)
            self._records[self._id] = rec
            return rec

    def create_validated(self, *, class_id, student, validated_at):
        with self._lock:
            existing = self._validated_on(class_id, student, validated_at.date())
            if existing:
                raise AlreadyValidatedError(existing.validated_at)
            self._id += 1
            rec = AttendanceRecord(
                attendance_id=self._id,
                class_id=class_id,
                student=student,
                marked_at=validated_at,
                validated=True,
                validated_at=validated_at,
            )
            self._records[self._id] = rec
            return rec

    def find_latest_pending(self, *, class_id, student):
        pending = [r for r in self._records.values() if r.class_id == class_id and r.student == student and not r.validated]
        pending.sort(key=lambda r: (r.marked_at, r.attendance_id), reverse=True)
        return pending[0] if pending else None

    def find_validated_on_day(self, *, class_id, student, day: date):
        return self._validated_on(class_id, student, day)

    def mark_validated(self, *, attendance_id, validated_at: datetime):
        with self._lock:
            rec = self._records.get(attendance_id)
            if not rec:
                raise NotFoundError("Attendance record not found")
            if rec.validated:
                raise InvalidStateError(f"Attendance record {attendance_id} is already validated")
            existing = self._validated_on(rec.class_id, rec.student, validated_at.date())
            if existing:
                raise AlreadyValidatedError(existing.validated_at)
            rec = replace(rec, validated=True, validated_at=validated_at)
            self._records[attendance_id] = rec
            return rec

    def set_badge_ref(self, *, attendance_id, badge_ref):
        rec = self._records.get(attendance_id)
        if not rec or not rec.validated or rec.badge_ref:
            return False
        self._records[attendance_id] = replace(rec, badge_ref=badge_ref)
        return True

    def _sorted(self, items, limit):
        items.sort(key=lambda r: (r.validated_at or r.marked_at, r.attendance_id), reverse=True)
        return items[:limit]

    def list_for_class(self, *, class_id, limit):
        return self._sorted([r for r in self._records.values() if r.class_id == class_id], limit)

    def list_for_student(self, *, student, limit):
        return self._sorted([r for r in self._records.values() if r.student == student], limit)

    def count_by_class_for_student(self, *, student):
        counts = {}
        for r in self._records.values():
            if r.student != student:
                continue
            total, attended, validated = counts.get(r.class_id, (0, 0, 0))
            counts[r.class_id] = (total + 1, attended + (r.marked_at is not None), validated + r.validated)
        return counts

    def list_badged_for_student(self, *, student):
        items = [r for r in self._records.values() if r.student == student and r.badge_ref]
        items.sort(key=lambda r: (r.validated_at, r.attendance_id), reverse=True)
        return items

    def list_missing_badges(self, *, limit):
        items = [r for r in self._records.values() if r.validated and not r.badge_ref]
        items.sort(key=lambda r: (r.validated_at, r.attendance_id))
        return items[:limit]


class FakeBadgeGateway:
    def __init__(self):
        self.calls: list[dict] = []
        self.error: Optional[Exception] = None
        self._n = 0
        self._lock = threading.Lock()

    def issue_badge(self, *, recipient, title, role, expiry):
        with self._lock:
            self.calls.append({"recipient": recipient, "title": title, "role": role, "expiry": expiry})
            if self.error is not None:
                raise self.error
            self._n += 1
            return BadgeReceipt(transaction_ref=f"0xtx{self._n}")


@dataclass
class FakeOracle:
    recovered: Optional[str] = None

    def verify(self, *, address, message, signature):
        return self.recovered if self.recovered is not None else address


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def addr():
    return SimpleNamespace(
        admin=ADMIN,
        lecturer=LECTURER,
        other_lecturer=OTHER_LECTURER,
        student=STUDENT,
        other_student=OTHER_STUDENT,
    )


@pytest.fixture
def identities():
    repo = InMemoryIdentities()
    repo.create(AdminIdentity(address=ADMIN, name="Admin"))
    repo.create(LecturerIdentity(address=LECTURER, name="Lecturer", department="CS"))
    repo.create(LecturerIdentity(address=OTHER_LECTURER, name="Other Lecturer"))
    repo.create(StudentIdentity(address=STUDENT, name="Student", student_number="S-1"))
    repo.create(StudentIdentity(address=OTHER_STUDENT, name="Other Student", student_number="S-2"))
    return repo


@pytest.fixture
def classes_repo(attendance_repo):
    return InMemoryClasses(attendance_repo)


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def badges():
    return FakeBadgeGateway()


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def clock():
    return Clock(datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture
def policy():
    return ValidationPolicy.REQUIRE_MARK


@pytest.fixture
def container(identities, classes_repo, attendance_repo, badges, oracle, clock, policy):
    return wire(
        identities_repo=identities,
        classes_repo=classes_repo,
        attendance_repo=attendance_repo,
        oracle=oracle,
        badges=badges,
        policy=policy,
        clock=clock,
    )


@pytest.fixture
def cs101(container):
    """Class CS101 owned by LECTURER with STUDENT enrolled."""
    container.registry.create_class(LECTURER, "CS101", "Intro to CS")
    container.registry.enroll("CS101", LECTURER, STUDENT)
    return container.registry.get_class("CS101")


@pytest.fixture
def mysql_conn():
    """Mocked DatabaseConnection: `connect()` yields one connection with one cursor."""
    cursor = MagicMock()
    cursor.fetchone.return_value = None
    cursor.fetchall.return_value = []
    conn = MagicMock()
    conn.cursor.return_value = cursor
    factory = MagicMock()
    factory.connect.return_value = conn
    return SimpleNamespace(factory=factory, conn=conn, cursor=cursor)
