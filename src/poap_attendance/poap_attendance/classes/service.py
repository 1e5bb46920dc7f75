from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import normalize_address, require_non_empty
from ..core.exceptions import AuthorizationError, NotFoundError
from ..identities.model import AdminIdentity, Identity, LecturerIdentity, StudentIdentity
from ..identities.repository import IdentityRepository
from .model import Class
from .repository import ClassRepository

logger = logging.getLogger(__name__)


class EnrollmentRegistry:
    """Owns classes and their enrolled-student sets.

    Nothing else mutates enrollment; the validation workflow only uses the
    read predicates `is_enrolled` and `is_owner`.
    """

    def __init__(self, classes: ClassRepository, identities: IdentityRepository):
        self._classes = classes
        self._identities = identities

    def _require_class(self, class_id: str) -> Class:
        klass = self._classes.get(require_non_empty(class_id, "classId"))
        if not klass:
            raise NotFoundError("Class not found")
        return klass

    def _require_owned(self, class_id: str, lecturer: str) -> Class:
        klass = self._require_class(class_id)
        if klass.lecturer != normalize_address(lecturer):
            raise AuthorizationError("Only the class lecturer can manage this class")
        return klass

    def create_class(
        self,
        lecturer: str,
        class_id: str,
        title: str,
        *,
        description: Optional[str] = None,
    ) -> Class:
        lecturer = normalize_address(lecturer)
        class_id = require_non_empty(class_id, "classId")
        title = require_non_empty(title, "title")

        owner = self._identities.get_by_address(lecturer)
        if not isinstance(owner, LecturerIdentity):
            raise AuthorizationError("Class owner must have the lecturer role")

        klass = self._classes.create(
            class_id=class_id,
            title=title,
            lecturer=lecturer,
            description=(description or "").strip() or None,
        )
        logger.info("Class %s created for lecturer %s", class_id, lecturer)
        return klass

    def create_class_as(
        self,
        actor: Identity,
        class_id: str,
        title: str,
        *,
        description: Optional[str] = None,
        lecturer: Optional[str] = None,
    ) -> Class:
        """Lecturers create their own classes; admins provision on a lecturer's behalf."""
        if isinstance(actor, LecturerIdentity):
            owner = actor.address
        elif isinstance(actor, AdminIdentity):
            if not lecturer:
                raise AuthorizationError("Admin must name the lecturer who owns the class")
            owner = lecturer
        else:
            raise AuthorizationError("Access denied. lecturer or admin role required.")
        return self.create_class(owner, class_id, title, description=description)

    def update_class(self, class_id: str, lecturer: str, *, title: Optional[str], description: Optional[str]) -> Class:
        klass = self._require_owned(class_id, lecturer)
        new_title = require_non_empty(title, "title") if title is not None else klass.title
        new_description = (description.strip() or None) if description is not None else klass.description
        self._classes.update_details(class_id=klass.class_id, title=new_title, description=new_description)
        return self._require_class(klass.class_id)

    def enroll(self, class_id: str, lecturer: str, student: str) -> None:
        klass = self._require_owned(class_id, lecturer)
        student = normalize_address(student, "studentAddress")

        if not isinstance(self._identities.get_by_address(student), StudentIdentity):
            raise NotFoundError("Student not found")

        if student in klass.students:
            return
        self._classes.add_student(class_id=klass.class_id, student=student)
        logger.info("Enrolled %s in %s", student, klass.class_id)

    def unenroll(self, class_id: str, lecturer: str, student: str) -> None:
        klass = self._require_owned(class_id, lecturer)
        student = normalize_address(student, "studentAddress")

        if student not in klass.students:
            return
        self._classes.remove_student(class_id=klass.class_id, student=student)
        logger.info("Removed %s from %s", student, klass.class_id)

    def delete_class(self, class_id: str, lecturer: str) -> None:
        klass = self._require_owned(class_id, lecturer)
        self._classes.delete(klass.class_id)
        logger.info("Class %s deleted by %s", klass.class_id, klass.lecturer)

    def update_student_details(
        self,
        class_id: str,
        lecturer: str,
        student: str,
        *,
        name: Optional[str] = None,
        student_number: Optional[str] = None,
    ) -> StudentIdentity:
        """Lecturer correction of an enrolled student's name or student number."""
        klass = self._require_owned(class_id, lecturer)
        student = normalize_address(student, "studentAddress")
        if student not in klass.students:
            raise NotFoundError("Student not enrolled in this class")

        current = self._identities.get_by_address(student)
        if not isinstance(current, StudentIdentity):
            raise NotFoundError("Student not found")

        updated = StudentIdentity(
            address=current.address,
            name=require_non_empty(name, "name") if name is not None else current.name,
            student_number=(student_number or "").strip() or current.student_number,
            graduation_date=current.graduation_date,
        )
        self._identities.replace(updated)
        logger.info("Student %s details updated in %s", student, klass.class_id)
        return updated

    def is_enrolled(self, class_id: str, student: str) -> bool:
        return self._classes.is_enrolled(class_id=class_id, student=student.strip().lower())

    def is_owner(self, class_id: str, identity: str) -> bool:
        klass = self._classes.get(class_id)
        return bool(klass and klass.lecturer == identity.strip().lower())

    def is_member(self, class_id: str, identity: str) -> bool:
        return self.is_owner(class_id, identity) or self.is_enrolled(class_id, identity)

    def get_class(self, class_id: str) -> Class:
        return self._require_class(class_id)

    def get_class_for(self, class_id: str, viewer: Identity) -> Class:
        klass = self._require_class(class_id)
        if isinstance(viewer, AdminIdentity):
            return klass
        if viewer.address != klass.lecturer and viewer.address not in klass.students:
            raise AuthorizationError("Not authorized to view this class")
        return klass

    def list_classes_for(self, address: str) -> Sequence[Class]:
        return self._classes.list_for_member(normalize_address(address))
