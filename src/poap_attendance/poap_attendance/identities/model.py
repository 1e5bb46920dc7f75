from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from ..core.enums import Role


@dataclass(frozen=True)
class StudentIdentity:
    """Account holding the student role.

    Identities are a closed sum: Student | Lecturer | Admin, sharing the
    (address, name) header. Role-specific fields stay on their own variant.
    """

    address: str
    name: str
    student_number: Optional[str] = None
    graduation_date: Optional[date] = None


@dataclass(frozen=True)
class LecturerIdentity:
    address: str
    name: str
    department: Optional[str] = None


@dataclass(frozen=True)
class AdminIdentity:
    address: str
    name: str
    is_super_admin: bool = False


Identity = Union[StudentIdentity, LecturerIdentity, AdminIdentity]

_ROLE_BY_TYPE: dict[type, Role] = {
    StudentIdentity: Role.STUDENT,
    LecturerIdentity: Role.LECTURER,
    AdminIdentity: Role.ADMIN,
}

# Adding a Role member without a variant here fails at import time.
if set(_ROLE_BY_TYPE.values()) != set(Role):
    raise RuntimeError("every Role needs an Identity variant")


def role_of(identity: Identity) -> Role:
    try:
        return _ROLE_BY_TYPE[type(identity)]
    except KeyError:
        raise TypeError(f"Unknown identity variant: {type(identity)!r}") from None


def build_identity(
    *,
    address: str,
    name: str,
    role: Role,
    student_number: Optional[str] = None,
    graduation_date: Optional[date] = None,
    department: Optional[str] = None,
    is_super_admin: bool = False,
) -> Identity:
    """Construct the variant for `role`, dropping fields that belong to other roles."""
    if role is Role.STUDENT:
        return StudentIdentity(
            address=address,
            name=name,
            student_number=student_number,
            graduation_date=graduation_date,
        )
    if role is Role.LECTURER:
        return LecturerIdentity(address=address, name=name, department=department)
    if role is Role.ADMIN:
        return AdminIdentity(address=address, name=name, is_super_admin=bool(is_super_admin))
    raise ValueError(f"Unsupported role: {role!r}")


def identity_to_dict(identity: Identity) -> dict:
    role = role_of(identity)
    out: dict = {"address": identity.address, "name": identity.name, "role": role.value}
    if isinstance(identity, StudentIdentity):
        out["studentNumber"] = identity.student_number
        out["graduationDate"] = identity.graduation_date.isoformat() if identity.graduation_date else None
    elif isinstance(identity, LecturerIdentity):
        out["department"] = identity.department
    elif isinstance(identity, AdminIdentity):
        out["isSuperAdmin"] = identity.is_super_admin
    return out
