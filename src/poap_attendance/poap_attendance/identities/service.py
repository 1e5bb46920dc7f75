from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.validators import normalize_address, require_non_empty
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .model import AdminIdentity, Identity, StudentIdentity, build_identity, role_of
from .oracle import SignatureOracle
from .repository import IdentityRepository

logger = logging.getLogger(__name__)


def parse_role(value: str) -> Role:
    try:
        return Role(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("Invalid role") from None


class IdentityResolver:
    """Maps an authenticated address to its current Identity.

    Every other component asks this resolver; the role is re-read on each call
    so an administrative role change applies to the next request.
    """

    def __init__(self, identities: IdentityRepository):
        self._identities = identities

    def resolve(self, address: str) -> Identity:
        identity = self._identities.get_by_address(normalize_address(address))
        if not identity:
            raise AuthenticationError("Account not registered")
        return identity

    def find(self, address: str) -> Optional[Identity]:
        return self._identities.get_by_address(normalize_address(address))

    def require_role(self, address: str, *roles: Role) -> Identity:
        identity = self.resolve(address)
        if role_of(identity) not in roles:
            raise AuthorizationError(f"Access denied. {' or '.join(r.value for r in roles)} role required.")
        return identity


class AuthService:
    """Use case: wallet-signature login."""

    def __init__(self, oracle: SignatureOracle, resolver: IdentityResolver):
        self._oracle = oracle
        self._resolver = resolver

    def login(self, *, address: str, message: str, signature: str) -> Identity:
        claimed = normalize_address(address)
        require_non_empty(message, "message")
        require_non_empty(signature, "signature")

        recovered = self._oracle.verify(address=claimed, message=message, signature=signature)
        if recovered.strip().lower() != claimed:
            raise AuthenticationError("Invalid signature")

        identity = self._resolver.resolve(claimed)
        logger.info("Login %s as %s", claimed, role_of(identity).value)
        return identity


class AccountService:
    """Use case: manage accounts (admin provisioning, role reassignment)."""

    def __init__(self, identities: IdentityRepository):
        self._identities = identities

    @staticmethod
    def _require_admin(actor: Identity) -> None:
        if not isinstance(actor, AdminIdentity):
            raise AuthorizationError("Access denied. admin role required.")

    def create_account(
        self,
        *,
        actor: Identity,
        address: str,
        name: str,
        role: Role,
        student_number: Optional[str] = None,
        graduation_date: Optional[date] = None,
        department: Optional[str] = None,
    ) -> Identity:
        self._require_admin(actor)
        address = normalize_address(address)
        name = require_non_empty(name, "name")

        if self._identities.get_by_address(address):
            raise ConflictError("Account already exists")

        identity = build_identity(
            address=address,
            name=name,
            role=role,
            student_number=(student_number or "").strip() or None,
            graduation_date=graduation_date,
            department=(department or "").strip() or None,
        )
        self._identities.create(identity)
        logger.info("Account %s created with role %s by %s", address, role.value, actor.address)
        return identity

    def assign_role(self, *, actor: Identity, address: str, role: Role) -> Identity:
        self._require_admin(actor)
        address = normalize_address(address)

        current = self._identities.get_by_address(address)
        if not current:
            raise NotFoundError("Account not found")
        if role_of(current) == role:
            return current

        student_number = current.student_number if isinstance(current, StudentIdentity) else None
        updated = build_identity(address=address, name=current.name, role=role, student_number=student_number)
        self._identities.replace(updated)
        logger.info("Account %s role %s -> %s by %s", address, role_of(current).value, role.value, actor.address)
        return updated

    def delete_account(self, *, actor: Identity, address: str) -> None:
        self._require_admin(actor)
        address = normalize_address(address)

        if address == actor.address:
            raise ValidationError("Cannot delete your own account")
        if not self._identities.get_by_address(address):
            raise NotFoundError("Account not found")
        if self._identities.is_referenced(address):
            raise ConflictError("Account is still referenced by classes or attendance records")

        self._identities.delete(address)
        logger.info("Account %s deleted by %s", address, actor.address)

    def list_accounts(self, *, actor: Identity, role: Optional[Role] = None) -> Sequence[Identity]:
        self._require_admin(actor)
        return self._identities.list_all(role=role)

    def update_profile(
        self,
        *,
        actor: Identity,
        name: Optional[str] = None,
        student_number: Optional[str] = None,
        graduation_date: Optional[date] = None,
    ) -> Identity:
        """Self-service edit of display fields. The role is never touched here."""
        new_name = require_non_empty(name, "name") if name is not None else actor.name
        if isinstance(actor, StudentIdentity):
            updated: Identity = StudentIdentity(
                address=actor.address,
                name=new_name,
                student_number=(student_number or "").strip() or actor.student_number,
                graduation_date=graduation_date or actor.graduation_date,
            )
        else:
            updated = build_identity(
                address=actor.address,
                name=new_name,
                role=role_of(actor),
                department=getattr(actor, "department", None),
                is_super_admin=getattr(actor, "is_super_admin", False),
            )
        self._identities.replace(updated)
        return updated
