from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Identity


class IdentityRepository(Protocol):
    """Repository interface for accounts.

    Note (DIP): services depend on this interface, not on a concrete database.
    Addresses passed in are already normalized to lowercase.
    """

    def get_by_address(self, address: str) -> Optional[Identity]:
        raise NotImplementedError

    def create(self, identity: Identity) -> None:
        raise NotImplementedError

    def replace(self, identity: Identity) -> bool:
        """Overwrite the stored account (including its role) with `identity`."""

        raise NotImplementedError

    def delete(self, address: str) -> bool:
        raise NotImplementedError

    def is_referenced(self, address: str) -> bool:
        """True while a class or attendance record still points at this account."""

        raise NotImplementedError

    def list_all(self, *, role: Optional[Role] = None) -> Sequence[Identity]:
        raise NotImplementedError
