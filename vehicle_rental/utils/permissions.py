"""Single authorization check used by the booking, deal, vehicle and admin services."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import ForbiddenError
from .constants import Role


class Capability(Enum):
    OWNER = "owner"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as handed over by the identity layer."""
    user_id: int
    role: str = Role.USER
    username: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has(self, capability: Capability, owner_id: Optional[int] = None) -> bool:
        if self.is_admin:
            return True
        if capability is Capability.OWNER:
            return owner_id is not None and owner_id == self.user_id
        return False


def authorize(principal: Optional[Principal], capability: Capability,
              owner_id: Optional[int] = None, message: str | None = None) -> Principal:
    """Raise ForbiddenError unless `principal` holds `capability`."""
    if principal is None or not principal.has(capability, owner_id):
        raise ForbiddenError(message)
    return principal
