"""Caller identity passed explicitly into every service operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .core.enums import RoleName
from .core.exceptions import UnauthorizedException


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller.

    Built once per request from the bearer token and the user's row; the
    role is not re-read for the rest of the request.
    """

    user_id: str
    role: RoleName
    email: str = ""

    @property
    def id(self) -> str:
        return self.user_id

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT

    @property
    def is_mentor(self) -> bool:
        return self.role == RoleName.MENTOR

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN


def require_principal(principal: Optional[Principal]) -> Principal:
    """Return the caller or raise ``UnauthorizedException`` when there is none."""
    if principal is None:
        raise UnauthorizedException("Authentication required")
    return principal
