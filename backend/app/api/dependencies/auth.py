# backend/app/api/dependencies/auth.py
"""
Authentication dependencies.

Resolves the bearer token into a ``Principal`` once per request. A missing
token yields ``None``; every service operation checks the principal itself,
so unauthenticated calls fail inside the service with ``UNAUTHORIZED``.

The user lookup runs in a worker thread (``asyncio.to_thread``) so the sync
DB query does not block the event loop.
"""

import asyncio
import logging
from typing import Optional

from fastapi import Depends
import jwt
from sqlalchemy.orm import Session

from ...auth import decode_access_token, oauth2_scheme_optional
from ...core.enums import RoleName
from ...core.exceptions import UnauthorizedException
from ...principal import Principal
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


async def get_optional_principal(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db),
) -> Optional[Principal]:
    """
    Return the caller for a valid bearer token, or None when no token was sent.

    Raises:
        UnauthorizedException: token invalid/expired, or user missing or inactive
    """
    if not token:
        return None

    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        logger.info(f"Rejected bearer token: {exc}")
        raise UnauthorizedException("Invalid or expired token")

    user_id = str(payload.get("sub") or "")
    user = await asyncio.to_thread(RepositoryFactory.create_user_repository(db).get_active, user_id)
    if user is None:
        raise UnauthorizedException("User not found or inactive")

    try:
        role = RoleName(user.role)
    except ValueError:
        logger.error(f"User {user.id} has unknown role {user.role!r}")
        raise UnauthorizedException("User role not recognised")

    return Principal(user_id=user.id, role=role, email=user.email)
