"""
Request-scoped authentication dependencies.

Every request gets its own database session (db.get_session) and resolves the
caller from the `Authorization: Bearer <session token>` header.
"""

import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from exceptions.auth import SessionTokenException, AdminRequiredException
from models.user import UserDTO
from services.user import UserService

logger = logging.getLogger(__name__)


def extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_optional_user(request: Request, session: AsyncSession = Depends(get_session)) -> UserDTO | None:
    """The signed-in user, or None for anonymous and invalid-token callers."""
    token = extract_bearer_token(request)
    if token is None:
        return None
    try:
        return await UserService.authenticate(token, session)
    except SessionTokenException as e:
        logger.info(f"Ignoring invalid session token: {e.reason}")
        return None


async def get_current_user(request: Request, session: AsyncSession = Depends(get_session)) -> UserDTO:
    token = extract_bearer_token(request)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        return await UserService.authenticate(token, session)
    except SessionTokenException as e:
        logger.warning(f"Rejected session token: {e.reason}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_current_admin(user: UserDTO = Depends(get_current_user),
                            session: AsyncSession = Depends(get_session)) -> UserDTO:
    try:
        return await UserService.require_admin(user, session)
    except AdminRequiredException:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
