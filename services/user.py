import logging

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit
from exceptions.auth import SessionTokenException, AdminRequiredException
from models.user import UserDTO
from repositories.admin import AdminRepository
from repositories.user import UserRepository
from utils.session_token import validate_session_token, issue_session_token

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    async def authenticate(token: str, session: AsyncSession) -> UserDTO:
        """
        Resolve a bearer session token to its user.

        Raises:
            SessionTokenException: invalid token, or the user no longer exists
        """
        user_id = validate_session_token(token, config.SESSION_SECRET, config.SESSION_MAX_AGE_SECONDS)
        user = await UserRepository.get_by_id(user_id, session)
        if user is None:
            raise SessionTokenException("Unknown user")
        return user

    @staticmethod
    async def is_admin(user_id: str, session: AsyncSession) -> bool:
        return await AdminRepository.is_admin(user_id, session)

    @staticmethod
    async def require_admin(user: UserDTO, session: AsyncSession) -> UserDTO:
        if not await AdminRepository.is_admin(user.id, session):
            logger.warning(f"Admin endpoint refused for user {user.id}")
            raise AdminRequiredException(user.id)
        return user

    @staticmethod
    async def get_or_create(email: str, full_name: str | None, session: AsyncSession) -> UserDTO:
        user = await UserRepository.get_by_email(email, session)
        if user is None:
            await UserRepository.create(UserDTO(email=email, full_name=full_name), session)
            await session_commit(session)
            user = await UserRepository.get_by_email(email, session)
            logger.info(f"User {user.id} created")
        return user

    @staticmethod
    async def grant_admin(user_id: str, session: AsyncSession) -> None:
        if await AdminRepository.is_admin(user_id, session):
            return
        await AdminRepository.create(user_id, session)
        await session_commit(session)
        logger.info(f"User {user_id} granted admin")

    @staticmethod
    def issue_token(user_id: str) -> str:
        return issue_session_token(user_id, config.SESSION_SECRET)
