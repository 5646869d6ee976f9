from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from models.user import UserDTO, User


class UserRepository:
    @staticmethod
    async def get_by_id(user_id: str, session: AsyncSession) -> UserDTO | None:
        stmt = select(User).where(User.id == user_id)
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        else:
            return user

    @staticmethod
    async def get_by_email(email: str, session: AsyncSession) -> UserDTO | None:
        stmt = select(User).where(User.email == email)
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        else:
            return user

    @staticmethod
    async def create(user_dto: UserDTO, session: AsyncSession) -> str:
        user = User(**user_dto.model_dump(exclude_none=True))
        session.add(user)
        await session_flush(session)
        return user.id
