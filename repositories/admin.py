from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from models.admin import Admin


class AdminRepository:
    @staticmethod
    async def is_admin(user_id: str, session: AsyncSession) -> bool:
        stmt = select(Admin.user_id).where(Admin.user_id == user_id)
        admin = await session_execute(stmt, session)
        return admin.scalar() is not None

    @staticmethod
    async def create(user_id: str, session: AsyncSession) -> None:
        session.add(Admin(user_id=user_id))
        await session_flush(session)
