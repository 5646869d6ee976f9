from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, ForeignKey, DateTime, func

from models.base import Base


# Membership in this table grants access to the /admin API
class Admin(Base):
    __tablename__ = 'admins'

    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    created_at = Column(DateTime, default=func.now())


class AdminDTO(BaseModel):
    user_id: str | None = None
    created_at: datetime | None = None
