from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, DateTime, func

from models.base import Base, generate_uuid


class User(Base):
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String, nullable=True, unique=True)
    full_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=func.now())


class UserDTO(BaseModel):
    id: str | None = None
    email: str | None = None
    full_name: str | None = None
    created_at: datetime | None = None
