from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

from sqlalchemy import event, Engine, Result, CursorResult, Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

import config
from models.base import Base

"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.user import User
from models.admin import Admin
from models.category import Category, ProductCategory
from models.product import Product, ProductImage
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem

# SQL echo stays off; SQL loggers are silenced in run.py
sql_echo = False

url = config.DB_URL
if url.startswith("sqlite") and ":memory:" not in url and "///data/" in url:
    data_folder = Path("data")
    if data_folder.exists() is False:
        data_folder.mkdir()

engine = create_async_engine(url, echo=sql_echo)
session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, never shared between requests."""
    async with get_db_session() as session:
        yield session


async def session_execute(stmt, session: AsyncSession) -> Result[Any] | CursorResult[Any]:
    query_result = await session.execute(stmt)
    return query_result


async def session_flush(session: AsyncSession) -> None:
    await session.flush()


async def session_commit(session: AsyncSession) -> None:
    await session.commit()


async def session_rollback(session: AsyncSession) -> None:
    await session.rollback()


async def session_refresh(session: AsyncSession, instance) -> None:
    await session.refresh(instance)


def dialect_insert(table: Table, session: AsyncSession):
    """
    Dialect-specific INSERT that supports ON CONFLICT clauses.

    Only SQLite and PostgreSQL are supported as storage backends.
    """
    dialect_name = session.bind.dialect.name if session.bind is not None else "sqlite"
    if dialect_name == "postgresql":
        return postgresql.insert(table)
    return sqlite.insert(table)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    if "sqlite" not in type(dbapi_connection).__module__:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
