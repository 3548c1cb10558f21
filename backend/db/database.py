from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def build_engine(
    database_url: str,
    *,
    echo: bool = False,
    isolation_level: Optional[str] = None,
) -> AsyncEngine:
    kwargs = {"echo": echo}
    if isolation_level:
        kwargs["isolation_level"] = isolation_level
    return create_async_engine(database_url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine):
    # every model module has to be imported before create_all
    from db import item, store  # noqa: F401
    from db.inventory import flow, record  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    session_maker = request.app.state.session_maker
    async with session_maker() as session:
        yield session
