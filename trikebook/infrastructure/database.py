"""
Async SQLAlchemy engine and session factory for the bookings database.

PostgreSQL + PostGIS through ``asyncpg``.  Pool size, overflow and SQL
echo come from settings (``DB_POOL_SIZE``, ``DB_MAX_OVERFLOW``,
``DB_ECHO``).  Connections are pinged before use.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from trikebook.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the booking tables."""
