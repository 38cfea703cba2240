from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import BigInteger, Insert, Integer
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from core.config import settings

# SQLite (tests, local runs) does not take pool sizing arguments
_pool_kwargs: dict[str, Any] = (
    {} if settings.database_url.startswith("sqlite") else {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}
)

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.is_development,
    **_pool_kwargs,
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


# Autoincrementing BIGINT key; SQLite only autoincrements INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def insert_or_ignore(db: AsyncSession, model: type[Base], index_elements: list[str], **values: Any) -> Insert:
    """
    Build an INSERT ... ON CONFLICT DO NOTHING for the session's dialect.

    Args:
        db: Session the statement will run on
        model: Mapped class to insert into
        index_elements: Columns of the unique constraint that may conflict
        **values: Column values

    Returns:
        Insert statement; add ``.returning(...)`` to learn whether a row was written
    """
    dialect = postgresql if db.get_bind().dialect.name == "postgresql" else sqlite
    return dialect.insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)


def upsert(
    db: AsyncSession, model: type[Base], index_elements: list[str], update_columns: list[str], **values: Any
) -> Insert:
    """Build an INSERT ... ON CONFLICT DO UPDATE that overwrites ``update_columns`` with the new values."""
    dialect = postgresql if db.get_bind().dialect.name == "postgresql" else sqlite
    stmt = dialect.insert(model).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=index_elements, set_={column: stmt.excluded[column] for column in update_columns}
    )
