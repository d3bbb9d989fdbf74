"""
Engine, session factory and declarative base for the blog platform.

One ``AsyncSession`` per request via ``get_db``.  The like ledger upserts
and the ban registry writes issued during a request share its single
transaction, and ``expire_on_commit=False`` lets the routers serialise
view models after the commit.
"""
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.middleware import install_query_counter

# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    """
    Yield one session per request.

    The request owns the transaction: services only flush, and any
    exception (including the domain errors raised by authorization
    checks) rolls back every pending ledger or registry write.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
