from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import DATABASE_URL

Base = declarative_base()


def build_engine(url: str = DATABASE_URL, **kwargs) -> AsyncEngine:
    return create_async_engine(url, pool_pre_ping=True, **kwargs)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, expire_on_commit=False)


engine = build_engine()
SessionLocal = build_session_factory(engine)


async def create_db(bind: AsyncEngine = engine):
    # model must be imported so its table is registered on Base.metadata
    from models.site_db_model import SiteDB  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
