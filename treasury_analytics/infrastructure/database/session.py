"""Async database engine and session factory"""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from treasury_analytics.config import settings


def build_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Create an async engine; pre-ping drops stale pooled connections"""
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.database_echo if echo is None else echo,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


engine = build_engine()

SessionLocal = build_session_factory(engine)


def get_session_factory() -> async_sessionmaker:
    """Dependency injection for the session factory; repositories open one session per query"""
    return SessionLocal
