"""Создает async-движок SQLAlchemy и фабрику сессий."""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _engine_options() -> dict:
    # Уровень изоляции задается только если он явно указан в окружении.
    options: dict = {"echo": False}
    if settings.database_isolation_level:
        options["isolation_level"] = settings.database_isolation_level
    return options


engine = create_async_engine(settings.database_url, **_engine_options())
SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session
