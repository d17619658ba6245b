import logging
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from homebase import models as _models  # noqa: F401
from homebase.core.config import get_settings
from homebase.services.profile_pictures import seed_profile_pictures

logger = logging.getLogger(__name__)
settings = get_settings()

engine = create_async_engine(settings.database_url, echo=False, future=True)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with SessionLocal() as session:
        created = await seed_profile_pictures(session)
        await session.commit()
    if created:
        logger.info("Seeded %d profile pictures", created)
