from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from homebase.models.profile_picture import (
    DEFAULT_AVATAR_CATEGORY,
    DEFAULT_AVATAR_ID,
    DEFAULT_AVATAR_NAME,
    DEFAULT_AVATAR_URL,
    ProfilePicture,
)

DEFAULT_PROFILE_PICTURES = [
    ("Default Avatar 1", "/images/avatars/avatar1.jpg", "avatar"),
    ("Default Avatar 2", "/images/avatars/avatar2.jpg", "avatar"),
    ("Default Avatar 3", "/images/avatars/avatar3.jpg", "avatar"),
    ("Default Avatar 4", "/images/avatars/avatar4.jpg", "avatar"),
    ("Default Avatar 5", "/images/avatars/avatar5.png", "avatar"),
    ("Cat", "/images/avatars/cat.png", "animal"),
    ("Dog", "/images/avatars/dog.png", "animal"),
    ("Rabbit", "/images/avatars/rabbit.png", "animal"),
    ("Fox", "/images/avatars/fox.png", "animal"),
    ("Smiley Face", "/images/avatars/smiley.png", "funny"),
    ("Cool Face", "/images/avatars/cool.png", "funny"),
    ("Thinking Face", "/images/avatars/thinking.png", "funny"),
]


def default_avatar() -> ProfilePicture:
    """Unsaved stand-in returned for users without a picture."""
    return ProfilePicture(
        id=DEFAULT_AVATAR_ID,
        name=DEFAULT_AVATAR_NAME,
        image_url=DEFAULT_AVATAR_URL,
        category=DEFAULT_AVATAR_CATEGORY,
    )


async def seed_profile_pictures(session: AsyncSession) -> int:
    existing_result = await session.execute(select(ProfilePicture.image_url))
    existing_urls = set(existing_result.scalars().all())

    created = 0
    for name, image_url, category in DEFAULT_PROFILE_PICTURES:
        if image_url in existing_urls:
            continue
        session.add(ProfilePicture(name=name, image_url=image_url, category=category))
        created += 1

    if created:
        await session.flush()
    return created


async def list_profile_pictures(session: AsyncSession) -> list[ProfilePicture]:
    result = await session.execute(
        select(ProfilePicture).order_by(ProfilePicture.created_at.asc(), ProfilePicture.id.asc())
    )
    return list(result.scalars().all())


async def get_profile_picture(
    session: AsyncSession,
    picture_id: int | None,
) -> ProfilePicture | None:
    if not picture_id:
        return None
    result = await session.execute(
        select(ProfilePicture).where(ProfilePicture.id == picture_id)
    )
    return result.scalar_one_or_none()
