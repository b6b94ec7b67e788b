from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import CollaboratorProfile


class ProfileRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_profile(self, user_id: int) -> Optional[CollaboratorProfile]:
        stmt = select(CollaboratorProfile).where(CollaboratorProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_or_create_profile(self, user_id: int) -> CollaboratorProfile:
        profile = await self.get_profile(user_id)
        if profile:
            return profile
        profile = CollaboratorProfile(user_id=user_id)
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile

    async def set_inventory_result(self, user_id: int, result_id: int) -> CollaboratorProfile:
        profile = await self.get_or_create_profile(user_id)
        profile.inventory_result_id = result_id
        await self.session.flush()
        return profile
