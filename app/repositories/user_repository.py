"""사용자 레포지토리.

User repository: Read-only lookups used by the issue services.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserRole
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):

    def __init__(self) -> None:
        super().__init__(User)

    async def get_active_ids_by_role(
        self,
        db: AsyncSession,
        role: UserRole,
    ) -> list[UUID]:
        """역할별 활성 사용자 ID 목록 (Ids of active users holding ``role``)."""
        result = await db.execute(
            select(User.id).where(User.role == role, User.is_active.is_(True))
        )
        return list(result.scalars().all())

    async def get_names(
        self,
        db: AsyncSession,
        user_ids: Sequence[UUID],
    ) -> dict[UUID, str]:
        """ID → 실명 매핑 (Map of user id to full name for display)."""
        ids = [uid for uid in user_ids if uid is not None]
        if not ids:
            return {}
        result = await db.execute(select(User.id, User.full_name).where(User.id.in_(ids)))
        return {row.id: row.full_name for row in result.all()}


user_repository: UserRepository = UserRepository()
