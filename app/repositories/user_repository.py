"""사용자 디렉터리 레포지토리 — 사용자/팀/밴드 조회.

User directory repository — Read-only queries over users, teams and
career bands used by the assessment engine.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.user import CareerBand, Team, User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 레포지토리.

    User repository. Soft-deleted users are invisible to every query.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_with_role(self, db: AsyncSession, user_id: UUID) -> User | None:
        """역할을 함께 로드하여 사용자를 조회합니다 (Fetch a user with its role loaded)."""
        query: Select = (
            select(User)
            .options(selectinload(User.role))
            .where(User.id == user_id, User.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_assignable(self, db: AsyncSession) -> Sequence[User]:
        """평가 배정 후보 사용자 — 활성 상태이며 커리어 밴드가 있는 사용자.

        Users eligible for bulk assignment: active, not deleted, with a
        career band set.
        """
        query: Select = (
            select(User)
            .where(
                User.is_active.is_(True),
                User.deleted_at.is_(None),
                User.career_band_id.is_not(None),
            )
            .order_by(User.full_name)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_team_members(self, db: AsyncSession, team_id: UUID) -> Sequence[User]:
        """팀 구성원 목록 (Active members of a team)."""
        query: Select = (
            select(User)
            .where(
                User.team_id == team_id,
                User.is_active.is_(True),
                User.deleted_at.is_(None),
            )
            .order_by(User.full_name)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_led_team_ids(self, db: AsyncSession, user_id: UUID) -> list[UUID]:
        """사용자가 팀장인 팀 ID 목록 (Ids of the teams this user leads)."""
        query: Select = select(Team.id).where(
            Team.leader_id == user_id,
            Team.deleted_at.is_(None),
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_leader_id(self, db: AsyncSession, team_id: UUID | None) -> UUID | None:
        """팀의 팀장 ID (Leader of a team, None when unset or the team is deleted)."""
        if team_id is None:
            return None
        query: Select = select(Team.leader_id).where(
            Team.id == team_id,
            Team.deleted_at.is_(None),
        )
        return (await db.execute(query)).scalar_one_or_none()


class TeamRepository(BaseRepository[Team]):

    def __init__(self) -> None:
        super().__init__(Team)


class CareerBandRepository(BaseRepository[CareerBand]):

    def __init__(self) -> None:
        super().__init__(CareerBand)

    async def list_ordered(self, db: AsyncSession) -> Sequence[CareerBand]:
        result = await db.execute(select(CareerBand).order_by(CareerBand.band_name))
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instances
user_repository: UserRepository = UserRepository()
team_repository: TeamRepository = TeamRepository()
career_band_repository: CareerBandRepository = CareerBandRepository()
