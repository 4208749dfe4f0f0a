"""개발 계획 레포지토리 — IDP 및 활동 쿼리.

Development Plan Repository — Queries for IDPs and their activities.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.development_plan import DevelopmentActivity, DevelopmentPlan, PlanStatus
from app.repositories.base import BaseRepository


class DevelopmentPlanRepository(BaseRepository[DevelopmentPlan]):

    def __init__(self) -> None:
        super().__init__(DevelopmentPlan)

    def _with_activities(self) -> Select:
        return select(DevelopmentPlan).options(
            selectinload(DevelopmentPlan.user),
            selectinload(DevelopmentPlan.activities).selectinload(DevelopmentActivity.competency),
        )

    async def get_with_activities(self, db: AsyncSession, plan_id: UUID) -> DevelopmentPlan | None:
        query: Select = self._with_activities().where(DevelopmentPlan.id == plan_id)
        result = await db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_active_for_user(self, db: AsyncSession, user_id: UUID) -> DevelopmentPlan | None:
        """진행 중인 가장 최근 계획 (Latest IN_PROGRESS plan of a user)."""
        query: Select = (
            self._with_activities()
            .where(
                DevelopmentPlan.user_id == user_id,
                DevelopmentPlan.status == PlanStatus.IN_PROGRESS.value,
            )
            .order_by(DevelopmentPlan.created_at.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_for_users(self, db: AsyncSession, user_ids: Sequence[UUID]) -> Sequence[DevelopmentPlan]:
        if not user_ids:
            return []
        query: Select = (
            self._with_activities()
            .where(DevelopmentPlan.user_id.in_(user_ids))
            .order_by(DevelopmentPlan.created_at.desc())
        )
        result = await db.execute(query)
        return result.scalars().all()


class DevelopmentActivityRepository(BaseRepository[DevelopmentActivity]):

    def __init__(self) -> None:
        super().__init__(DevelopmentActivity)

    async def get_with_plan(self, db: AsyncSession, activity_id: UUID) -> DevelopmentActivity | None:
        query: Select = (
            select(DevelopmentActivity)
            .options(selectinload(DevelopmentActivity.plan))
            .where(DevelopmentActivity.id == activity_id)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instances
development_plan_repository: DevelopmentPlanRepository = DevelopmentPlanRepository()
development_activity_repository: DevelopmentActivityRepository = DevelopmentActivityRepository()
