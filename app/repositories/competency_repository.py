"""역량 레포지토리 — 역량 카탈로그 및 요구 수준 매트릭스 쿼리.

Competency Repository — Queries for the competency catalog and the
requirement matrix (career band × competency → required level).
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.competency import Competency, CompetencyGroup, CompetencyRequirement
from app.repositories.base import BaseRepository


class CompetencyGroupRepository(BaseRepository[CompetencyGroup]):

    def __init__(self) -> None:
        super().__init__(CompetencyGroup)

    async def get_all_with_competencies(self, db: AsyncSession) -> Sequence[CompetencyGroup]:
        """그룹 + 소속 역량 목록 (Groups with their competencies, by name)."""
        query: Select = (
            select(CompetencyGroup)
            .options(selectinload(CompetencyGroup.competencies))
            .order_by(CompetencyGroup.name)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_by_name(self, db: AsyncSession, name: str) -> CompetencyGroup | None:
        result = await db.execute(select(CompetencyGroup).where(CompetencyGroup.name == name))
        return result.scalar_one_or_none()


class CompetencyRepository(BaseRepository[Competency]):

    def __init__(self) -> None:
        super().__init__(Competency)

    async def get_with_levels(self, db: AsyncSession, competency_id: UUID) -> Competency | None:
        query: Select = (
            select(Competency)
            .options(selectinload(Competency.levels), selectinload(Competency.group))
            .where(Competency.id == competency_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_with_levels(
        self, db: AsyncSession, group_id: UUID | None = None
    ) -> Sequence[Competency]:
        query: Select = (
            select(Competency)
            .options(selectinload(Competency.levels), selectinload(Competency.group))
            .order_by(Competency.name)
        )
        if group_id is not None:
            query = query.where(Competency.group_id == group_id)
        result = await db.execute(query)
        return result.scalars().all()


class RequirementRepository(BaseRepository[CompetencyRequirement]):
    """요구 수준 매트릭스 레포지토리.

    Requirement matrix repository. One row per (career band, competency)
    cell; absence of a row means the competency is not required.
    """

    def __init__(self) -> None:
        super().__init__(CompetencyRequirement)

    async def get_for_band(
        self, db: AsyncSession, career_band_id: UUID
    ) -> Sequence[CompetencyRequirement]:
        """밴드의 요구 수준 목록 (All requirement cells for one career band)."""
        query: Select = (
            select(CompetencyRequirement)
            .where(CompetencyRequirement.career_band_id == career_band_id)
            .order_by(CompetencyRequirement.competency_id)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_cell(
        self, db: AsyncSession, career_band_id: UUID, competency_id: UUID
    ) -> CompetencyRequirement | None:
        query: Select = select(CompetencyRequirement).where(
            CompetencyRequirement.career_band_id == career_band_id,
            CompetencyRequirement.competency_id == competency_id,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instances
competency_group_repository: CompetencyGroupRepository = CompetencyGroupRepository()
competency_repository: CompetencyRepository = CompetencyRepository()
requirement_repository: RequirementRepository = RequirementRepository()
