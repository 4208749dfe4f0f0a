"""평가 레포지토리 — 평가 주기, 개인 평가, 역량별 점수 쿼리.

Assessment Repository — Queries for assessment cycles, assessments and
their detail rows, including the compare-and-set status transition that
guards against two concurrent stage submissions.
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Row, Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.assessment import Assessment, AssessmentCycle, AssessmentDetail, AssessmentStatus, CycleStatus
from app.models.competency import Competency, CompetencyGroup
from app.models.user import User
from app.repositories.base import BaseRepository


class CycleRepository(BaseRepository[AssessmentCycle]):

    def __init__(self) -> None:
        super().__init__(AssessmentCycle)

    async def get_by_filters(
        self,
        db: AsyncSession,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[AssessmentCycle], int]:
        query: Select = select(AssessmentCycle).order_by(AssessmentCycle.start_date.desc())
        if status:
            query = query.where(AssessmentCycle.status == status)
        return await self.get_paginated(db, query, page, per_page)

    async def get_latest_active(self, db: AsyncSession) -> AssessmentCycle | None:
        """가장 최근 시작한 ACTIVE 주기 (Most recent ACTIVE cycle by start date)."""
        query: Select = (
            select(AssessmentCycle)
            .where(AssessmentCycle.status == CycleStatus.ACTIVE.value)
            .order_by(AssessmentCycle.start_date.desc(), AssessmentCycle.created_at.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_status_counts(self, db: AsyncSession, cycle_id: UUID) -> dict[str, int]:
        """주기 내 단계별 평가 수 (Assessment count per stage within a cycle)."""
        query: Select = (
            select(Assessment.status, func.count())
            .where(Assessment.cycle_id == cycle_id)
            .group_by(Assessment.status)
        )
        result = await db.execute(query)
        counts: dict[str, int] = {s.value: 0 for s in AssessmentStatus}
        for status, count in result.all():
            counts[status] = count
        return counts


class AssessmentRepository(BaseRepository[Assessment]):
    """개인 평가 레포지토리.

    Assessment repository. ``transition_status`` is the only place an
    assessment's stage is written.
    """

    def __init__(self) -> None:
        super().__init__(Assessment)

    async def get_with_details(self, db: AsyncSession, assessment_id: UUID) -> Assessment | None:
        """평가 + 주기 + 대상자 + 역량별 점수(역량/그룹/수준 포함) 조회.

        Load an assessment with its cycle, subject, and detail rows joined
        to competency, group and behavioral levels.
        """
        query: Select = (
            select(Assessment)
            .options(
                selectinload(Assessment.cycle),
                selectinload(Assessment.user),
                selectinload(Assessment.details)
                .selectinload(AssessmentDetail.competency)
                .selectinload(Competency.group),
                selectinload(Assessment.details)
                .selectinload(AssessmentDetail.competency)
                .selectinload(Competency.levels),
            )
            .where(Assessment.id == assessment_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_user_and_cycle(
        self, db: AsyncSession, user_id: UUID, cycle_id: UUID
    ) -> Assessment | None:
        query: Select = select(Assessment).where(
            Assessment.user_id == user_id,
            Assessment.cycle_id == cycle_id,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_assigned_user_ids(self, db: AsyncSession, cycle_id: UUID) -> set[UUID]:
        result = await db.execute(select(Assessment.user_id).where(Assessment.cycle_id == cycle_id))
        return set(result.scalars().all())

    async def count_by_cycle(self, db: AsyncSession, cycle_id: UUID) -> int:
        query: Select = select(func.count()).select_from(Assessment).where(Assessment.cycle_id == cycle_id)
        return (await db.execute(query)).scalar() or 0

    async def transition_status(
        self,
        db: AsyncSession,
        assessment_id: UUID,
        expected: AssessmentStatus,
        target: AssessmentStatus,
        values: dict[str, Any] | None = None,
    ) -> bool:
        """상태 전이 CAS — 현재 상태가 expected일 때만 target으로 변경.

        Compare-and-set stage transition. Issues
        ``UPDATE assessments SET status = :target ... WHERE id = :id AND
        status = :expected`` and reports whether exactly one row changed.
        A concurrent submission that already moved the row leaves zero
        affected rows.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            assessment_id: 평가 UUID (Assessment UUID)
            expected: 기대하는 현재 상태 (Status the row must currently hold)
            target: 변경할 상태 (Status to move to)
            values: 함께 기록할 컬럼 값 (Extra columns written in the same statement)

        Returns:
            bool: 전이 성공 여부 (True when this call won the transition)
        """
        stmt = (
            update(Assessment)
            .where(
                Assessment.id == assessment_id,
                Assessment.status == expected.value,
            )
            .values(
                status=target.value,
                updated_at=datetime.now(timezone.utc),
                **(values or {}),
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    async def get_by_cycle(
        self,
        db: AsyncSession,
        cycle_id: UUID,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Assessment], int]:
        query: Select = (
            select(Assessment)
            .join(User, User.id == Assessment.user_id)
            .options(selectinload(Assessment.user), selectinload(Assessment.cycle))
            .where(Assessment.cycle_id == cycle_id)
            .order_by(User.full_name)
        )
        if status:
            query = query.where(Assessment.status == status)
        return await self.get_paginated(db, query, page, per_page)

    async def get_for_users(
        self,
        db: AsyncSession,
        user_ids: Sequence[UUID],
        cycle_id: UUID | None = None,
    ) -> Sequence[Assessment]:
        """여러 사용자의 평가 목록 (Assessments of several users, newest cycle first)."""
        if not user_ids:
            return []
        query: Select = (
            select(Assessment)
            .join(AssessmentCycle, AssessmentCycle.id == Assessment.cycle_id)
            .options(selectinload(Assessment.user), selectinload(Assessment.cycle))
            .where(Assessment.user_id.in_(user_ids))
            .order_by(AssessmentCycle.start_date.desc())
        )
        if cycle_id is not None:
            query = query.where(Assessment.cycle_id == cycle_id)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_user_history(self, db: AsyncSession, user_id: UUID) -> Sequence[Assessment]:
        return await self.get_for_users(db, [user_id])

    async def get_latest_for_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        exclude_status: str | None = None,
        only_status: str | None = None,
    ) -> Assessment | None:
        """사용자의 가장 최근 주기 평가 (Latest assessment of a user by cycle start date)."""
        query: Select = (
            select(Assessment)
            .join(AssessmentCycle, AssessmentCycle.id == Assessment.cycle_id)
            .where(Assessment.user_id == user_id)
            .order_by(AssessmentCycle.start_date.desc(), Assessment.created_at.desc())
            .limit(1)
        )
        if exclude_status:
            query = query.where(Assessment.status != exclude_status)
        if only_status:
            query = query.where(Assessment.status == only_status)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_pending_self(self, db: AsyncSession, cycle_id: UUID) -> Sequence[Assessment]:
        """자기평가 미제출 평가 목록 (Assessments still in SELF_ASSESSING)."""
        query: Select = (
            select(Assessment)
            .options(selectinload(Assessment.user))
            .where(
                Assessment.cycle_id == cycle_id,
                Assessment.status == AssessmentStatus.SELF_ASSESSING.value,
            )
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_gap_rows(
        self,
        db: AsyncSession,
        statuses: Sequence[str],
        cycle_id: UUID | None = None,
        team_id: UUID | None = None,
        user_id: UUID | None = None,
        assessment_id: UUID | None = None,
    ) -> Sequence[Row]:
        """갭 분석 원천 데이터 — 역량별 점수 행 + 사용자/역량/그룹 정보.

        Flat detail rows for gap analysis, joined with the subject user,
        competency and (optional) competency group.

        Returns:
            Sequence[Row]: (assessment_id, user_id, full_name, team_id,
            competency_id, competency_name, group_name, required_level,
            self_score, leader_score, final_score)
        """
        query: Select = (
            select(
                Assessment.id.label("assessment_id"),
                User.id.label("user_id"),
                User.full_name,
                User.team_id,
                Competency.id.label("competency_id"),
                Competency.name.label("competency_name"),
                CompetencyGroup.name.label("group_name"),
                AssessmentDetail.required_level,
                AssessmentDetail.self_score,
                AssessmentDetail.leader_score,
                AssessmentDetail.final_score,
            )
            .select_from(AssessmentDetail)
            .join(Assessment, Assessment.id == AssessmentDetail.assessment_id)
            .join(User, User.id == Assessment.user_id)
            .join(Competency, Competency.id == AssessmentDetail.competency_id)
            .outerjoin(CompetencyGroup, CompetencyGroup.id == Competency.group_id)
            .where(
                Assessment.status.in_(list(statuses)),
                User.deleted_at.is_(None),
            )
            .order_by(User.full_name, Competency.name)
        )
        if cycle_id is not None:
            query = query.where(Assessment.cycle_id == cycle_id)
        if team_id is not None:
            query = query.where(User.team_id == team_id)
        if user_id is not None:
            query = query.where(Assessment.user_id == user_id)
        if assessment_id is not None:
            query = query.where(Assessment.id == assessment_id)
        result = await db.execute(query)
        return result.all()


# 싱글턴 인스턴스 — Singleton instances
cycle_repository: CycleRepository = CycleRepository()
assessment_repository: AssessmentRepository = AssessmentRepository()
