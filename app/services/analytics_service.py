"""분석 서비스 — 갭 리포트 및 레이더 데이터 로딩.

Analytics Service — Loads assessment detail rows for a scope (org, team,
individual) and hands them to the pure ``gap_analysis`` functions.
By default only DONE assessments are reported; in-flight ones can be
included on request and are scored with final ?? leader ?? self.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.assessment import AssessmentStatus
from app.repositories.assessment_repository import assessment_repository, cycle_repository
from app.repositories.user_repository import team_repository, user_repository
from app.services import gap_analysis
from app.services.gap_analysis import GapRow
from app.services.permission_service import Principal, permission_service
from app.utils.exceptions import ForbiddenError, NotFoundError

_DONE_ONLY: tuple[str, ...] = (AssessmentStatus.DONE.value,)
_ALL_STAGES: tuple[str, ...] = tuple(s.value for s in AssessmentStatus)


class AnalyticsService:

    async def _load_rows(
        self,
        db: AsyncSession,
        include_in_progress: bool = False,
        **filters: UUID | None,
    ) -> list[GapRow]:
        statuses: Sequence[str] = _ALL_STAGES if include_in_progress else _DONE_ONLY
        rows = await assessment_repository.get_gap_rows(db, statuses, **filters)
        return [GapRow.from_row(r) for r in rows]

    async def _ensure_cycle(self, db: AsyncSession, cycle_id: UUID | None) -> None:
        if cycle_id is not None and await cycle_repository.get_by_id(db, cycle_id) is None:
            raise NotFoundError("Assessment cycle not found")

    async def org_report(
        self,
        db: AsyncSession,
        principal: Principal,
        cycle_id: UUID | None = None,
        team_id: UUID | None = None,
        include_in_progress: bool = False,
    ) -> dict:
        """전사 갭 리포트 (HR/Admin).

        Organization-wide gap report, optionally narrowed to one cycle
        and/or one team.
        """
        permission_service.require_org_wide(principal)
        await self._ensure_cycle(db, cycle_id)
        rows = await self._load_rows(db, include_in_progress, cycle_id=cycle_id, team_id=team_id)
        return gap_analysis.build_report(rows)

    async def team_report(
        self,
        db: AsyncSession,
        principal: Principal,
        team_id: UUID | None = None,
        cycle_id: UUID | None = None,
        include_in_progress: bool = False,
    ) -> dict:
        """팀 갭 리포트 — 팀장은 자신의 팀, HR/Admin은 임의 팀.

        Raises:
            ForbiddenError: 팀장이 아니거나 다른 팀 요청
        """
        team_id = permission_service.resolve_team_scope(principal, team_id)
        if await team_repository.get_by_id(db, team_id) is None:
            raise NotFoundError("Team not found")
        await self._ensure_cycle(db, cycle_id)
        rows = await self._load_rows(db, include_in_progress, cycle_id=cycle_id, team_id=team_id)
        report = gap_analysis.build_report(rows)
        report["team_id"] = str(team_id)
        return report

    async def individual_radar(
        self,
        db: AsyncSession,
        principal: Principal,
        user_id: UUID | None = None,
        assessment_id: UUID | None = None,
    ) -> dict:
        """개인 레이더 — 지정 평가 또는 대상자의 최근 완료 평가.

        Radar groups for one assessment: the given one, or the target
        user's latest DONE assessment. Readable by the subject, their
        leader, and HR/Admin.
        """
        if assessment_id is not None:
            assessment = await assessment_repository.get_with_details(db, assessment_id)
            if assessment is None:
                raise NotFoundError("Assessment not found")
            subject = assessment.user
        else:
            subject = await user_repository.get_by_id(db, user_id or principal.user_id)
            if subject is None:
                raise NotFoundError("User not found")
            assessment = None

        if not permission_service.can_read_user(principal, subject):
            raise ForbiddenError("You cannot view this employee's results")

        if assessment is None:
            assessment = await assessment_repository.get_latest_for_user(
                db, subject.id, only_status=AssessmentStatus.DONE.value
            )
            if assessment is None:
                raise NotFoundError("No completed assessment found")

        rows = await self._load_rows(db, include_in_progress=True, assessment_id=assessment.id)
        return {
            "assessment_id": str(assessment.id),
            "user_id": str(subject.id),
            "team_id": None,
            "groups": [g.to_dict() for g in gap_analysis.radar_groups(rows)],
        }

    async def team_radar(
        self,
        db: AsyncSession,
        principal: Principal,
        team_id: UUID | None = None,
        cycle_id: UUID | None = None,
    ) -> dict:
        """팀 레이더 — 팀의 완료 평가 기준 그룹별 평균."""
        team_id = permission_service.resolve_team_scope(principal, team_id)
        if await team_repository.get_by_id(db, team_id) is None:
            raise NotFoundError("Team not found")
        await self._ensure_cycle(db, cycle_id)
        rows = await self._load_rows(db, cycle_id=cycle_id, team_id=team_id)
        return {
            "assessment_id": None,
            "user_id": None,
            "team_id": str(team_id),
            "groups": [g.to_dict() for g in gap_analysis.radar_groups(rows)],
        }


# 싱글턴 인스턴스 — Singleton instance
analytics_service: AnalyticsService = AnalyticsService()
