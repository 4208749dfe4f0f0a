"""앱 팀 라우터 — 팀장의 팀원 평가, 갭 리포트, 레이더, 개발 계획 API.

App Team Router — Team leaders review their members' assessments and read
team analytics. HR/Admin may pass ``team_id`` for any team.

Permission Matrix:
    - 조회: 팀장(자신의 팀) + HR/Admin
    - 팀장 점수/최종 확정: 대상자의 팀장 + HR/Admin (본인 평가 제외)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_principal
from app.database import get_db
from app.schemas.analytics import GapReportResponse, RadarResponse
from app.schemas.assessment import (
    AssessmentResponse,
    AssessmentSummaryResponse,
    FinalizeRequest,
    SubmitScoresRequest,
)
from app.schemas.development_plan import PlanResponse
from app.services.analytics_service import analytics_service
from app.services.assessment_service import assessment_service
from app.services.development_plan_service import development_plan_service
from app.services.notification_service import notification_service
from app.services.permission_service import Principal
from app.utils.ids import parse_uuid

router: APIRouter = APIRouter()


def _optional_uuid(value: str | None, field: str) -> UUID | None:
    return parse_uuid(value, field) if value else None


# === 팀원 평가 ===

@router.get("/assessments", response_model=list[AssessmentSummaryResponse])
async def list_team_assessments(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    team_id: Annotated[str | None, Query()] = None,
    cycle_id: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """팀원 평가 목록 (본인 제외)."""
    assessments = await assessment_service.list_team(
        db,
        principal,
        team_id=_optional_uuid(team_id, "team_id"),
        cycle_id=_optional_uuid(cycle_id, "cycle_id"),
    )
    return [assessment_service.build_summary(a) for a in assessments]


@router.get("/assessments/{assessment_id}", response_model=AssessmentResponse)
async def get_member_assessment(
    assessment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    assessment = await assessment_service.get_assessment(db, principal, assessment_id)
    return assessment_service.build_response(assessment)


@router.post("/assessments/{assessment_id}/submit-leader", response_model=AssessmentResponse)
async def submit_leader(
    assessment_id: UUID,
    data: SubmitScoresRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """팀장 점수 제출 (LEADER_ASSESSING → DISCUSSION)."""
    assessment = await assessment_service.submit_leader(db, principal, assessment_id, data)
    await db.commit()
    return assessment_service.build_response(assessment)


@router.post("/assessments/{assessment_id}/finalize", response_model=AssessmentResponse)
async def finalize(
    assessment_id: UUID,
    data: FinalizeRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """면담 후 최종 확정 (DISCUSSION → DONE)."""
    assessment, emails = await assessment_service.finalize(db, principal, assessment_id, data)
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    return assessment_service.build_response(assessment)


# === 팀 분석 ===

@router.get("/gap-report", response_model=GapReportResponse)
async def team_gap_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    team_id: Annotated[str | None, Query()] = None,
    cycle_id: Annotated[str | None, Query()] = None,
    include_in_progress: bool = False,
) -> dict:
    return await analytics_service.team_report(
        db,
        principal,
        team_id=_optional_uuid(team_id, "team_id"),
        cycle_id=_optional_uuid(cycle_id, "cycle_id"),
        include_in_progress=include_in_progress,
    )


@router.get("/radar", response_model=RadarResponse)
async def team_radar(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    team_id: Annotated[str | None, Query()] = None,
    cycle_id: Annotated[str | None, Query()] = None,
) -> dict:
    return await analytics_service.team_radar(
        db,
        principal,
        team_id=_optional_uuid(team_id, "team_id"),
        cycle_id=_optional_uuid(cycle_id, "cycle_id"),
    )


@router.get("/members/{user_id}/radar", response_model=RadarResponse)
async def member_radar(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """팀원 레이더 — 팀원의 최근 완료 평가 기준."""
    return await analytics_service.individual_radar(db, principal, user_id=user_id)


@router.get("/development-plans", response_model=list[PlanResponse])
async def list_team_plans(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    team_id: Annotated[str | None, Query()] = None,
) -> list[dict]:
    plans = await development_plan_service.list_team_plans(
        db, principal, _optional_uuid(team_id, "team_id")
    )
    return [development_plan_service.build_response(p) for p in plans]
