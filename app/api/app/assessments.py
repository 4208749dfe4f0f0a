"""앱 내 평가 라우터 — 직원 본인의 평가 조회/시작/자기평가 제출 API.

App My-Assessment Router — The caller's active cycle, current assessment,
history, self-service start, self-assessment submission and radar.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_principal
from app.database import get_db
from app.schemas.analytics import RadarResponse
from app.schemas.assessment import AssessmentResponse, AssessmentSummaryResponse, SubmitScoresRequest
from app.schemas.cycle import CycleResponse
from app.services.analytics_service import analytics_service
from app.services.assessment_service import assessment_service
from app.services.cycle_service import cycle_service
from app.services.notification_service import notification_service
from app.services.permission_service import Principal
from app.utils.exceptions import NotFoundError
from app.utils.ids import parse_uuid

router: APIRouter = APIRouter()


@router.get("/active-cycle", response_model=CycleResponse)
async def get_active_cycle(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """현재 진행 중인 평가 주기 (가장 최근 시작한 ACTIVE 주기)."""
    cycle = await cycle_service.get_active(db)
    if cycle is None:
        raise NotFoundError("No active assessment cycle")
    return cycle_service.build_response(cycle)


@router.post("/cycles/{cycle_id}/start", response_model=AssessmentResponse, status_code=201)
async def start_my_assessment(
    cycle_id: UUID,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """ACTIVE 주기에서 본인 평가를 시작합니다."""
    assessment, emails = await cycle_service.start_my_assessment(db, principal, cycle_id)
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    loaded = await assessment_service.get_assessment(db, principal, assessment.id)
    return assessment_service.build_response(loaded)


@router.get("/assessment", response_model=AssessmentResponse)
async def get_my_assessment(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    cycle_id: Annotated[str | None, Query()] = None,
) -> dict:
    """내 평가 — cycle_id 생략 시 가장 최근의 미완료 평가."""
    assessment = await assessment_service.get_my_assessment(
        db, principal, parse_uuid(cycle_id, "cycle_id") if cycle_id else None
    )
    return assessment_service.build_response(assessment)


@router.get("/assessments", response_model=list[AssessmentSummaryResponse])
async def my_history(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> list[dict]:
    """내 평가 이력 (최근 주기 순)."""
    assessments = await assessment_service.my_history(db, principal)
    return [assessment_service.build_summary(a) for a in assessments]


@router.get("/assessments/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(
    assessment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    assessment = await assessment_service.get_assessment(db, principal, assessment_id)
    return assessment_service.build_response(assessment)


@router.post("/assessments/{assessment_id}/submit-self", response_model=AssessmentResponse)
async def submit_self(
    assessment_id: UUID,
    data: SubmitScoresRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """자기평가 제출 (SELF_ASSESSING → LEADER_ASSESSING).

    Every competency of the assessment needs a score from 1 to 5. The
    team leader is notified once the transaction commits.
    """
    assessment, emails = await assessment_service.submit_self(db, principal, assessment_id, data)
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    return assessment_service.build_response(assessment)


@router.get("/radar", response_model=RadarResponse)
async def my_radar(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    assessment_id: Annotated[str | None, Query()] = None,
) -> dict:
    """내 레이더 — 최근 완료 평가 기준."""
    return await analytics_service.individual_radar(
        db,
        principal,
        assessment_id=parse_uuid(assessment_id, "assessment_id") if assessment_id else None,
    )
