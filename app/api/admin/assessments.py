"""관리자 평가 라우터 — HR/Admin의 평가 조회 및 팀장/최종 단계 처리.

Admin Assessment Router — HR/Admin read any assessment and may act on the
leader and final stages of anyone except themselves.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_hr_or_admin
from app.database import get_db
from app.schemas.assessment import AssessmentResponse, FinalizeRequest, SubmitScoresRequest
from app.services.assessment_service import assessment_service
from app.services.notification_service import notification_service
from app.services.permission_service import Principal

router: APIRouter = APIRouter()


@router.get("/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(
    assessment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    assessment = await assessment_service.get_assessment(db, principal, assessment_id)
    return assessment_service.build_response(assessment)


@router.post("/{assessment_id}/submit-leader", response_model=AssessmentResponse)
async def submit_leader(
    assessment_id: UUID,
    data: SubmitScoresRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """팀장 단계 점수 제출 (LEADER_ASSESSING → DISCUSSION)."""
    assessment = await assessment_service.submit_leader(db, principal, assessment_id, data)
    await db.commit()
    return assessment_service.build_response(assessment)


@router.post("/{assessment_id}/finalize", response_model=AssessmentResponse)
async def finalize(
    assessment_id: UUID,
    data: FinalizeRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """최종 확정 (DISCUSSION → DONE)."""
    assessment, emails = await assessment_service.finalize(db, principal, assessment_id, data)
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    return assessment_service.build_response(assessment)
