"""관리자 평가 주기 라우터 — 주기 생성/활성화/배정/종료 API.

Admin Assessment Cycle Router — Cycle CRUD plus lifecycle operations
(activate, bulk assignment, single assignment, close, reminders).

Permission Matrix:
    - 모든 엔드포인트: HR + Admin
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_hr_or_admin
from app.database import get_db
from app.schemas.assessment import AssessmentSummaryResponse
from app.schemas.common import MessageResponse, PaginatedResponse
from app.schemas.cycle import (
    AssignmentResultResponse,
    AssignUserRequest,
    CycleCreate,
    CycleResponse,
    CycleUpdate,
    RemindResponse,
)
from app.services.assessment_service import assessment_service
from app.services.cycle_service import cycle_service
from app.services.notification_service import notification_service
from app.services.permission_service import Principal
from app.utils.ids import parse_uuid

router: APIRouter = APIRouter()


# === 주기 CRUD ===

@router.get("", response_model=PaginatedResponse)
async def list_cycles(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
    status: Annotated[str | None, Query()] = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """평가 주기 목록을 조회합니다 (최근 시작일 순)."""
    cycles, total = await cycle_service.list_cycles(db, principal, status, page, per_page)
    items = [cycle_service.build_response(c) for c in cycles]
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.post("", response_model=CycleResponse, status_code=201)
async def create_cycle(
    data: CycleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """새 평가 주기를 DRAFT 상태로 생성합니다."""
    cycle = await cycle_service.create(db, principal, data)
    await db.commit()
    return cycle_service.build_response(cycle)


@router.get("/{cycle_id}", response_model=CycleResponse)
async def get_cycle(
    cycle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """평가 주기 상세 — 단계별 평가 수 포함."""
    cycle, counts = await cycle_service.get_cycle(db, principal, cycle_id)
    return cycle_service.build_response(cycle, counts)


@router.put("/{cycle_id}", response_model=CycleResponse)
async def update_cycle(
    cycle_id: UUID,
    data: CycleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    cycle = await cycle_service.update(db, principal, cycle_id, data)
    await db.commit()
    return cycle_service.build_response(cycle)


@router.delete("/{cycle_id}", response_model=MessageResponse)
async def delete_cycle(
    cycle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """DRAFT 주기를 삭제합니다 (배정된 평가가 없을 때만)."""
    await cycle_service.delete(db, principal, cycle_id)
    await db.commit()
    return {"message": "평가 주기가 삭제되었습니다 (Assessment cycle deleted)"}


# === 라이프사이클 ===

@router.post("/{cycle_id}/activate", response_model=AssignmentResultResponse)
async def activate_cycle(
    cycle_id: UUID,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """주기 활성화 + 대상자 일괄 배정.

    Activate the cycle and assign every eligible employee. Calling it again
    on an ACTIVE cycle only assigns users that were not assigned yet.
    """
    result, emails = await cycle_service.activate(db, principal, cycle_id)
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    return result.to_dict()


@router.post("/{cycle_id}/assign", response_model=AssignmentResultResponse)
async def assign_eligible(
    cycle_id: UUID,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """ACTIVE 주기에 미배정 대상자를 추가 배정합니다."""
    result, emails = await cycle_service.assign_eligible(db, principal, cycle_id)
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    return result.to_dict()


@router.post("/{cycle_id}/assignments", response_model=AssessmentSummaryResponse, status_code=201)
async def assign_user(
    cycle_id: UUID,
    data: AssignUserRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """사용자 1명을 주기에 배정합니다."""
    assessment, emails = await cycle_service.assign_user(
        db, principal, cycle_id, parse_uuid(data.user_id, "user_id")
    )
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    loaded = await assessment_service.get_assessment(db, principal, assessment.id)
    return assessment_service.build_summary(loaded)


@router.post("/{cycle_id}/close", response_model=CycleResponse)
async def close_cycle(
    cycle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """주기 종료 — 진행 중인 평가는 그대로 동결됩니다."""
    cycle = await cycle_service.close(db, principal, cycle_id)
    await db.commit()
    return cycle_service.build_response(cycle)


@router.post("/{cycle_id}/remind", response_model=RemindResponse)
async def remind_pending(
    cycle_id: UUID,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """자기평가 미제출자에게 독촉 알림을 보냅니다."""
    count, emails = await cycle_service.remind_pending(db, principal, cycle_id)
    await db.commit()
    background_tasks.add_task(notification_service.deliver, emails)
    return {"reminded": count}


@router.get("/{cycle_id}/assessments", response_model=PaginatedResponse)
async def list_cycle_assessments(
    cycle_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
    status: Annotated[str | None, Query()] = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """주기 내 평가 목록 (대상자 이름 순)."""
    assessments, total = await assessment_service.list_by_cycle(
        db, principal, cycle_id, status, page, per_page
    )
    items = [assessment_service.build_summary(a) for a in assessments]
    return {"items": items, "total": total, "page": page, "per_page": per_page}
