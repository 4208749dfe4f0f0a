"""앱 개발 계획 라우터 — 내 IDP 생성/조회/활동 갱신 API.

App Development Plan Router — Create the caller's IDP (optionally
pre-filled from a finalized assessment), read the active plan and update
activity progress.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_principal
from app.database import get_db
from app.schemas.development_plan import ActivityUpdate, PlanCreate, PlanResponse
from app.services.development_plan_service import development_plan_service
from app.services.permission_service import Principal

router: APIRouter = APIRouter()


@router.post("", response_model=PlanResponse, status_code=201)
async def create_plan(
    data: PlanCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """개발 계획을 생성합니다.

    ``activities`` 생략 + 완료 평가 연결 시 갭 기반 활동이 자동 생성됩니다.
    """
    plan = await development_plan_service.create_plan(db, principal, data)
    await db.commit()
    return development_plan_service.build_response(plan)


@router.get("/active", response_model=PlanResponse)
async def get_active_plan(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    plan = await development_plan_service.get_active_plan(db, principal)
    return development_plan_service.build_response(plan)


@router.patch("/activities/{activity_id}", response_model=PlanResponse)
async def update_activity(
    activity_id: UUID,
    data: ActivityUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """활동 상태/증빙을 갱신합니다 (계획 소유자만)."""
    plan = await development_plan_service.update_activity(db, principal, activity_id, data)
    await db.commit()
    return development_plan_service.build_response(plan)
