"""관리자 역량/요구 수준 라우터 — 역량 카탈로그 및 요구 매트릭스 API.

Admin Competency Router — Competency groups, competencies with their five
behavioral levels, career bands and the requirement matrix.

Permission Matrix:
    - 조회/쓰기: HR + Admin
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_hr_or_admin
from app.database import get_db
from app.schemas.competency import (
    BulkSetResponse,
    CareerBandResponse,
    CompetencyCreate,
    CompetencyGroupCreate,
    CompetencyGroupResponse,
    CompetencyResponse,
    MatrixResponse,
    RequirementBulkSet,
    RequirementResponse,
    RequirementSet,
)
from app.services.permission_service import Principal
from app.services.requirement_service import requirement_service
from app.utils.ids import parse_uuid

router: APIRouter = APIRouter()


# === 역량 그룹 ===

@router.get("/competency-groups", response_model=list[CompetencyGroupResponse])
async def list_groups(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> list[dict]:
    return await requirement_service.list_groups(db)


@router.post("/competency-groups", response_model=CompetencyGroupResponse, status_code=201)
async def create_group(
    data: CompetencyGroupCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """역량 그룹을 생성합니다. 이름은 고유해야 합니다."""
    group = await requirement_service.create_group(db, principal, data)
    await db.commit()
    return {"id": str(group.id), "name": group.name, "description": group.description, "competency_count": 0}


# === 역량 ===

@router.get("/competencies", response_model=list[CompetencyResponse])
async def list_competencies(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
    group_id: Annotated[str | None, Query()] = None,
) -> list[dict]:
    return await requirement_service.list_competencies(
        db, parse_uuid(group_id, "group_id") if group_id else None
    )


@router.post("/competencies", response_model=CompetencyResponse, status_code=201)
async def create_competency(
    data: CompetencyCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """역량 + 5단계 행동 지표를 생성합니다."""
    competency = await requirement_service.create_competency(db, principal, data)
    await db.commit()
    return requirement_service.build_competency_response(competency)


# === 커리어 밴드 / 요구 매트릭스 ===

@router.get("/career-bands", response_model=list[CareerBandResponse])
async def list_career_bands(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> list[dict]:
    return await requirement_service.list_career_bands(db)


@router.get("/career-bands/{band_id}/requirements", response_model=list[RequirementResponse])
async def get_band_requirements(
    band_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> list[dict]:
    """밴드의 요구 역량 목록을 조회합니다."""
    requirements = await requirement_service.get_requirements_for_band(db, band_id)
    return [
        {"career_band_id": str(band_id), "competency_id": str(competency_id), "required_level": level}
        for competency_id, level in requirements
    ]


@router.get("/requirements/matrix", response_model=MatrixResponse)
async def get_matrix(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """밴드 × 역량 요구 수준 매트릭스 전체."""
    return await requirement_service.get_matrix(db)


@router.put("/requirements", response_model=RequirementResponse)
async def set_requirement(
    data: RequirementSet,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """셀 1개 설정 — required_level이 null이면 셀 삭제.

    Upsert one cell. Existing assessments keep the level they were
    created with.
    """
    level = await requirement_service.set_requirement(db, principal, data)
    await db.commit()
    return {
        "career_band_id": data.career_band_id,
        "competency_id": data.competency_id,
        "required_level": level,
    }


@router.put("/requirements/bulk", response_model=BulkSetResponse)
async def bulk_set_requirements(
    data: RequirementBulkSet,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
) -> dict:
    """여러 셀을 한 번에 설정 — 하나라도 실패하면 전체 미반영."""
    updated = await requirement_service.bulk_set_requirements(db, principal, data.items)
    await db.commit()
    return {"updated": updated}
