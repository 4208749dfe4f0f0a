"""관리자 분석 라우터 — 전사/팀 갭 리포트 및 레이더 API.

Admin Analytics Router — Organization and team gap reports plus radar
data for any employee or team.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_hr_or_admin
from app.database import get_db
from app.schemas.analytics import GapReportResponse, RadarResponse
from app.services.analytics_service import analytics_service
from app.services.permission_service import Principal
from app.utils.ids import parse_uuid

router: APIRouter = APIRouter()


@router.get("/gap-report", response_model=GapReportResponse)
async def org_gap_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
    cycle_id: Annotated[str | None, Query()] = None,
    team_id: Annotated[str | None, Query()] = None,
    include_in_progress: bool = False,
) -> dict:
    """전사 갭 리포트 — 기본적으로 DONE 평가만 집계합니다."""
    return await analytics_service.org_report(
        db,
        principal,
        cycle_id=parse_uuid(cycle_id, "cycle_id") if cycle_id else None,
        team_id=parse_uuid(team_id, "team_id") if team_id else None,
        include_in_progress=include_in_progress,
    )


@router.get("/teams/{team_id}/gap-report", response_model=GapReportResponse)
async def team_gap_report(
    team_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
    cycle_id: Annotated[str | None, Query()] = None,
    include_in_progress: bool = False,
) -> dict:
    return await analytics_service.team_report(
        db,
        principal,
        team_id=team_id,
        cycle_id=parse_uuid(cycle_id, "cycle_id") if cycle_id else None,
        include_in_progress=include_in_progress,
    )


@router.get("/radar", response_model=RadarResponse)
async def individual_radar(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
    user_id: Annotated[str | None, Query()] = None,
    assessment_id: Annotated[str | None, Query()] = None,
) -> dict:
    """직원 레이더 — assessment_id 또는 user_id의 최근 완료 평가."""
    return await analytics_service.individual_radar(
        db,
        principal,
        user_id=parse_uuid(user_id, "user_id") if user_id else None,
        assessment_id=parse_uuid(assessment_id, "assessment_id") if assessment_id else None,
    )


@router.get("/teams/{team_id}/radar", response_model=RadarResponse)
async def team_radar(
    team_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_hr_or_admin)],
    cycle_id: Annotated[str | None, Query()] = None,
) -> dict:
    return await analytics_service.team_radar(
        db,
        principal,
        team_id=team_id,
        cycle_id=parse_uuid(cycle_id, "cycle_id") if cycle_id else None,
    )
