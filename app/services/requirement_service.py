"""요구 수준 매트릭스 서비스 — 역량 카탈로그 및 매트릭스 관리.

Requirement Matrix Service — Competency catalog and the
(career band × competency) → required level matrix.
All writes require HR or Admin. Editing a cell never touches the
``required_level`` snapshot already copied into assessment detail rows.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.competency import Competency, CompetencyGroup, CompetencyLevel
from app.repositories.competency_repository import (
    competency_group_repository,
    competency_repository,
    requirement_repository,
)
from app.repositories.user_repository import career_band_repository
from app.schemas.competency import CompetencyCreate, CompetencyGroupCreate, RequirementSet
from app.services.permission_service import Principal, permission_service
from app.utils.exceptions import NotFoundError, StateError, ValidationError
from app.utils.ids import parse_uuid
from app.utils.logging import get_logger

logger = get_logger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 5


def validate_level(level: int, field: str = "required_level") -> None:
    """수준 범위 검증 (1~5)."""
    if isinstance(level, bool) or not isinstance(level, int) or not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ValidationError(f"{field} must be an integer between {MIN_LEVEL} and {MAX_LEVEL}")


class RequirementService:
    """요구 수준 매트릭스 서비스.

    Requirement matrix service: catalog listing/creation, matrix reads,
    single and bulk cell writes.
    """

    # === 역량 카탈로그 ===

    async def list_groups(self, db: AsyncSession) -> list[dict]:
        groups = await competency_group_repository.get_all_with_competencies(db)
        return [
            {
                "id": str(g.id),
                "name": g.name,
                "description": g.description,
                "competency_count": len(g.competencies),
            }
            for g in groups
        ]

    async def create_group(
        self,
        db: AsyncSession,
        principal: Principal,
        data: CompetencyGroupCreate,
    ) -> CompetencyGroup:
        permission_service.require_org_wide(principal)
        name = data.name.strip()
        if not name:
            raise ValidationError("Group name is required")
        if await competency_group_repository.get_by_name(db, name) is not None:
            raise StateError(f"Competency group '{name}' already exists")
        return await competency_group_repository.create(db, {"name": name, "description": data.description})

    async def list_competencies(self, db: AsyncSession, group_id: UUID | None = None) -> list[dict]:
        competencies = await competency_repository.list_with_levels(db, group_id)
        return [self.build_competency_response(c) for c in competencies]

    async def create_competency(
        self,
        db: AsyncSession,
        principal: Principal,
        data: CompetencyCreate,
    ) -> Competency:
        """역량 생성 — 수준은 정확히 5개, 1~5 각 1개.

        Create a competency with exactly five behavioral levels numbered
        1 through 5.

        Raises:
            ForbiddenError: HR/Admin 아님
            ValidationError: 이름 누락, 수준 개수/번호 오류
            NotFoundError: 그룹 없음
        """
        permission_service.require_org_wide(principal)
        if not data.name.strip():
            raise ValidationError("Competency name is required")

        numbers = sorted(level.level_number for level in data.levels)
        if numbers != list(range(MIN_LEVEL, MAX_LEVEL + 1)):
            raise ValidationError("A competency needs exactly 5 levels numbered 1 to 5")
        if any(not level.behavioral_indicator.strip() for level in data.levels):
            raise ValidationError("Every level needs a behavioral indicator")

        group_id: UUID | None = None
        if data.group_id:
            group_id = parse_uuid(data.group_id, "group_id")
            if await competency_group_repository.get_by_id(db, group_id) is None:
                raise NotFoundError("Competency group not found")

        competency = await competency_repository.create(db, {
            "name": data.name.strip(),
            "description": data.description,
            "group_id": group_id,
        })
        for level in data.levels:
            db.add(CompetencyLevel(
                competency_id=competency.id,
                level_number=level.level_number,
                behavioral_indicator=level.behavioral_indicator.strip(),
            ))
        await db.flush()
        logger.info("Competency %s created", competency.id)
        return await competency_repository.get_with_levels(db, competency.id)

    async def list_career_bands(self, db: AsyncSession) -> list[dict]:
        bands = await career_band_repository.list_ordered(db)
        return [
            {"id": str(b.id), "band_name": b.band_name, "title": b.title, "description": b.description}
            for b in bands
        ]

    def build_competency_response(self, c: Competency) -> dict:
        return {
            "id": str(c.id),
            "name": c.name,
            "description": c.description,
            "group_id": str(c.group_id) if c.group_id else None,
            "group_name": c.group.name if c.group is not None else None,
            "levels": [
                {"level_number": lv.level_number, "behavioral_indicator": lv.behavioral_indicator}
                for lv in c.levels
            ],
        }

    # === 요구 수준 매트릭스 ===

    async def get_requirements_for_band(
        self, db: AsyncSession, career_band_id: UUID
    ) -> list[tuple[UUID, int]]:
        """밴드의 (역량 ID, 요구 수준) 목록 (Requirement list for one career band)."""
        if await career_band_repository.get_by_id(db, career_band_id) is None:
            raise NotFoundError("Career band not found")
        cells = await requirement_repository.get_for_band(db, career_band_id)
        return [(cell.competency_id, cell.required_level) for cell in cells]

    async def get_matrix(self, db: AsyncSession) -> dict:
        """매트릭스 전체 — 밴드, 그룹별 역량, 셀 맵.

        The whole matrix: bands, groups with their competencies (ungrouped
        competencies appear under a synthetic "Other" group) and
        ``cells[band_id][competency_id] = required_level``.
        """
        bands = await career_band_repository.list_ordered(db)
        competencies = await competency_repository.list_with_levels(db)
        groups = await competency_group_repository.get_all_with_competencies(db)
        cells_rows = await requirement_repository.get_all(db)

        group_items: list[dict] = [
            {
                "id": str(g.id),
                "name": g.name,
                "competencies": [{"id": str(c.id), "name": c.name} for c in g.competencies],
            }
            for g in groups
        ]
        ungrouped = [c for c in competencies if c.group_id is None]
        if ungrouped:
            group_items.append({
                "id": None,
                "name": "Other",
                "competencies": [{"id": str(c.id), "name": c.name} for c in ungrouped],
            })

        cells: dict[str, dict[str, int]] = {str(b.id): {} for b in bands}
        for cell in cells_rows:
            cells.setdefault(str(cell.career_band_id), {})[str(cell.competency_id)] = cell.required_level

        return {
            "bands": [
                {"id": str(b.id), "band_name": b.band_name, "title": b.title, "description": b.description}
                for b in bands
            ],
            "groups": group_items,
            "cells": cells,
        }

    async def set_requirement(
        self,
        db: AsyncSession,
        principal: Principal,
        data: RequirementSet,
    ) -> int | None:
        """셀 설정 (upsert) — required_level None이면 삭제.

        Upsert one matrix cell, or remove it when ``required_level`` is None.

        Returns:
            int | None: 저장된 요구 수준 (Stored level, None when removed)
        """
        permission_service.require_org_wide(principal)
        return await self._apply(db, data)

    async def bulk_set_requirements(
        self,
        db: AsyncSession,
        principal: Principal,
        items: list[RequirementSet],
    ) -> int:
        """여러 셀을 한 트랜잭션에서 설정 — 하나라도 실패하면 전체 롤백.

        Apply many cell writes in the caller's transaction; the first
        failure aborts the whole batch.

        Returns:
            int: 처리된 셀 수 (Number of cells touched)
        """
        permission_service.require_org_wide(principal)
        for item in items:
            await self._apply(db, item)
        return len(items)

    async def _apply(self, db: AsyncSession, data: RequirementSet) -> int | None:
        band_id = parse_uuid(data.career_band_id, "career_band_id")
        competency_id = parse_uuid(data.competency_id, "competency_id")
        if await career_band_repository.get_by_id(db, band_id) is None:
            raise NotFoundError("Career band not found")
        if await competency_repository.get_by_id(db, competency_id) is None:
            raise NotFoundError("Competency not found")

        cell = await requirement_repository.get_cell(db, band_id, competency_id)
        if data.required_level is None:
            if cell is not None:
                await db.delete(cell)
                await db.flush()
            return None

        validate_level(data.required_level)
        if cell is None:
            await requirement_repository.create(db, {
                "career_band_id": band_id,
                "competency_id": competency_id,
                "required_level": data.required_level,
            })
        else:
            cell.required_level = data.required_level
            await db.flush()
        return data.required_level


# 싱글턴 인스턴스 — Singleton instance
requirement_service: RequirementService = RequirementService()
