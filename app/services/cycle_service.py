"""평가 주기 서비스 — 주기 라이프사이클 및 평가 배정.

Assessment Cycle Service — Cycle lifecycle (DRAFT → ACTIVE → COMPLETED)
and the roster of per-user assessments created inside a cycle.

Assignment rules:
    - 활성 사용자 + 커리어 밴드 보유 + 요구 역량 1개 이상
      (Active user, career band set, at least one requirement for the band)
    - 이미 배정된 사용자는 건너뜀 — 재실행해도 중복 생성 없음
      (Already-assigned users are skipped, so re-running never duplicates)
    - 요구 역량이 없는 사용자는 오류 없이 건수로만 보고
      (Users whose band has no requirements are counted, not failed)
"""

from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.assessment import Assessment, AssessmentCycle, AssessmentDetail, CycleStatus
from app.models.competency import CompetencyRequirement
from app.models.user import User
from app.repositories.assessment_repository import assessment_repository, cycle_repository
from app.repositories.competency_repository import requirement_repository
from app.repositories.user_repository import user_repository
from app.schemas.cycle import CycleCreate, CycleUpdate
from app.services.notification_service import OutboundEmail, notification_service
from app.services.permission_service import Principal, permission_service
from app.utils.exceptions import NotFoundError, StateError, ValidationError
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AssignmentResult:
    """일괄 배정 결과 (Outcome of a bulk assignment run)."""

    assigned: int = 0
    skipped_no_requirements: int = 0
    already_assigned: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "assigned": self.assigned,
            "skipped_no_requirements": self.skipped_no_requirements,
            "already_assigned": self.already_assigned,
        }


class CycleService:
    """평가 주기 서비스.

    Cycle service. Every method except ``get_active`` and
    ``start_my_assessment`` requires HR or Admin.
    """

    async def _get_or_404(self, db: AsyncSession, cycle_id: UUID) -> AssessmentCycle:
        cycle = await cycle_repository.get_by_id(db, cycle_id)
        if cycle is None:
            raise NotFoundError("Assessment cycle not found")
        return cycle

    # === 주기 CRUD ===

    async def create(self, db: AsyncSession, principal: Principal, data: CycleCreate) -> AssessmentCycle:
        """평가 주기 생성 — DRAFT 상태.

        Raises:
            ForbiddenError: HR/Admin 아님
            ValidationError: 이름 누락 또는 end_date ≤ start_date
        """
        permission_service.require_org_wide(principal)
        if not data.name.strip():
            raise ValidationError("Cycle name is required")
        if data.end_date <= data.start_date:
            raise ValidationError("End date must be after start date")

        cycle = await cycle_repository.create(db, {
            "name": data.name.strip(),
            "start_date": data.start_date,
            "end_date": data.end_date,
            "status": CycleStatus.DRAFT.value,
        })
        logger.info("Assessment cycle %s created", cycle.id)
        return cycle

    async def update(
        self,
        db: AsyncSession,
        principal: Principal,
        cycle_id: UUID,
        data: CycleUpdate,
    ) -> AssessmentCycle:
        cycle = await self._get_or_404(db, cycle_id)
        permission_service.require_org_wide(principal)
        if cycle.status == CycleStatus.COMPLETED.value:
            raise StateError("A completed cycle cannot be edited")

        start_date = data.start_date or cycle.start_date
        end_date = data.end_date or cycle.end_date
        if end_date <= start_date:
            raise ValidationError("End date must be after start date")
        if data.name is not None:
            if not data.name.strip():
                raise ValidationError("Cycle name is required")
            cycle.name = data.name.strip()
        cycle.start_date = start_date
        cycle.end_date = end_date
        await db.flush()
        return cycle

    async def list_cycles(
        self,
        db: AsyncSession,
        principal: Principal,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[AssessmentCycle], int]:
        permission_service.require_org_wide(principal)
        return await cycle_repository.get_by_filters(db, status, page, per_page)

    async def get_cycle(
        self, db: AsyncSession, principal: Principal, cycle_id: UUID
    ) -> tuple[AssessmentCycle, dict[str, int]]:
        """주기 상세 + 단계별 평가 수 (Cycle with per-stage assessment counts)."""
        cycle = await self._get_or_404(db, cycle_id)
        permission_service.require_org_wide(principal)
        counts = await cycle_repository.get_status_counts(db, cycle_id)
        return cycle, counts

    async def get_active(self, db: AsyncSession) -> AssessmentCycle | None:
        return await cycle_repository.get_latest_active(db)

    async def delete(self, db: AsyncSession, principal: Principal, cycle_id: UUID) -> None:
        """DRAFT이며 평가가 없는 주기만 삭제 가능."""
        cycle = await self._get_or_404(db, cycle_id)
        permission_service.require_org_wide(principal)
        if cycle.status != CycleStatus.DRAFT.value:
            raise StateError(f"Only DRAFT cycles can be deleted (cycle is {cycle.status})")
        if await assessment_repository.count_by_cycle(db, cycle_id) > 0:
            raise StateError("Cycle already has assessments")
        await db.delete(cycle)
        await db.flush()
        logger.info("Assessment cycle %s deleted", cycle_id)

    # === 라이프사이클 ===

    async def activate(
        self, db: AsyncSession, principal: Principal, cycle_id: UUID
    ) -> tuple[AssignmentResult, list[OutboundEmail]]:
        """주기 활성화 + 일괄 배정.

        DRAFT → ACTIVE, then bulk assignment. On an already ACTIVE cycle no
        transition happens and only the (idempotent) assignment re-runs.

        Raises:
            NotFoundError: 주기 없음
            ForbiddenError: HR/Admin 아님
            StateError: COMPLETED 주기
        """
        cycle = await self._get_or_404(db, cycle_id)
        permission_service.require_org_wide(principal)
        if cycle.status == CycleStatus.COMPLETED.value:
            raise StateError("A completed cycle cannot be activated")

        if cycle.status == CycleStatus.DRAFT.value:
            cycle.status = CycleStatus.ACTIVE.value
            await db.flush()
            logger.info("Assessment cycle %s activated", cycle.id)

        return await self._assign_all(db, cycle)

    async def assign_eligible(
        self, db: AsyncSession, principal: Principal, cycle_id: UUID
    ) -> tuple[AssignmentResult, list[OutboundEmail]]:
        """ACTIVE 주기에 미배정 대상자 일괄 배정 (Bulk assignment alone)."""
        cycle = await self._get_or_404(db, cycle_id)
        permission_service.require_org_wide(principal)
        if cycle.status != CycleStatus.ACTIVE.value:
            raise StateError(f"Cycle must be ACTIVE to assign users (cycle is {cycle.status})")
        return await self._assign_all(db, cycle)

    async def close(self, db: AsyncSession, principal: Principal, cycle_id: UUID) -> AssessmentCycle:
        """ACTIVE → COMPLETED. 진행 중인 평가는 그대로 동결됨.

        In-flight assessments are left as they are and become frozen.
        """
        cycle = await self._get_or_404(db, cycle_id)
        permission_service.require_org_wide(principal)
        if cycle.status != CycleStatus.ACTIVE.value:
            raise StateError(f"Only ACTIVE cycles can be closed (cycle is {cycle.status})")
        cycle.status = CycleStatus.COMPLETED.value
        await db.flush()
        logger.info("Assessment cycle %s closed", cycle.id)
        return cycle

    async def remind_pending(
        self, db: AsyncSession, principal: Principal, cycle_id: UUID
    ) -> tuple[int, list[OutboundEmail]]:
        """자기평가 미제출자에게 독촉 알림 (상태 변경 없음).

        One ASSESSMENT_REMINDER per assessment still in SELF_ASSESSING.

        Returns:
            tuple[int, list[OutboundEmail]]: (알림 수, 발송 이메일)
        """
        cycle = await self._get_or_404(db, cycle_id)
        permission_service.require_org_wide(principal)
        if cycle.status != CycleStatus.ACTIVE.value:
            raise StateError(f"Reminders can only be sent for ACTIVE cycles (cycle is {cycle.status})")

        pending = await assessment_repository.get_pending_self(db, cycle_id)
        emails: list[OutboundEmail] = []
        for assessment in pending:
            email = await notification_service.enqueue(
                db,
                assessment.user,
                "ASSESSMENT_REMINDER",
                {"cycle_name": cycle.name, "end_date": cycle.end_date.isoformat()},
                reference_type="assessment",
                reference_id=assessment.id,
            )
            if email is not None:
                emails.append(email)
        logger.info("Sent %d reminder(s) for cycle %s", len(pending), cycle.id)
        return len(pending), emails

    # === 개별 배정 ===

    async def assign_user(
        self, db: AsyncSession, principal: Principal, cycle_id: UUID, user_id: UUID
    ) -> tuple[Assessment, list[OutboundEmail]]:
        """HR/Admin이 사용자 1명을 배정.

        Raises:
            NotFoundError: 주기 또는 사용자 없음
            ForbiddenError: HR/Admin 아님
            StateError: 주기가 ACTIVE 아님, 이미 배정됨
            ValidationError: 커리어 밴드 또는 요구 역량 없음
        """
        cycle = await self._get_or_404(db, cycle_id)
        user = await user_repository.get_by_id(db, user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User not found")
        permission_service.require_org_wide(principal)
        return await self._assign_one(db, cycle, user)

    async def start_my_assessment(
        self, db: AsyncSession, principal: Principal, cycle_id: UUID
    ) -> tuple[Assessment, list[OutboundEmail]]:
        """본인 평가 시작 (Self-service assignment into an ACTIVE cycle)."""
        cycle = await self._get_or_404(db, cycle_id)
        user = await user_repository.get_by_id(db, principal.user_id)
        if user is None:
            raise NotFoundError("User not found")
        return await self._assign_one(db, cycle, user)

    async def _assign_one(
        self, db: AsyncSession, cycle: AssessmentCycle, user: User
    ) -> tuple[Assessment, list[OutboundEmail]]:
        if cycle.status != CycleStatus.ACTIVE.value:
            raise StateError(f"Cycle must be ACTIVE to assign users (cycle is {cycle.status})")
        if await assessment_repository.get_by_user_and_cycle(db, user.id, cycle.id) is not None:
            raise StateError("User already has an assessment in this cycle")
        if user.career_band_id is None:
            raise ValidationError("User has no career band")
        requirements = await requirement_repository.get_for_band(db, user.career_band_id)
        if not requirements:
            raise ValidationError("No competency requirements defined for the user's career band")

        assessment, email = await self._create_assessment(db, cycle, user, requirements)
        return assessment, [email] if email is not None else []

    async def _assign_all(
        self, db: AsyncSession, cycle: AssessmentCycle
    ) -> tuple[AssignmentResult, list[OutboundEmail]]:
        """미배정 대상자 전원 배정 — 재실행해도 안전.

        Assign every eligible user that has no assessment in the cycle yet.
        """
        result = AssignmentResult()
        emails: list[OutboundEmail] = []
        assigned_ids = await assessment_repository.get_assigned_user_ids(db, cycle.id)
        requirements_by_band: dict[UUID, Sequence[CompetencyRequirement]] = {}

        for user in await user_repository.get_assignable(db):
            if user.id in assigned_ids:
                result.already_assigned += 1
                continue
            if user.career_band_id not in requirements_by_band:
                requirements_by_band[user.career_band_id] = await requirement_repository.get_for_band(
                    db, user.career_band_id
                )
            requirements = requirements_by_band[user.career_band_id]
            if not requirements:
                result.skipped_no_requirements += 1
                continue

            _, email = await self._create_assessment(db, cycle, user, requirements)
            assigned_ids.add(user.id)
            result.assigned += 1
            if email is not None:
                emails.append(email)

        logger.info(
            "Cycle %s assignment: assigned=%d skipped=%d already=%d",
            cycle.id, result.assigned, result.skipped_no_requirements, result.already_assigned,
        )
        return result, emails

    async def _create_assessment(
        self,
        db: AsyncSession,
        cycle: AssessmentCycle,
        user: User,
        requirements: Sequence[CompetencyRequirement],
    ) -> tuple[Assessment, OutboundEmail | None]:
        """평가 + 역량별 점수 행 생성 (요구 수준 스냅샷 복사).

        Create the assessment with one detail row per requirement, copying
        ``required_level`` as a snapshot.
        """
        assessment = Assessment(user_id=user.id, cycle_id=cycle.id)
        db.add(assessment)
        await db.flush()
        for requirement in requirements:
            db.add(AssessmentDetail(
                assessment_id=assessment.id,
                competency_id=requirement.competency_id,
                required_level=requirement.required_level,
            ))
        await db.flush()

        email = await notification_service.enqueue(
            db,
            user,
            "ASSESSMENT_CYCLE_STARTED",
            {"cycle_name": cycle.name, "end_date": cycle.end_date.isoformat()},
            reference_type="assessment",
            reference_id=assessment.id,
        )
        return assessment, email

    def build_response(
        self, cycle: AssessmentCycle, counts: dict[str, int] | None = None
    ) -> dict:
        return {
            "id": str(cycle.id),
            "name": cycle.name,
            "start_date": cycle.start_date,
            "end_date": cycle.end_date,
            "status": cycle.status,
            "created_at": cycle.created_at,
            "total_assessments": sum(counts.values()) if counts else 0,
            "status_counts": counts,
        }


# 싱글턴 인스턴스 — Singleton instance
cycle_service: CycleService = CycleService()
