"""개인 개발 계획(IDP) 서비스 — 평가 갭 기반 개발 활동 생성.

Development Plan Service — Builds Individual Development Plans, optionally
pre-populated from a finalized assessment's gaps.

Suggestion rules:
    - Critical (gap ≤ −2) → TRAINING
    - Slight Gap (gap = −1) → MENTORING
    - 가장 큰 갭부터 정렬 (Most negative gap first)
"""

from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.assessment import AssessmentStatus
from app.models.development_plan import (
    ActivityStatus,
    ActivityType,
    DevelopmentActivity,
    DevelopmentPlan,
    PlanStatus,
)
from app.repositories.assessment_repository import assessment_repository
from app.repositories.competency_repository import competency_repository
from app.repositories.development_plan_repository import (
    development_activity_repository,
    development_plan_repository,
)
from app.repositories.user_repository import user_repository
from app.schemas.development_plan import ActivityInput, ActivityUpdate, PlanCreate
from app.services.gap_analysis import CRITICAL, SLIGHT_GAP, GapRow, classify_gap, compute_gap
from app.services.permission_service import Principal, permission_service
from app.utils.exceptions import ForbiddenError, NotFoundError, StateError, ValidationError
from app.utils.ids import parse_uuid
from app.utils.logging import get_logger

logger = get_logger(__name__)

_SUGGESTED_TYPE: dict[str, ActivityType] = {
    CRITICAL: ActivityType.TRAINING,
    SLIGHT_GAP: ActivityType.MENTORING,
}


def suggest_activities(rows: Iterable[GapRow]) -> list[dict]:
    """갭이 음수인 역량마다 활동 1개 제안 — 가장 큰 갭부터.

    One suggested activity per row with a required level and a negative
    gap, most negative first (ties by competency name).

    Returns:
        list[dict]: {competency_id, activity_type, description, gap}
    """
    candidates: list[tuple[int, GapRow]] = []
    for row in rows:
        gap = compute_gap(row)
        if gap is not None and gap < 0:
            candidates.append((gap, row))
    candidates.sort(key=lambda c: (c[0], c[1].competency_name))

    suggestions: list[dict] = []
    for gap, row in candidates:
        activity_type = _SUGGESTED_TYPE[classify_gap(gap)]
        if activity_type == ActivityType.TRAINING:
            description = (
                f"Attend training on {row.competency_name} to close a gap of {abs(gap)} "
                f"level(s) (target level {row.required_level})"
            )
        else:
            description = (
                f"Work with a mentor on {row.competency_name} to reach level {row.required_level}"
            )
        suggestions.append({
            "competency_id": row.competency_id,
            "activity_type": activity_type.value,
            "description": description,
            "gap": gap,
        })
    return suggestions


class DevelopmentPlanService:
    """개발 계획 서비스."""

    async def _gap_rows_for(self, db: AsyncSession, assessment_id: UUID) -> list[GapRow]:
        rows = await assessment_repository.get_gap_rows(
            db, [AssessmentStatus.DONE.value], assessment_id=assessment_id
        )
        return [GapRow.from_row(r) for r in rows]

    async def _validate_activity(self, db: AsyncSession, item: ActivityInput) -> dict:
        competency_id = parse_uuid(item.competency_id, "competency_id")
        if await competency_repository.get_by_id(db, competency_id) is None:
            raise NotFoundError(f"Competency {competency_id} not found")
        if item.activity_type not in {t.value for t in ActivityType}:
            raise ValidationError(f"Unknown activity type: {item.activity_type}")
        if not item.description.strip():
            raise ValidationError("Activity description is required")
        return {
            "competency_id": competency_id,
            "activity_type": item.activity_type,
            "description": item.description.strip(),
            "due_date": item.due_date,
        }

    async def create_plan(
        self,
        db: AsyncSession,
        principal: Principal,
        data: PlanCreate,
    ) -> DevelopmentPlan:
        """개발 계획 생성.

        Create a plan for the caller. When a linked DONE assessment is given
        and no activities are supplied, activities come from
        ``suggest_activities`` over that assessment's gaps.

        Raises:
            ValidationError: 목표 누락, end_date ≤ start_date, 잘못된 활동
            NotFoundError: 연결 평가 없음
            ForbiddenError: 본인 평가 아님
            StateError: 미완료 평가 + 활동 미지정
        """
        if not data.goal.strip():
            raise ValidationError("Goal is required")
        if data.end_date <= data.start_date:
            raise ValidationError("End date must be after start date")

        assessment_id: UUID | None = None
        activities: list[dict] = []
        if data.assessment_id:
            assessment_id = parse_uuid(data.assessment_id, "assessment_id")
            assessment = await assessment_repository.get_by_id(db, assessment_id)
            if assessment is None:
                raise NotFoundError("Assessment not found")
            if assessment.user_id != principal.user_id:
                raise ForbiddenError("You can only link your own assessment")
            if data.activities is None:
                if assessment.status != AssessmentStatus.DONE.value:
                    raise StateError("Activities can only be generated from a finalized assessment")
                activities = [
                    {
                        "competency_id": s["competency_id"],
                        "activity_type": s["activity_type"],
                        "description": s["description"],
                        "due_date": data.end_date,
                    }
                    for s in suggest_activities(await self._gap_rows_for(db, assessment_id))
                ]

        for item in data.activities or []:
            activities.append(await self._validate_activity(db, item))

        plan = await development_plan_repository.create(db, {
            "user_id": principal.user_id,
            "assessment_id": assessment_id,
            "goal": data.goal.strip(),
            "start_date": data.start_date,
            "end_date": data.end_date,
            "status": PlanStatus.IN_PROGRESS.value,
        })
        for activity in activities:
            db.add(DevelopmentActivity(plan_id=plan.id, status=ActivityStatus.PENDING.value, **activity))
        await db.flush()
        logger.info("Development plan %s created with %d activities", plan.id, len(activities))
        return await development_plan_repository.get_with_activities(db, plan.id)

    async def get_active_plan(self, db: AsyncSession, principal: Principal) -> DevelopmentPlan:
        plan = await development_plan_repository.get_active_for_user(db, principal.user_id)
        if plan is None:
            raise NotFoundError("No active development plan")
        return plan

    async def update_activity(
        self,
        db: AsyncSession,
        principal: Principal,
        activity_id: UUID,
        data: ActivityUpdate,
    ) -> DevelopmentPlan:
        """활동 상태 변경 — 계획 소유자만 가능."""
        activity = await development_activity_repository.get_with_plan(db, activity_id)
        if activity is None:
            raise NotFoundError("Activity not found")
        if activity.plan.user_id != principal.user_id:
            raise ForbiddenError("Only the plan owner can update its activities")
        if activity.plan.status != PlanStatus.IN_PROGRESS.value:
            raise StateError(f"Plan is {activity.plan.status}")
        if data.status not in {s.value for s in ActivityStatus}:
            raise ValidationError(f"Unknown activity status: {data.status}")

        activity.status = data.status
        if data.evidence is not None:
            activity.evidence = data.evidence
        await db.flush()
        return await development_plan_repository.get_with_activities(db, activity.plan_id)

    async def list_team_plans(
        self, db: AsyncSession, principal: Principal, team_id: UUID | None = None
    ) -> Sequence[DevelopmentPlan]:
        """팀 구성원의 개발 계획 목록 (팀장/HR/Admin)."""
        team_id = permission_service.resolve_team_scope(principal, team_id)
        members = await user_repository.get_team_members(db, team_id)
        return await development_plan_repository.get_for_users(
            db, [m.id for m in members if m.id != principal.user_id]
        )

    def build_response(self, plan: DevelopmentPlan) -> dict:
        return {
            "id": str(plan.id),
            "user_id": str(plan.user_id),
            "user_name": plan.user.full_name if plan.user is not None else None,
            "assessment_id": str(plan.assessment_id) if plan.assessment_id else None,
            "goal": plan.goal,
            "start_date": plan.start_date,
            "end_date": plan.end_date,
            "status": plan.status,
            "created_at": plan.created_at,
            "activities": [
                {
                    "id": str(a.id),
                    "competency_id": str(a.competency_id),
                    "competency_name": a.competency.name if a.competency is not None else None,
                    "activity_type": a.activity_type,
                    "description": a.description,
                    "evidence": a.evidence,
                    "status": a.status,
                    "due_date": a.due_date,
                }
                for a in plan.activities
            ],
        }


# 싱글턴 인스턴스 — Singleton instance
development_plan_service: DevelopmentPlanService = DevelopmentPlanService()
