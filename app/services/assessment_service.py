"""역량 평가 서비스 — 4단계 평가 상태 머신.

Assessment Service — The four-stage assessment state machine.

Stages (strictly forward, no skipping):
    SELF_ASSESSING --submit_self--> LEADER_ASSESSING
    LEADER_ASSESSING --submit_leader--> DISCUSSION
    DISCUSSION --finalize--> DONE (terminal)

Check order for every transition:
    NotFoundError → ForbiddenError → StateError → ValidationError → write

The stage precondition is re-checked inside the write itself through a
compare-and-set UPDATE, so a concurrent submission that lost the race
surfaces as StateError instead of overwriting scores. Services flush but
never commit; the route commits once and ``get_db`` rolls back on error,
so a failed transition leaves no partial detail-row writes.
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.assessment import Assessment, AssessmentDetail, AssessmentStatus, CycleStatus
from app.repositories.assessment_repository import assessment_repository, cycle_repository
from app.repositories.user_repository import user_repository
from app.schemas.assessment import FinalizeRequest, ScoreInput, SubmitScoresRequest
from app.services.gap_analysis import GapRow, classify_gap, compute_gap
from app.services.notification_service import OutboundEmail, notification_service
from app.services.permission_service import Principal, permission_service
from app.services.requirement_service import MAX_LEVEL, MIN_LEVEL
from app.utils.exceptions import ForbiddenError, NotFoundError, StateError, ValidationError
from app.utils.ids import parse_uuid
from app.utils.logging import get_logger

logger = get_logger(__name__)


def _mean(values: Sequence[int | float | None]) -> float | None:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else None


def _check_score(score: Any, competency_id: UUID, field: str) -> int:
    if score is None:
        raise ValidationError(f"Missing {field} for competency {competency_id}")
    if isinstance(score, bool) or not isinstance(score, int) or not MIN_LEVEL <= score <= MAX_LEVEL:
        raise ValidationError(
            f"{field} for competency {competency_id} must be an integer between {MIN_LEVEL} and {MAX_LEVEL}"
        )
    return score


class AssessmentService:
    """역량 평가 서비스.

    Assessment service: stage transitions, reads, and response building.
    """

    # === 내부 헬퍼 ===

    async def _get_or_404(self, db: AsyncSession, assessment_id: UUID) -> Assessment:
        assessment = await assessment_repository.get_with_details(db, assessment_id)
        if assessment is None or assessment.user is None or assessment.user.deleted_at is not None:
            raise NotFoundError("Assessment not found")
        return assessment

    def _ensure_stage(self, assessment: Assessment, expected: AssessmentStatus) -> None:
        """단계 및 주기 상태 확인 — 비활성 주기의 평가는 동결됨.

        Raises StateError when the assessment is not in ``expected`` or its
        cycle is no longer ACTIVE (closed cycles freeze their assessments).
        """
        if assessment.status != expected.value:
            raise StateError(f"Assessment is already in stage {assessment.status}")
        if assessment.cycle.status != CycleStatus.ACTIVE.value:
            raise StateError(f"Assessment cycle is {assessment.cycle.status}; assessments are frozen")

    def _validate_full_scores(
        self, details: Sequence[AssessmentDetail], inputs: Sequence[ScoreInput], field: str
    ) -> dict[UUID, tuple[int, str | None]]:
        """모든 역량을 정확히 1번씩 포함하는지 검증.

        Validate that ``inputs`` covers every detail competency exactly once
        with an integer score in 1–5. Nothing is written here.

        Returns:
            dict[UUID, tuple[int, str | None]]: {competency_id: (score, note)}
        """
        known = {d.competency_id for d in details}
        result: dict[UUID, tuple[int, str | None]] = {}
        for item in inputs:
            competency_id = parse_uuid(item.competency_id, "competency_id")
            if competency_id not in known:
                raise ValidationError(f"Competency {competency_id} is not part of this assessment")
            if competency_id in result:
                raise ValidationError(f"Competency {competency_id} appears more than once")
            result[competency_id] = (_check_score(item.score, competency_id, field), item.note)

        missing = known - result.keys()
        if missing:
            raise ValidationError(f"Missing {field} for {len(missing)} competenc{'y' if len(missing) == 1 else 'ies'}")
        return result

    async def _advance(
        self,
        db: AsyncSession,
        assessment: Assessment,
        expected: AssessmentStatus,
        target: AssessmentStatus,
        values: dict[str, Any],
    ) -> None:
        """CAS 상태 전이 — 경쟁에서 지면 StateError.

        Move ``assessment`` from ``expected`` to ``target`` atomically.
        Zero affected rows means another request already moved it.
        """
        moved = await assessment_repository.transition_status(db, assessment.id, expected, target, values)
        if not moved:
            raise StateError(f"Assessment is no longer in stage {expected.value}")
        logger.info("Assessment %s moved %s -> %s", assessment.id, expected.value, target.value)

    # === 상태 전이 ===

    async def submit_self(
        self,
        db: AsyncSession,
        principal: Principal,
        assessment_id: UUID,
        data: SubmitScoresRequest,
    ) -> tuple[Assessment, list[OutboundEmail]]:
        """자기평가 제출 — SELF_ASSESSING → LEADER_ASSESSING.

        Only the subject may submit. Writes self_score (and note when given)
        on every detail row, stores the mean as ``self_score_avg`` and
        notifies the subject's team leader.

        Raises:
            NotFoundError: 평가 없음
            ForbiddenError: 본인 평가 아님
            StateError: SELF_ASSESSING 아님, 주기 비활성, 동시 제출 경쟁 패배
            ValidationError: 점수 누락/범위 오류/알 수 없는 역량
        """
        assessment = await self._get_or_404(db, assessment_id)
        if not principal.is_subject(assessment.user_id):
            raise ForbiddenError("Only the assessed employee can submit a self-assessment")
        self._ensure_stage(assessment, AssessmentStatus.SELF_ASSESSING)
        scores = self._validate_full_scores(assessment.details, data.scores, "self score")

        await self._advance(db, assessment, AssessmentStatus.SELF_ASSESSING, AssessmentStatus.LEADER_ASSESSING, {
            "self_score_avg": _mean([s for s, _ in scores.values()]),
            "self_submitted_at": datetime.now(timezone.utc),
        })
        for detail in assessment.details:
            score, note = scores[detail.competency_id]
            detail.self_score = score
            if note is not None:
                detail.note = note
        await db.flush()

        assessment = await self._get_or_404(db, assessment_id)
        emails = await self._notify_leader(db, assessment)
        return assessment, emails

    async def submit_leader(
        self,
        db: AsyncSession,
        principal: Principal,
        assessment_id: UUID,
        data: SubmitScoresRequest,
    ) -> Assessment:
        """팀장평가 제출 — LEADER_ASSESSING → DISCUSSION.

        Caller must be the subject's team leader or HR/Admin (never the
        subject). Final scores stay unset; reads show the leader score as
        the display default while in DISCUSSION.
        """
        assessment = await self._get_or_404(db, assessment_id)
        if not permission_service.can_review(principal, assessment.user):
            raise ForbiddenError("Only the employee's leader, HR or Admin can submit leader scores")
        self._ensure_stage(assessment, AssessmentStatus.LEADER_ASSESSING)
        scores = self._validate_full_scores(assessment.details, data.scores, "leader score")

        await self._advance(db, assessment, AssessmentStatus.LEADER_ASSESSING, AssessmentStatus.DISCUSSION, {
            "leader_score_avg": _mean([s for s, _ in scores.values()]),
            "leader_submitted_at": datetime.now(timezone.utc),
        })
        for detail in assessment.details:
            score, note = scores[detail.competency_id]
            detail.leader_score = score
            if note is not None:
                detail.note = note
        await db.flush()

        return await self._get_or_404(db, assessment_id)

    async def finalize(
        self,
        db: AsyncSession,
        principal: Principal,
        assessment_id: UUID,
        data: FinalizeRequest,
    ) -> tuple[Assessment, list[OutboundEmail]]:
        """최종 확정 — DISCUSSION → DONE (종료 상태).

        Final score per row = supplied override, else leader score, else
        self score. Empty feedback is replaced by the configured
        placeholder. The subject is notified.

        Raises:
            ValidationError: 재정의 점수 범위 오류, 알 수 없는/중복 역량,
                점수를 정할 수 없는 역량 (No score available for a row)
        """
        assessment = await self._get_or_404(db, assessment_id)
        if not permission_service.can_review(principal, assessment.user):
            raise ForbiddenError("Only the employee's leader, HR or Admin can finalize an assessment")
        self._ensure_stage(assessment, AssessmentStatus.DISCUSSION)

        known = {d.competency_id for d in assessment.details}
        overrides: dict[UUID, tuple[int | None, str | None]] = {}
        for item in data.scores:
            competency_id = parse_uuid(item.competency_id, "competency_id")
            if competency_id not in known:
                raise ValidationError(f"Competency {competency_id} is not part of this assessment")
            if competency_id in overrides:
                raise ValidationError(f"Competency {competency_id} appears more than once")
            final = None
            if item.final_score is not None:
                final = _check_score(item.final_score, competency_id, "final score")
            overrides[competency_id] = (final, item.note)

        finals: dict[UUID, int] = {}
        for detail in assessment.details:
            override, _ = overrides.get(detail.competency_id, (None, None))
            final = next(
                (s for s in (override, detail.leader_score, detail.self_score) if s is not None),
                None,
            )
            if final is None:
                raise ValidationError(f"No score available for competency {detail.competency_id}")
            finals[detail.competency_id] = final

        feedback = (data.feedback or "").strip() or settings.ASSESSMENT_DEFAULT_FEEDBACK
        final_avg = _mean(list(finals.values()))
        await self._advance(db, assessment, AssessmentStatus.DISCUSSION, AssessmentStatus.DONE, {
            "final_score_avg": final_avg,
            "feedback": feedback,
            "finalized_at": datetime.now(timezone.utc),
        })
        for detail in assessment.details:
            detail.final_score = finals[detail.competency_id]
            _, note = overrides.get(detail.competency_id, (None, None))
            if note is not None:
                detail.note = note
        await db.flush()

        assessment = await self._get_or_404(db, assessment_id)
        email = await notification_service.enqueue(
            db,
            assessment.user,
            "ASSESSMENT_FINALIZED",
            {
                "cycle_name": assessment.cycle.name,
                "final_score_avg": f"{final_avg:.2f}" if final_avg is not None else "-",
            },
            reference_type="assessment",
            reference_id=assessment.id,
        )
        return assessment, [email] if email is not None else []

    async def _notify_leader(self, db: AsyncSession, assessment: Assessment) -> list[OutboundEmail]:
        """자기평가 제출 시 팀장에게 알림 (팀장이 없거나 본인이면 생략)."""
        leader_id = await user_repository.get_leader_id(db, assessment.user.team_id)
        if leader_id is None or leader_id == assessment.user_id:
            return []
        leader = await user_repository.get_by_id(db, leader_id)
        if leader is None:
            return []
        email = await notification_service.enqueue(
            db,
            leader,
            "SELF_ASSESSMENT_SUBMITTED",
            {"employee_name": assessment.user.full_name, "cycle_name": assessment.cycle.name},
            reference_type="assessment",
            reference_id=assessment.id,
        )
        return [email] if email is not None else []

    # === 조회 ===

    async def get_assessment(self, db: AsyncSession, principal: Principal, assessment_id: UUID) -> Assessment:
        """평가 상세 — 본인, 팀장, HR/Admin만 조회 가능."""
        assessment = await self._get_or_404(db, assessment_id)
        if not permission_service.can_read_user(principal, assessment.user):
            raise ForbiddenError("You cannot view this assessment")
        return assessment

    async def get_my_assessment(
        self, db: AsyncSession, principal: Principal, cycle_id: UUID | None = None
    ) -> Assessment:
        """내 평가 — 주기 미지정 시 가장 최근의 미완료 평가.

        The caller's assessment in ``cycle_id``, or their latest non-DONE
        assessment when no cycle is given.
        """
        if cycle_id is not None:
            found = await assessment_repository.get_by_user_and_cycle(db, principal.user_id, cycle_id)
        else:
            found = await assessment_repository.get_latest_for_user(
                db, principal.user_id, exclude_status=AssessmentStatus.DONE.value
            )
        if found is None:
            raise NotFoundError("No assessment found")
        return await self._get_or_404(db, found.id)

    async def my_history(self, db: AsyncSession, principal: Principal) -> Sequence[Assessment]:
        return await assessment_repository.get_user_history(db, principal.user_id)

    async def list_by_cycle(
        self,
        db: AsyncSession,
        principal: Principal,
        cycle_id: UUID,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Assessment], int]:
        if await cycle_repository.get_by_id(db, cycle_id) is None:
            raise NotFoundError("Assessment cycle not found")
        permission_service.require_org_wide(principal)
        return await assessment_repository.get_by_cycle(db, cycle_id, status, page, per_page)

    async def list_team(
        self,
        db: AsyncSession,
        principal: Principal,
        team_id: UUID | None = None,
        cycle_id: UUID | None = None,
    ) -> Sequence[Assessment]:
        """팀 구성원의 평가 목록 (팀장 본인 제외)."""
        team_id = permission_service.resolve_team_scope(principal, team_id)
        members = await user_repository.get_team_members(db, team_id)
        member_ids = [m.id for m in members if m.id != principal.user_id]
        return await assessment_repository.get_for_users(db, member_ids, cycle_id)

    # === 응답 빌더 ===

    def build_response(self, assessment: Assessment) -> dict:
        """평가 상세 응답 — DISCUSSION 단계에서는 팀장 점수를 최종 점수 기본값으로 표시.

        Build the detail response. ``effective_final_score`` falls back to
        the leader score while in DISCUSSION; it is never persisted.
        """
        in_discussion = assessment.status == AssessmentStatus.DISCUSSION.value
        details: list[dict] = []
        gaps: list[int] = []
        ordered = sorted(
            assessment.details,
            key=lambda d: (
                d.competency.group.name if d.competency.group is not None else "",
                d.competency.name,
            ),
        )
        for d in ordered:
            effective_final = d.final_score
            if in_discussion and effective_final is None:
                effective_final = d.leader_score
            gap = compute_gap(GapRow(
                user_id=assessment.user_id,
                user_name=assessment.user.full_name,
                competency_id=d.competency_id,
                competency_name=d.competency.name,
                required_level=d.required_level,
                self_score=d.self_score,
                leader_score=d.leader_score,
                final_score=effective_final,
            ))
            if gap is not None:
                gaps.append(gap)
            details.append({
                "id": str(d.id),
                "competency_id": str(d.competency_id),
                "competency_name": d.competency.name,
                "group_name": d.competency.group.name if d.competency.group is not None else None,
                "levels": [
                    {"level_number": lv.level_number, "behavioral_indicator": lv.behavioral_indicator}
                    for lv in d.competency.levels
                ],
                "required_level": d.required_level,
                "self_score": d.self_score,
                "leader_score": d.leader_score,
                "final_score": d.final_score,
                "effective_final_score": effective_final,
                "gap": gap,
                "classification": classify_gap(gap) if gap is not None else None,
                "note": d.note,
            })

        avg_gap = _mean(gaps)
        return {
            "id": str(assessment.id),
            "user_id": str(assessment.user_id),
            "user_name": assessment.user.full_name,
            "cycle_id": str(assessment.cycle_id),
            "cycle_name": assessment.cycle.name,
            "cycle_status": assessment.cycle.status,
            "cycle_end_date": assessment.cycle.end_date,
            "status": assessment.status,
            "self_score_avg": assessment.self_score_avg,
            "leader_score_avg": assessment.leader_score_avg,
            "final_score_avg": assessment.final_score_avg,
            "feedback": assessment.feedback,
            "self_submitted_at": assessment.self_submitted_at,
            "leader_submitted_at": assessment.leader_submitted_at,
            "finalized_at": assessment.finalized_at,
            "details": details,
            "stats": {
                "avg_self": _round(_mean([d.self_score for d in assessment.details])),
                "avg_leader": _round(_mean([d.leader_score for d in assessment.details])),
                "avg_final": _round(_mean([d["effective_final_score"] for d in details])),
                "avg_gap": _round(avg_gap),
            },
        }

    def build_summary(self, assessment: Assessment) -> dict:
        return {
            "id": str(assessment.id),
            "user_id": str(assessment.user_id),
            "user_name": assessment.user.full_name,
            "cycle_id": str(assessment.cycle_id),
            "cycle_name": assessment.cycle.name,
            "status": assessment.status,
            "self_score_avg": assessment.self_score_avg,
            "leader_score_avg": assessment.leader_score_avg,
            "final_score_avg": assessment.final_score_avg,
        }


def _round(value: float | None) -> float | None:
    return round(value, 2) if value is not None else None


# 싱글턴 인스턴스 — Singleton instance
assessment_service: AssessmentService = AssessmentService()
