"""역량 평가 스키마 — 단계별 제출 요청 및 평가 응답.

Assessment schemas — Stage submission requests and assessment responses.
Scores are declared loosely (``int | None``) on purpose: missing or
out-of-range scores are rejected by the service with VALIDATION_ERROR.
"""

from datetime import date, datetime
from pydantic import BaseModel


class ScoreInput(BaseModel):
    """역량별 점수 입력 (자기평가/팀장평가)."""

    competency_id: str
    score: int | None = None
    note: str | None = None


class SubmitScoresRequest(BaseModel):
    """자기평가/팀장평가 제출 요청 — 모든 역량을 정확히 1번씩 포함해야 함.

    Self/leader submission. Must cover every competency of the assessment
    exactly once.
    """

    scores: list[ScoreInput]


class FinalScoreInput(BaseModel):
    """최종 점수 입력 — final_score 생략 시 팀장 점수, 없으면 자기평가 점수."""

    competency_id: str
    final_score: int | None = None
    note: str | None = None


class FinalizeRequest(BaseModel):
    """최종 확정 요청.

    Attributes:
        scores: 최종 점수 재정의 목록, 생략된 역량은 기본값 적용
            (Final score overrides; omitted competencies take the default)
        feedback: 피드백, 비어 있으면 기본 문구 (Feedback, placeholder when empty)
    """

    scores: list[FinalScoreInput] = []
    feedback: str | None = None


class CompetencyLevelInfo(BaseModel):
    level_number: int
    behavioral_indicator: str


class AssessmentDetailResponse(BaseModel):
    """역량별 점수 응답.

    ``effective_final_score`` is display-only: in DISCUSSION it falls back
    to the leader score, elsewhere it mirrors ``final_score``.
    """

    id: str
    competency_id: str
    competency_name: str
    group_name: str | None = None
    levels: list[CompetencyLevelInfo] = []
    required_level: int | None = None
    self_score: int | None = None
    leader_score: int | None = None
    final_score: int | None = None
    effective_final_score: int | None = None
    gap: int | None = None
    classification: str | None = None
    note: str | None = None


class AssessmentStats(BaseModel):
    avg_self: float | None = None
    avg_leader: float | None = None
    avg_final: float | None = None
    avg_gap: float | None = None


class AssessmentResponse(BaseModel):
    """평가 상세 응답 (Assessment with cycle, details and stats)."""

    id: str
    user_id: str
    user_name: str
    cycle_id: str
    cycle_name: str
    cycle_status: str
    cycle_end_date: date
    status: str
    self_score_avg: float | None = None
    leader_score_avg: float | None = None
    final_score_avg: float | None = None
    feedback: str | None = None
    self_submitted_at: datetime | None = None
    leader_submitted_at: datetime | None = None
    finalized_at: datetime | None = None
    details: list[AssessmentDetailResponse] = []
    stats: AssessmentStats


class AssessmentSummaryResponse(BaseModel):
    """평가 목록 항목 (List item without details)."""

    id: str
    user_id: str
    user_name: str
    cycle_id: str
    cycle_name: str | None = None
    status: str
    self_score_avg: float | None = None
    leader_score_avg: float | None = None
    final_score_avg: float | None = None
