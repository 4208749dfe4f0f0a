"""역량 평가 주기 및 평가 ORM 모델.

Assessment cycle and assessment ORM models.
An Assessment is one user's review inside one cycle; its detail rows are
created together with it (one per required competency) and never added
or removed afterwards.

Tables:
    - assessment_cycles: 평가 주기 (Review periods, DRAFT → ACTIVE → COMPLETED)
    - assessments: 개인 평가 (Per-user assessments, four-stage state machine)
    - assessment_details: 역량별 점수 (Per-competency score rows)
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import String, Date, DateTime, Float, Integer, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class CycleStatus(str, Enum):
    """평가 주기 상태 — 역방향 전이 없음 (Monotonic, never moves backward)."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class AssessmentStatus(str, Enum):
    """평가 단계 — 순방향으로만 한 단계씩 진행.

    Assessment stage. Advances strictly forward one stage at a time.
    """

    SELF_ASSESSING = "SELF_ASSESSING"
    LEADER_ASSESSING = "LEADER_ASSESSING"
    DISCUSSION = "DISCUSSION"
    DONE = "DONE"


class AssessmentCycle(Base):
    """평가 주기 모델.

    Assessment cycle model — A time-boxed review period.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 주기 이름 (Cycle name, e.g. "2026 H1")
        start_date: 시작일 (Start date)
        end_date: 종료일, 시작일 이후여야 함 (End date, strictly after start)
        status: DRAFT | ACTIVE | COMPLETED
        created_at: 생성 일시 UTC (Creation timestamp)
    """

    __tablename__ = "assessment_cycles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=CycleStatus.DRAFT.value, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    assessments = relationship("Assessment", back_populates="cycle")


class Assessment(Base):
    """개인 평가 모델 — 4단계 상태 머신.

    Assessment model — One user's review in one cycle.
    ``*_score_avg`` columns are cached summaries recomputed on each
    transition; they are never written directly by callers.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        user_id: 평가 대상자 FK (Subject user)
        cycle_id: 평가 주기 FK (Owning cycle)
        status: SELF_ASSESSING | LEADER_ASSESSING | DISCUSSION | DONE
        self_score_avg: 자기평가 평균 (Mean self score)
        leader_score_avg: 팀장평가 평균 (Mean leader score)
        final_score_avg: 최종 평균 (Mean final score)
        feedback: 최종 피드백 (Final feedback text)
        self_submitted_at / leader_submitted_at / finalized_at: 단계별 제출 일시

    Constraints:
        uq_assessment_user_cycle: 사용자 × 주기 당 1건 (One assessment per user per cycle)
    """

    __tablename__ = "assessments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cycle_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("assessment_cycles.id", ondelete="CASCADE"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(30), default=AssessmentStatus.SELF_ASSESSING.value, nullable=False)
    self_score_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    leader_score_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    final_score_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    self_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    leader_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("user_id", "cycle_id", name="uq_assessment_user_cycle"),
    )

    user = relationship("User")
    cycle = relationship("AssessmentCycle", back_populates="assessments")
    details = relationship(
        "AssessmentDetail",
        back_populates="assessment",
        cascade="all, delete-orphan",
    )


class AssessmentDetail(Base):
    """역량별 점수 행.

    Per-competency score row. ``required_level`` is a snapshot of the
    requirement matrix taken at assignment time. ``note`` is a single column
    overwritten by whichever stage wrote last.
    """

    __tablename__ = "assessment_details"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    assessment_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    competency_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("competencies.id"), nullable=False)
    required_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    self_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    leader_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    final_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # 단일 메모 — 마지막으로 제출한 단계가 덮어씀 (Last writer wins, no per-stage history)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("assessment_id", "competency_id", name="uq_detail_assessment_competency"),
    )

    assessment = relationship("Assessment", back_populates="details")
    competency = relationship("Competency")
