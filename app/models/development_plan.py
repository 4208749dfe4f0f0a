"""개인 개발 계획(IDP) ORM 모델.

Individual Development Plan (IDP) ORM models.

Tables:
    - development_plans: 개발 계획 (Plans, optionally linked to an assessment)
    - development_activities: 개발 활동 (Activities targeting one competency each)
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import String, Date, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class PlanStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ActivityType(str, Enum):
    TRAINING = "TRAINING"
    MENTORING = "MENTORING"
    PROJECT_CHALLENGE = "PROJECT_CHALLENGE"
    SELF_STUDY = "SELF_STUDY"


class ActivityStatus(str, Enum):
    PENDING = "PENDING"
    DONE = "DONE"


class DevelopmentPlan(Base):
    """개발 계획 모델.

    Development plan model. ``assessment_id`` links the plan to the
    assessment whose gaps seeded its activities.

    Attributes:
        id: 고유 식별자 UUID
        user_id: 소유자 FK
        assessment_id: 연결 평가 FK (optional)
        goal: 목표
        start_date / end_date: 기간
        status: IN_PROGRESS | COMPLETED | CANCELLED
    """

    __tablename__ = "development_plans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assessment_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("assessments.id", ondelete="SET NULL"), nullable=True)
    goal: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=PlanStatus.IN_PROGRESS.value, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    user = relationship("User")
    activities = relationship(
        "DevelopmentActivity",
        back_populates="plan",
        cascade="all, delete-orphan",
    )


class DevelopmentActivity(Base):
    """개발 활동 모델 — 역량 1개를 대상으로 하는 활동."""

    __tablename__ = "development_activities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    plan_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("development_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    competency_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("competencies.id"), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(30), nullable=False)  # TRAINING, MENTORING, PROJECT_CHALLENGE, SELF_STUDY
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # 증빙 — Evidence link or text recorded when the activity is done
    evidence: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=ActivityStatus.PENDING.value, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    plan = relationship("DevelopmentPlan", back_populates="activities")
    competency = relationship("Competency")
