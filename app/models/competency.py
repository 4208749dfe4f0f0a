"""역량 카탈로그 및 요구 수준 매트릭스 ORM 모델.

Competency catalog and requirement matrix ORM models.

Tables:
    - competency_groups: 역량 그룹 (Groups used by radar views)
    - competencies: 역량 (Named skill/behavior axes)
    - competency_levels: 역량 수준별 행동 지표 (Exactly 5 behavioral levels per competency)
    - competency_requirements: 밴드 × 역량 요구 수준 (Requirement matrix cells)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Integer, Text, ForeignKey, UniqueConstraint, CheckConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class CompetencyGroup(Base):
    """역량 그룹 모델.

    Attributes:
        id: 고유 식별자 UUID
        name: 그룹 이름 (고유)
        description: 설명
    """

    __tablename__ = "competency_groups"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    competencies = relationship("Competency", back_populates="group", order_by="Competency.name")


class Competency(Base):
    """역량 모델 — 5단계 행동 지표를 가진 평가 축.

    Competency model — A named skill axis with five behavioral levels.

    Attributes:
        id: 고유 식별자 UUID
        group_id: 소속 그룹 FK (없으면 "Other"로 집계)
        name: 역량 이름
        description: 설명

    Relationships:
        group: 소속 그룹
        levels: 수준별 행동 지표 (level_number 순)
    """

    __tablename__ = "competencies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    group_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("competency_groups.id", ondelete="SET NULL"), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    group = relationship("CompetencyGroup", back_populates="competencies")
    levels = relationship(
        "CompetencyLevel",
        back_populates="competency",
        cascade="all, delete-orphan",
        order_by="CompetencyLevel.level_number",
    )


class CompetencyLevel(Base):
    """역량 수준 모델 — 1~5 수준별 행동 지표."""

    __tablename__ = "competency_levels"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    competency_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("competencies.id", ondelete="CASCADE"), nullable=False)
    level_number: Mapped[int] = mapped_column(Integer, nullable=False)
    behavioral_indicator: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        UniqueConstraint("competency_id", "level_number", name="uq_competency_level_number"),
        CheckConstraint("level_number BETWEEN 1 AND 5", name="ck_competency_level_range"),
    )

    competency = relationship("Competency", back_populates="levels")


class CompetencyRequirement(Base):
    """요구 수준 매트릭스 셀 — (커리어 밴드, 역량) → 요구 수준.

    Requirement matrix cell — (career band, competency) → required level.
    Assessment detail rows copy ``required_level`` at assignment time, so
    editing a cell never changes an existing assessment.

    Constraints:
        uq_requirement_band_competency: 밴드 × 역량 조합 고유
            (One cell per band/competency pair)
    """

    __tablename__ = "competency_requirements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    career_band_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("career_bands.id", ondelete="CASCADE"), nullable=False)
    competency_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("competencies.id", ondelete="CASCADE"), nullable=False)
    # 요구 수준 — Required proficiency level (1~5)
    required_level: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("career_band_id", "competency_id", name="uq_requirement_band_competency"),
        CheckConstraint("required_level BETWEEN 1 AND 5", name="ck_requirement_level_range"),
    )

    competency = relationship("Competency")
