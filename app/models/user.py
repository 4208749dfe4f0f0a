"""사용자 디렉터리 SQLAlchemy ORM 모델 정의.

User directory SQLAlchemy ORM model definitions.
The assessment engine only reads these tables: who a user is, which team
they sit in, who leads that team, and which career band they hold.

Tables:
    - roles: 역할 (Role names such as "ADMIN", "HR", "Leader")
    - teams: 팀 (Teams with an optional leader)
    - career_bands: 커리어 밴드 (Seniority tiers driving competency requirements)
    - users: 사용자 (Employees)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Role(Base):
    """역할 모델 — 자유 형식 역할 이름.

    Role model. The name is free text coming from the HR directory
    ("ADMIN", "HR", "Leader", "Dev", ...); it is resolved into a closed
    ``RoleName`` enum at the permission boundary, never compared ad hoc.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 역할 이름 (Role name, unique)
        created_at: 생성 일시 UTC (Creation timestamp)
    """

    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 역할 이름 — Role display name (대소문자 혼용 가능, mixed casing allowed)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    users = relationship("User", back_populates="role")


class Team(Base):
    """팀 모델 — 팀장 1명을 가질 수 있는 조직 단위.

    Team model. ``leader_id`` points at a user but carries no foreign key so
    the users ↔ teams reference does not form a DDL cycle.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 팀 이름 (Team name)
        leader_id: 팀장 사용자 ID (Leader user id, nullable)
        deleted_at: 소프트 삭제 일시 (Soft-delete timestamp)
    """

    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 팀장 — Team leader user id (팀장 지정은 이 서비스 범위 밖, leader assignment is managed elsewhere)
    leader_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    members = relationship("User", back_populates="team")


class CareerBand(Base):
    """커리어 밴드 모델 — 역량 요구 수준을 결정하는 직급 단계.

    Career band model, e.g. "B3 / Senior". Determines which competencies
    and required levels apply to a user.
    """

    __tablename__ = "career_bands"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 밴드 코드 — Band code (e.g. "B1", "B2")
    band_name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    # 직함 — Band title (e.g. "Senior")
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    users = relationship("User", back_populates="career_band")


class User(Base):
    """사용자 모델 — 평가 대상 직원.

    User model — An employee who can be assessed.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        email: 이메일 (Email address, used for notifications)
        full_name: 실명 (Full display name)
        role_id: 역할 FK (Role foreign key)
        team_id: 소속 팀 FK (Team foreign key, nullable)
        career_band_id: 커리어 밴드 FK (Career band foreign key, nullable)
        is_active: 활성 상태 (Active flag)
        deleted_at: 소프트 삭제 일시 (Soft-delete timestamp)
        created_at: 생성 일시 UTC (Creation timestamp)

    Relationships:
        role: 사용자 역할 (Assigned role)
        team: 소속 팀 (Team)
        career_band: 커리어 밴드 (Career band)
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id"), nullable=False)
    team_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    career_band_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("career_bands.id", ondelete="SET NULL"), nullable=True)
    # 활성 상태 — 비활성 사용자는 평가 배정 대상에서 제외 (Inactive users are never assigned)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    role = relationship("Role", back_populates="users")
    team = relationship("Team", back_populates="members")
    career_band = relationship("CareerBand", back_populates="users")
