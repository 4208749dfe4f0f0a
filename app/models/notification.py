"""알림 관련 SQLAlchemy ORM 모델 정의.

Notification SQLAlchemy ORM model definitions.
Notifications double as an outbox: the row is written inside the business
transaction and the matching e-mail is sent only after that transaction
commits.

Tables:
    - notifications: 사용자 알림 (In-app notifications with e-mail delivery status)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class EmailStatus(str, Enum):
    """이메일 발송 상태 — E-mail delivery status of a notification."""

    QUEUED = "QUEUED"
    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class Notification(Base):
    """알림 모델 — 사용자에게 전달되는 시스템 알림.

    Notification model — System notifications delivered to users.
    Uses a polymorphic reference pattern (reference_type + reference_id)
    to link back to the source entity that triggered the notification.

    Template codes (template_code 필드 값):
        - "ASSESSMENT_CYCLE_STARTED": 평가 배정 알림 (User assigned into a cycle)
        - "SELF_ASSESSMENT_SUBMITTED": 자기평가 제출 알림, 팀장 수신 (Sent to the leader)
        - "ASSESSMENT_FINALIZED": 평가 확정 알림 (Sent to the subject)
        - "ASSESSMENT_REMINDER": 자기평가 독촉 알림 (Pending self-assessment reminder)

    Reference Types (reference_type 필드 값):
        - "assessment": Assessment 참조
        - "assessment_cycle": AssessmentCycle 참조

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        user_id: 수신자 FK (Recipient user foreign key)
        template_code: 템플릿 코드 (Template code, see above)
        subject: 이메일 제목 (E-mail subject line)
        message: 알림 메시지 (Human-readable notification message)
        reference_type: 참조 엔티티 유형 (Referenced entity kind)
        reference_id: 참조 엔티티 ID (Referenced entity UUID)
        is_read: 읽음 여부 (Whether the user has read this notification)
        email_status: 이메일 발송 상태 (QUEUED | SENT | FAILED | SKIPPED)
        created_at: 생성 일시 UTC (Creation timestamp)
    """

    __tablename__ = "notifications"

    # 알림 고유 식별자 — Notification unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 수신자 FK — Target user who receives this notification
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # 템플릿 코드 — Fixed message format identifier
    template_code: Mapped[str] = mapped_column(String(50), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    # 알림 메시지 — Human-readable message displayed to the user
    message: Mapped[str] = mapped_column(Text, nullable=False)
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    # 읽음 여부 — False=미읽음, True=읽음 (Unread by default)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    email_status: Mapped[str] = mapped_column(String(20), default=EmailStatus.QUEUED.value, nullable=False)
    # 생성 일시 — Notification creation timestamp (UTC, immutable)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
