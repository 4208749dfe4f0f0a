"""알림 서비스 — 알림 아웃박스 및 이메일 발송.

Notification Service — In-app notifications plus post-commit e-mail.

Flow:
    1. 서비스가 트랜잭션 안에서 Notification 행을 기록하고 OutboundEmail을 반환
       (Services write Notification rows inside the business transaction
       and get back OutboundEmail records)
    2. 라우터가 커밋한 뒤 BackgroundTasks로 deliver()를 예약
       (Routes commit, then schedule deliver() as a background task)
    3. deliver()는 발송 실패를 로그로만 남기고 절대 예외를 전파하지 않음
       (deliver() logs failures and never raises)
"""

from dataclasses import dataclass
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session
from app.models.notification import EmailStatus, Notification
from app.models.user import User
from app.repositories.notification_repository import notification_repository
from app.utils.email import is_smtp_configured, send_email, text_to_html
from app.utils.logging import get_logger

logger = get_logger(__name__)


# 템플릿 코드 → (제목, 본문) 고정 포맷 — Fixed message formats per template code
TEMPLATES: dict[str, tuple[str, str]] = {
    "ASSESSMENT_CYCLE_STARTED": (
        "Competency assessment started: {cycle_name}",
        "Hello {full_name},\n"
        "The competency assessment cycle \"{cycle_name}\" is open until {end_date}.\n"
        "Please complete your self-assessment: {link}",
    ),
    "SELF_ASSESSMENT_SUBMITTED": (
        "{employee_name} submitted a self-assessment",
        "Hello {full_name},\n"
        "{employee_name} has submitted a self-assessment for \"{cycle_name}\" "
        "and is waiting for your review: {link}",
    ),
    "ASSESSMENT_FINALIZED": (
        "Your competency assessment is finalized",
        "Hello {full_name},\n"
        "Your assessment for \"{cycle_name}\" has been finalized. "
        "Final average score: {final_score_avg}.\n"
        "Review your results: {link}",
    ),
    "ASSESSMENT_REMINDER": (
        "Reminder: self-assessment pending for {cycle_name}",
        "Hello {full_name},\n"
        "Your self-assessment for \"{cycle_name}\" is still pending. "
        "The cycle ends on {end_date}: {link}",
    ),
}


@dataclass(frozen=True)
class OutboundEmail:
    """커밋 이후 발송할 이메일 — E-mail to send after the transaction commits."""

    notification_id: UUID
    to: str
    subject: str
    text: str


class NotificationService:
    """알림 서비스.

    Notification service: enqueue, deliver, and in-app list/read.
    """

    def render(self, template_code: str, variables: dict[str, Any]) -> tuple[str, str]:
        """템플릿 렌더링 — 고정 포맷에 변수 대입 (Fill the fixed format)."""
        subject_fmt, body_fmt = TEMPLATES[template_code]
        values = {"link": settings.APP_URL, **variables}
        return subject_fmt.format(**values), body_fmt.format(**values)

    async def enqueue(
        self,
        db: AsyncSession,
        user: User,
        template_code: str,
        variables: dict[str, Any],
        reference_type: str | None = None,
        reference_id: UUID | None = None,
    ) -> OutboundEmail | None:
        """알림 행을 기록하고 발송할 이메일을 반환합니다.

        Write a notification row in the caller's transaction. Returns the
        e-mail to send once that transaction commits, or None when the user
        has no address or SMTP is not configured (row marked SKIPPED).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user: 수신자 (Recipient)
            template_code: 템플릿 코드 (Template code)
            variables: 템플릿 변수 (Template variables)
            reference_type: 참조 유형 (Referenced entity kind)
            reference_id: 참조 ID (Referenced entity id)

        Returns:
            OutboundEmail | None: 발송 대상 이메일 (E-mail to deliver, if any)
        """
        subject, message = self.render(template_code, {"full_name": user.full_name, **variables})
        deliverable = bool(user.email) and is_smtp_configured()
        notification = Notification(
            user_id=user.id,
            template_code=template_code,
            subject=subject,
            message=message,
            reference_type=reference_type,
            reference_id=reference_id,
            email_status=(EmailStatus.QUEUED if deliverable else EmailStatus.SKIPPED).value,
        )
        db.add(notification)
        await db.flush()

        if not deliverable:
            return None
        return OutboundEmail(notification_id=notification.id, to=user.email, subject=subject, text=message)

    async def deliver(self, emails: Sequence[OutboundEmail | None]) -> None:
        """이메일을 발송하고 결과를 기록합니다. 예외를 전파하지 않습니다.

        Send queued e-mails and record SENT/FAILED per notification. Runs
        after commit; a failure is logged and never reaches the caller.
        """
        pending = [e for e in emails if e is not None]
        if not pending:
            return
        if not is_smtp_configured():
            logger.info("SMTP not configured, skipping %d e-mail(s)", len(pending))
            return

        statuses: dict[UUID, str] = {}
        for email in pending:
            try:
                await send_email(email.to, email.subject, text_to_html(email.text), email.text)
                statuses[email.notification_id] = EmailStatus.SENT.value
            except Exception as exc:  # 발송 실패는 비치명적 — Delivery failure is non-fatal
                logger.warning(
                    "Failed to send notification %s to %s: %s",
                    email.notification_id, email.to, exc,
                )
                statuses[email.notification_id] = EmailStatus.FAILED.value

        try:
            async with async_session() as session:
                await notification_repository.set_email_status(session, statuses)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Failed to record e-mail delivery status: %s", exc)

    # --- 인앱 알림 (In-app) ---

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        return await notification_repository.get_user_notifications(db, user_id, page, per_page)

    async def get_unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        return await notification_repository.get_unread_count(db, user_id)

    async def mark_read(self, db: AsyncSession, notification_id: UUID, user_id: UUID) -> bool:
        return await notification_repository.mark_read(db, notification_id, user_id)

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> int:
        return await notification_repository.mark_all_read(db, user_id)

    def build_response(self, n: Notification) -> dict:
        return {
            "id": str(n.id),
            "template_code": n.template_code,
            "subject": n.subject,
            "message": n.message,
            "reference_type": n.reference_type,
            "reference_id": str(n.reference_id) if n.reference_id else None,
            "is_read": n.is_read,
            "email_status": n.email_status,
            "created_at": n.created_at,
        }


# 싱글턴 인스턴스 — Singleton instance
notification_service: NotificationService = NotificationService()
