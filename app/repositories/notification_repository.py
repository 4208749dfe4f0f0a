"""알림 레포지토리 — 인앱 알림 및 이메일 발송 상태.

Notification Repository — In-app notification reads and the e-mail
delivery status written back after commit.
"""

from collections import defaultdict
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """알림 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Notification)

    async def _set_read(self, db: AsyncSession, *conditions: Any) -> int:
        result = await db.execute(
            update(Notification)
            .where(*conditions)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
        return result.rowcount

    async def get_user_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Notification], int]:
        """사용자의 알림 목록 (최신순, 페이지네이션).

        Returns:
            tuple[Sequence[Notification], int]: (알림 목록, 전체 개수)
        """
        query: Select = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id)
        )
        return await self.get_paginated(db, query, page, per_page)

    async def get_unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        query: Select = select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
        return (await db.execute(query)).scalar() or 0

    async def mark_read(self, db: AsyncSession, notification_id: UUID, user_id: UUID) -> bool:
        """수신자 본인의 알림만 읽음 처리 — 다른 사용자의 알림은 0건.

        Returns:
            bool: 대상 알림이 있었는지 여부 (Whether the recipient owns it)
        """
        updated = await self._set_read(
            db,
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        return updated > 0

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> int:
        return await self._set_read(
            db,
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )

    async def set_email_status(self, db: AsyncSession, statuses: dict[UUID, str]) -> None:
        """발송 결과 기록 — 상태별 UPDATE 1회.

        Record the delivery outcome per notification, one UPDATE per
        distinct status.
        """
        by_status: dict[str, list[UUID]] = defaultdict(list)
        for notification_id, email_status in statuses.items():
            by_status[email_status].append(notification_id)

        for email_status, ids in by_status.items():
            await db.execute(
                update(Notification)
                .where(Notification.id.in_(ids))
                .values(email_status=email_status)
                .execution_options(synchronize_session=False)
            )
        await db.flush()


# 싱글턴 인스턴스 — Singleton instance
notification_repository: NotificationRepository = NotificationRepository()
