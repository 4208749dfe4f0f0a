"""앱 알림 라우터 — 내 알림 API.

App Notification Router — List, unread count, mark read, and mark all read
for the caller's in-app notifications.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_principal
from app.database import get_db
from app.schemas.common import MessageResponse, PaginatedResponse, UnreadCountResponse
from app.services.notification_service import notification_service
from app.services.permission_service import Principal
from app.utils.exceptions import NotFoundError

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """내 알림 목록 (최신순).

    Args:
        page: 페이지 번호 (Page number)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        dict: 페이지네이션된 알림 목록 (Paginated notification list)
    """
    notifications, total = await notification_service.list_notifications(
        db, user_id=principal.user_id, page=page, per_page=per_page
    )
    items = [notification_service.build_response(n) for n in notifications]
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    count = await notification_service.get_unread_count(db, principal.user_id)
    return {"unread_count": count}


@router.patch("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """알림 1건을 읽음 처리합니다."""
    updated = await notification_service.mark_read(db, notification_id, principal.user_id)
    if not updated:
        raise NotFoundError("Notification not found")
    await db.commit()
    return {"message": "알림을 읽음 처리했습니다 (Notification marked as read)"}


@router.patch("/read-all", response_model=MessageResponse)
async def mark_all_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    count = await notification_service.mark_all_read(db, principal.user_id)
    await db.commit()
    return {"message": f"{count}건의 알림을 읽음 처리했습니다 ({count} notification(s) marked as read)"}
