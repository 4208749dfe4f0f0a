"""공통 Pydantic 요청/응답 스키마 정의.

Common Pydantic request/response schema definitions.
Includes pagination, generic messages, error bodies and notifications,
which are shared across API domains.
"""

from datetime import datetime
from typing import Any
from pydantic import BaseModel


class PaginatedResponse(BaseModel):
    """페이지네이션 응답 스키마.

    Paginated response wrapper schema.
    Wraps a list of items with pagination metadata.

    Attributes:
        items: 항목 목록 (List of result items)
        total: 전체 항목 수 (Total count across all pages)
        page: 현재 페이지 번호 (Current page number, 1-based)
        per_page: 페이지당 항목 수 (Items per page)
    """

    items: list[Any]  # 결과 항목 목록 (List of items for the current page)
    total: int  # 전체 항목 수 (Total item count)
    page: int  # 현재 페이지 — 1부터 시작 (Current page, 1-indexed)
    per_page: int  # 페이지당 항목 수 (Items per page)


class MessageResponse(BaseModel):
    """범용 메시지 응답 스키마.

    Generic message response schema for simple confirmations.
    Used for delete operations, status changes, and other actions
    that return a human-readable confirmation message.

    Attributes:
        message: 응답 메시지 (Response message string)
    """

    message: str  # 응답 메시지 (Human-readable confirmation message)


class ErrorResponse(BaseModel):
    """오류 응답 스키마 — {"detail", "code"}.

    Error body produced by the AppError exception handler.
    """

    detail: str
    code: str


class NotificationResponse(BaseModel):
    """알림 응답 스키마.

    Attributes:
        id: 알림 UUID
        template_code: 템플릿 코드
        subject: 제목
        message: 본문
        reference_type / reference_id: 참조 엔티티
        is_read: 읽음 여부
        email_status: 이메일 발송 상태 (QUEUED | SENT | FAILED | SKIPPED)
        created_at: 생성 일시
    """

    id: str
    template_code: str
    subject: str
    message: str
    reference_type: str | None = None
    reference_id: str | None = None
    is_read: bool
    email_status: str
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread_count: int
