"""평가 주기 스키마.

Assessment cycle request/response schemas.
"""

from datetime import date, datetime
from pydantic import BaseModel


class CycleCreate(BaseModel):
    """평가 주기 생성 요청 (end_date는 start_date 이후여야 함)."""

    name: str
    start_date: date
    end_date: date


class CycleUpdate(BaseModel):
    """평가 주기 수정 요청 (부분 업데이트, COMPLETED 주기는 수정 불가)."""

    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class CycleResponse(BaseModel):
    """평가 주기 응답.

    Attributes:
        status_counts: 단계별 평가 수 (Assessment count per stage, detail view only)
        total_assessments: 전체 평가 수 (Total assessments in the cycle)
    """

    id: str
    name: str
    start_date: date
    end_date: date
    status: str
    created_at: datetime
    total_assessments: int = 0
    status_counts: dict[str, int] | None = None


class AssignUserRequest(BaseModel):
    user_id: str


class AssignmentResultResponse(BaseModel):
    """일괄 배정 결과.

    Attributes:
        assigned: 새로 배정된 사용자 수 (Newly assigned users)
        skipped_no_requirements: 요구 역량이 없어 제외된 수 (Skipped, no requirements)
        already_assigned: 이미 배정된 수 (Users that already had an assessment)
    """

    assigned: int
    skipped_no_requirements: int
    already_assigned: int


class RemindResponse(BaseModel):
    reminded: int
