"""개인 개발 계획(IDP) 스키마.

Individual Development Plan request/response schemas.
"""

from datetime import date, datetime
from pydantic import BaseModel


class ActivityInput(BaseModel):
    """개발 활동 입력.

    Attributes:
        competency_id: 대상 역량 UUID
        activity_type: TRAINING | MENTORING | PROJECT_CHALLENGE | SELF_STUDY
        description: 활동 설명
        due_date: 기한 (optional)
    """

    competency_id: str
    activity_type: str
    description: str
    due_date: date | None = None


class PlanCreate(BaseModel):
    """개발 계획 생성 요청.

    activities를 생략하고 완료된 평가를 연결하면 갭 기반 활동이 자동 생성됨.
    (Omit ``activities`` and link a DONE assessment to pre-populate them
    from its gaps.)
    """

    goal: str
    start_date: date
    end_date: date
    assessment_id: str | None = None
    activities: list[ActivityInput] | None = None


class ActivityUpdate(BaseModel):
    status: str
    evidence: str | None = None


class ActivityResponse(BaseModel):
    id: str
    competency_id: str
    competency_name: str | None = None
    activity_type: str
    description: str
    evidence: str | None = None
    status: str
    due_date: date | None = None


class PlanResponse(BaseModel):
    id: str
    user_id: str
    user_name: str | None = None
    assessment_id: str | None = None
    goal: str
    start_date: date
    end_date: date
    status: str
    created_at: datetime
    activities: list[ActivityResponse] = []
