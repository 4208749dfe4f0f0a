"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    user: 역할, 팀, 커리어 밴드, 사용자 (Role, Team, CareerBand, User)
    competency: 역량 그룹, 역량, 수준, 요구 수준 매트릭스 (Competency catalog and requirement matrix)
    assessment: 평가 주기, 평가, 역량별 점수 (Cycles, assessments, detail rows)
    development_plan: 개인 개발 계획 및 활동 (IDPs and their activities)
    notification: 알림 (User notifications / e-mail outbox)
"""

from app.models.user import Role, Team, CareerBand, User
from app.models.competency import CompetencyGroup, Competency, CompetencyLevel, CompetencyRequirement
from app.models.assessment import AssessmentCycle, Assessment, AssessmentDetail
from app.models.development_plan import DevelopmentPlan, DevelopmentActivity
from app.models.notification import Notification

__all__ = [
    "Role", "Team", "CareerBand", "User",
    "CompetencyGroup", "Competency", "CompetencyLevel", "CompetencyRequirement",
    "AssessmentCycle", "Assessment", "AssessmentDetail",
    "DevelopmentPlan", "DevelopmentActivity",
    "Notification",
]
