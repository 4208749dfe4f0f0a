"""앱 API 라우터 패키지 — 직원/팀장용 엔드포인트 통합.

App API Router package — Aggregates all employee and team-leader facing
endpoints into a single router for inclusion in the FastAPI application.

Included routers:
    - assessments: 내 평가 (My cycle, assessment, history, self-assessment, radar)
    - team: 팀 평가 및 분석 (Team reviews, team gap report and radar, team plans)
    - development_plans: 내 개발 계획 (My IDP)
    - notifications: 내 알림 (My notifications)
"""

from fastapi import APIRouter

from app.api.app.assessments import router as assessments_router
from app.api.app.development_plans import router as development_plans_router
from app.api.app.notifications import router as notifications_router
from app.api.app.team import router as team_router

app_router: APIRouter = APIRouter()

# 내 평가: /my 하위 (My assessments)
app_router.include_router(assessments_router, prefix="/my", tags=["My Assessments"])
app_router.include_router(development_plans_router, prefix="/my/development-plans", tags=["My Development Plans"])
app_router.include_router(notifications_router, prefix="/my/notifications", tags=["My Notifications"])
# 팀: /team 하위 (Team leader views)
app_router.include_router(team_router, prefix="/team", tags=["Team"])
