"""관리자 API 라우터 패키지 — HR/Admin 엔드포인트 통합.

Admin API Router package — Aggregates all HR/Admin-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - cycles: 평가 주기 관리 (Assessment cycle lifecycle and assignment)
    - competencies: 역량 카탈로그 + 요구 매트릭스 (Competency catalog and requirement matrix)
    - assessments: 평가 조회 및 팀장/최종 단계 (Assessment reads, leader and final stages)
    - analytics: 갭 리포트 및 레이더 (Gap reports and radar data)
"""

from fastapi import APIRouter

from app.api.admin.analytics import router as analytics_router
from app.api.admin.assessments import router as assessments_router
from app.api.admin.competencies import router as competencies_router
from app.api.admin.cycles import router as cycles_router

admin_router: APIRouter = APIRouter()

# 평가 주기: /cycles 하위 (Cycle CRUD, activate, assign, close, remind)
admin_router.include_router(cycles_router, prefix="/cycles", tags=["Assessment Cycles"])
# 역량/매트릭스: /competency-groups, /competencies, /career-bands, /requirements
admin_router.include_router(competencies_router, tags=["Competencies"])
admin_router.include_router(assessments_router, prefix="/assessments", tags=["Assessments"])
admin_router.include_router(analytics_router, prefix="/analytics", tags=["Analytics"])
