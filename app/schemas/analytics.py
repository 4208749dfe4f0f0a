"""갭 분석 리포트 응답 스키마.

Gap analysis report response schemas. Every float is already rounded to
two decimals by the gap analysis presentation layer.
"""

from pydantic import BaseModel


class GapSummaryResponse(BaseModel):
    total_employees: int
    total_rows: int
    avg_gap: float
    meets_requirement_percent: float
    needs_development_percent: float


class CompetencyGapResponse(BaseModel):
    competency_id: str
    competency_name: str
    group_name: str
    avg_gap: float
    employees_below: int
    total_assessed: int
    avg_required_level: float
    avg_score: float
    classification: str


class CriticalGapResponse(BaseModel):
    competency_id: str
    competency_name: str
    gap: int


class EmployeeGapResponse(BaseModel):
    user_id: str
    user_name: str
    team_id: str | None = None
    avg_gap: float
    total_competencies: int
    below_count: int
    classification: str
    critical_gaps: list[CriticalGapResponse] = []


class GapReportResponse(BaseModel):
    """갭 리포트 — 요약, 역량별, 직원별 (Summary, per competency, per employee)."""

    team_id: str | None = None
    summary: GapSummaryResponse
    by_competency: list[CompetencyGapResponse]
    by_employee: list[EmployeeGapResponse]


class RadarCompetencyResponse(BaseModel):
    competency_id: str
    competency_name: str
    avg_final_score: float
    avg_required_level: float | None = None
    avg_gap: float | None = None


class RadarGroupResponse(BaseModel):
    group_name: str
    avg_final_score: float
    avg_required_level: float
    competencies: list[RadarCompetencyResponse] = []


class RadarResponse(BaseModel):
    """레이더 차트 응답 (Radar view, grouped by competency group)."""

    assessment_id: str | None = None
    user_id: str | None = None
    team_id: str | None = None
    groups: list[RadarGroupResponse]
