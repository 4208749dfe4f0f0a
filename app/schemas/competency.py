"""역량 카탈로그 및 요구 수준 매트릭스 스키마.

Competency catalog and requirement matrix request/response schemas.
Range checks (levels 1–5, exactly five levels) happen in the service so
they surface as VALIDATION_ERROR like every other domain failure.
"""

from pydantic import BaseModel


class CompetencyGroupCreate(BaseModel):
    name: str
    description: str | None = None


class CompetencyGroupResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    competency_count: int = 0


class CompetencyLevelInput(BaseModel):
    """역량 수준 입력 — 1~5 수준별 행동 지표 (Behavioral indicator per level)."""

    level_number: int
    behavioral_indicator: str


class CompetencyCreate(BaseModel):
    """역량 생성 요청 스키마.

    Attributes:
        name: 역량 이름 (Competency name)
        description: 설명 (Description)
        group_id: 소속 그룹 UUID (Group UUID, optional)
        levels: 정확히 5개, 1~5 각각 1개 (Exactly five levels numbered 1–5)
    """

    name: str
    description: str | None = None
    group_id: str | None = None
    levels: list[CompetencyLevelInput]


class CompetencyLevelResponse(BaseModel):
    level_number: int
    behavioral_indicator: str


class CompetencyResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    group_id: str | None = None
    group_name: str | None = None
    levels: list[CompetencyLevelResponse] = []


class RequirementSet(BaseModel):
    """요구 수준 설정 — required_level이 None이면 셀 삭제.

    Set one matrix cell; ``required_level=None`` removes the requirement.
    """

    career_band_id: str
    competency_id: str
    required_level: int | None = None


class RequirementBulkSet(BaseModel):
    items: list[RequirementSet]


class RequirementResponse(BaseModel):
    """셀 응답 — required_level None이면 셀이 삭제됨 (None means the cell was removed)."""

    career_band_id: str | None = None
    competency_id: str
    required_level: int | None = None


class BulkSetResponse(BaseModel):
    updated: int


class CareerBandResponse(BaseModel):
    id: str
    band_name: str
    title: str
    description: str | None = None


class MatrixResponse(BaseModel):
    """요구 수준 매트릭스 응답 스키마.

    Attributes:
        bands: 커리어 밴드 목록 (Career bands, ordered by band name)
        groups: 그룹 + 역량 목록 (Groups with their competencies)
        cells: {band_id: {competency_id: required_level}}
    """

    bands: list[CareerBandResponse]
    groups: list[dict]
    cells: dict[str, dict[str, int]]
