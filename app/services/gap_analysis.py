"""갭 분석 엔진 — 역량 점수 행을 갭 통계로 집계하는 순수 함수 모음.

Gap Aggregation Engine — Pure functions turning per-competency score rows
into gap statistics. No database access; ``analytics_service`` loads the
rows and hands them over.

Definitions:
    - effective score = final ?? leader ?? self ?? 0
    - gap = effective score − required level
    - 요구 수준이 없거나 점수가 하나도 없는 행은 갭 통계에서 제외
      (Rows without a required level, or with no self, leader or final
      score yet, are excluded from gap statistics)

Rounding to 2 decimals happens only in ``to_dict()`` / ``build_report``;
every aggregate is computed with full float precision. Empty input yields
zeroed summaries and empty lists, never an exception.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence
from uuid import UUID

# 분류 라벨 — Classification labels
EXCEEDS = "Exceeds"
MEETS = "Meets"
SLIGHT_GAP = "Slight Gap"
CRITICAL = "Critical"

# 그룹 미지정 역량의 레이더 그룹 이름 — Radar group for ungrouped competencies
DEFAULT_GROUP_NAME = "Other"

# 치명적 갭 기준 — Gap at or below this is critical
CRITICAL_GAP_THRESHOLD = -2


@dataclass(frozen=True)
class GapRow:
    """갭 분석 입력 행 — One assessment detail row with its context."""

    user_id: UUID
    user_name: str
    competency_id: UUID
    competency_name: str
    required_level: int | None
    self_score: int | None = None
    leader_score: int | None = None
    final_score: int | None = None
    group_name: str | None = None
    team_id: UUID | None = None
    assessment_id: UUID | None = None

    @classmethod
    def from_row(cls, row: Any) -> "GapRow":
        """`get_gap_rows` 결과 행 → GapRow (full_name becomes user_name)."""
        return cls(
            user_id=row.user_id,
            user_name=row.full_name,
            team_id=row.team_id,
            assessment_id=row.assessment_id,
            competency_id=row.competency_id,
            competency_name=row.competency_name,
            group_name=row.group_name,
            required_level=row.required_level,
            self_score=row.self_score,
            leader_score=row.leader_score,
            final_score=row.final_score,
        )


def _round(value: float) -> float:
    return round(value, 2)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def effective_score(row: GapRow) -> int:
    """유효 점수 — final → leader → self → 0 순으로 첫 값."""
    for score in (row.final_score, row.leader_score, row.self_score):
        if score is not None:
            return score
    return 0


def compute_gap(row: GapRow) -> int | None:
    """갭 계산 — 요구 수준이 없으면 None (Not eligible)."""
    if row.required_level is None:
        return None
    return effective_score(row) - row.required_level


def classify_gap(gap: float) -> str:
    """갭 분류.

    Classify a gap (integer or averaged float):
        gap ≥ +1 → Exceeds, gap ≥ 0 → Meets, gap ≥ −1 → Slight Gap,
        otherwise Critical.
    """
    if gap >= 1:
        return EXCEEDS
    if gap >= 0:
        return MEETS
    if gap >= -1:
        return SLIGHT_GAP
    return CRITICAL


def is_scored(row: GapRow) -> bool:
    return any(s is not None for s in (row.final_score, row.leader_score, row.self_score))


def eligible_rows(rows: Iterable[GapRow]) -> list[tuple[GapRow, int]]:
    """갭 통계 대상 행과 그 갭.

    Rows with a required level and at least one score, paired with their
    gap. An unscored row would otherwise count as score 0.
    """
    result: list[tuple[GapRow, int]] = []
    for row in rows:
        if not is_scored(row):
            continue
        gap = compute_gap(row)
        if gap is not None:
            result.append((row, gap))
    return result


@dataclass
class GapSummary:
    total_employees: int = 0
    total_rows: int = 0
    avg_gap: float = 0.0
    meets_requirement_percent: float = 0.0
    needs_development_percent: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_employees": self.total_employees,
            "total_rows": self.total_rows,
            "avg_gap": _round(self.avg_gap),
            "meets_requirement_percent": _round(self.meets_requirement_percent),
            "needs_development_percent": _round(self.needs_development_percent),
        }


@dataclass
class CompetencyGap:
    competency_id: UUID
    competency_name: str
    group_name: str
    avg_gap: float
    employees_below: int
    total_assessed: int
    avg_required_level: float
    avg_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "competency_id": str(self.competency_id),
            "competency_name": self.competency_name,
            "group_name": self.group_name,
            "avg_gap": _round(self.avg_gap),
            "employees_below": self.employees_below,
            "total_assessed": self.total_assessed,
            "avg_required_level": _round(self.avg_required_level),
            "avg_score": _round(self.avg_score),
            "classification": classify_gap(self.avg_gap),
        }


@dataclass
class CriticalGap:
    competency_id: UUID
    competency_name: str
    gap: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "competency_id": str(self.competency_id),
            "competency_name": self.competency_name,
            "gap": self.gap,
        }


@dataclass
class EmployeeGap:
    user_id: UUID
    user_name: str
    team_id: UUID | None
    avg_gap: float
    total_competencies: int
    below_count: int
    critical_gaps: list[CriticalGap] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": str(self.user_id),
            "user_name": self.user_name,
            "team_id": str(self.team_id) if self.team_id else None,
            "avg_gap": _round(self.avg_gap),
            "total_competencies": self.total_competencies,
            "below_count": self.below_count,
            "classification": classify_gap(self.avg_gap),
            "critical_gaps": [c.to_dict() for c in self.critical_gaps],
        }


@dataclass
class RadarCompetency:
    competency_id: UUID
    competency_name: str
    avg_final_score: float
    avg_required_level: float | None
    avg_gap: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "competency_id": str(self.competency_id),
            "competency_name": self.competency_name,
            "avg_final_score": _round(self.avg_final_score),
            "avg_required_level": _round(self.avg_required_level) if self.avg_required_level is not None else None,
            "avg_gap": _round(self.avg_gap) if self.avg_gap is not None else None,
        }


@dataclass
class RadarGroup:
    group_name: str
    avg_final_score: float
    avg_required_level: float
    competencies: list[RadarCompetency] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_name": self.group_name,
            "avg_final_score": _round(self.avg_final_score),
            "avg_required_level": _round(self.avg_required_level),
            "competencies": [c.to_dict() for c in self.competencies],
        }


def summarize(rows: Iterable[GapRow]) -> GapSummary:
    """전체 요약 통계.

    Summary across all eligible rows. ``total_employees`` counts distinct
    users with at least one eligible row, so a user with none is left out.
    """
    pairs = eligible_rows(rows)
    if not pairs:
        return GapSummary()

    gaps = [gap for _, gap in pairs]
    meets = sum(1 for gap in gaps if gap >= 0)
    return GapSummary(
        total_employees=len({row.user_id for row, _ in pairs}),
        total_rows=len(gaps),
        avg_gap=_mean(gaps),
        meets_requirement_percent=meets / len(gaps) * 100,
        needs_development_percent=(len(gaps) - meets) / len(gaps) * 100,
    )


def by_competency(rows: Iterable[GapRow]) -> list[CompetencyGap]:
    """역량별 갭 — 평균 갭 오름차순 (가장 부족한 역량 우선).

    Per-competency gaps, most negative average first; ties break on name.
    """
    grouped: dict[UUID, list[tuple[GapRow, int]]] = defaultdict(list)
    for row, gap in eligible_rows(rows):
        grouped[row.competency_id].append((row, gap))

    result: list[CompetencyGap] = []
    for competency_id, pairs in grouped.items():
        first = pairs[0][0]
        result.append(CompetencyGap(
            competency_id=competency_id,
            competency_name=first.competency_name,
            group_name=first.group_name or DEFAULT_GROUP_NAME,
            avg_gap=_mean([gap for _, gap in pairs]),
            employees_below=len({row.user_id for row, gap in pairs if gap < 0}),
            total_assessed=len({row.user_id for row, _ in pairs}),
            avg_required_level=_mean([row.required_level for row, _ in pairs]),
            avg_score=_mean([effective_score(row) for row, _ in pairs]),
        ))
    result.sort(key=lambda c: (c.avg_gap, c.competency_name))
    return result


def by_employee(rows: Iterable[GapRow]) -> list[EmployeeGap]:
    """직원별 갭 — 평균 갭 오름차순 (관심 필요 직원 우선).

    Per-employee gaps, most negative average first. Users with no eligible
    row are absent. ``critical_gaps`` lists competencies with gap ≤ −2,
    most negative first.
    """
    grouped: dict[UUID, list[tuple[GapRow, int]]] = defaultdict(list)
    for row, gap in eligible_rows(rows):
        grouped[row.user_id].append((row, gap))

    result: list[EmployeeGap] = []
    for user_id, pairs in grouped.items():
        first = pairs[0][0]
        critical = [
            CriticalGap(row.competency_id, row.competency_name, gap)
            for row, gap in pairs
            if gap <= CRITICAL_GAP_THRESHOLD
        ]
        critical.sort(key=lambda c: (c.gap, c.competency_name))
        result.append(EmployeeGap(
            user_id=user_id,
            user_name=first.user_name,
            team_id=first.team_id,
            avg_gap=_mean([gap for _, gap in pairs]),
            total_competencies=len(pairs),
            below_count=sum(1 for _, gap in pairs if gap < 0),
            critical_gaps=critical,
        ))
    result.sort(key=lambda e: (e.avg_gap, e.user_name))
    return result


def radar_groups(rows: Iterable[GapRow]) -> list[RadarGroup]:
    """레이더 차트용 그룹 집계.

    Competencies grouped by competency group (ungrouped → "Other"). Every
    scored row counts toward the score averages; only rows with a required
    level count toward required-level and gap averages. Unscored rows are
    skipped.
    """
    by_group: dict[str, dict[UUID, list[GapRow]]] = defaultdict(lambda: defaultdict(list))
    for row in rows:
        if not is_scored(row):
            continue
        by_group[row.group_name or DEFAULT_GROUP_NAME][row.competency_id].append(row)

    groups: list[RadarGroup] = []
    for group_name in sorted(by_group):
        competencies: list[RadarCompetency] = []
        group_scores: list[float] = []
        group_required: list[float] = []
        for competency_rows in by_group[group_name].values():
            scores = [effective_score(r) for r in competency_rows]
            required = [r.required_level for r in competency_rows if r.required_level is not None]
            gaps = [g for g in (compute_gap(r) for r in competency_rows) if g is not None]
            group_scores.extend(scores)
            group_required.extend(required)
            competencies.append(RadarCompetency(
                competency_id=competency_rows[0].competency_id,
                competency_name=competency_rows[0].competency_name,
                avg_final_score=_mean(scores),
                avg_required_level=_mean(required) if required else None,
                avg_gap=_mean(gaps) if gaps else None,
            ))
        competencies.sort(key=lambda c: c.competency_name)
        groups.append(RadarGroup(
            group_name=group_name,
            avg_final_score=_mean(group_scores),
            avg_required_level=_mean(group_required),
            competencies=competencies,
        ))
    return groups


def build_report(rows: Iterable[GapRow]) -> dict[str, Any]:
    """전체 갭 리포트 (표시용, 소수점 2자리 반올림).

    Full presentation report: summary, by_competency, by_employee.
    """
    materialized = list(rows)
    return {
        "summary": summarize(materialized).to_dict(),
        "by_competency": [c.to_dict() for c in by_competency(materialized)],
        "by_employee": [e.to_dict() for e in by_employee(materialized)],
    }
