"""갭 분석 엔진 테스트 — DB 없이 순수 함수만 검증.

Gap aggregation engine tests — pure functions, no database.
"""

import uuid

from app.services.gap_analysis import (
    CRITICAL,
    EXCEEDS,
    MEETS,
    SLIGHT_GAP,
    GapRow,
    build_report,
    by_competency,
    by_employee,
    classify_gap,
    compute_gap,
    effective_score,
    radar_groups,
    summarize,
)

ALICE = uuid.uuid4()
BOB = uuid.uuid4()
COMM = uuid.uuid4()
TEAM = uuid.uuid4()
PROB = uuid.uuid4()


def _row(user_id=ALICE, competency_id=COMM, name="Communication", required=3, **scores) -> GapRow:
    return GapRow(
        user_id=user_id,
        user_name="Alice" if user_id == ALICE else "Bob",
        competency_id=competency_id,
        competency_name=name,
        required_level=required,
        **scores,
    )


class TestEffectiveScore:
    """유효 점수 우선순위 (final → leader → self → 0)."""

    def test_final_wins(self):
        assert effective_score(_row(self_score=2, leader_score=3, final_score=4)) == 4

    def test_falls_back_to_leader_then_self(self):
        assert effective_score(_row(self_score=2, leader_score=3)) == 3
        assert effective_score(_row(self_score=2)) == 2

    def test_no_score_counts_as_zero(self):
        assert effective_score(_row()) == 0
        assert compute_gap(_row(required=2)) == -2

    def test_no_requirement_is_not_eligible(self):
        assert compute_gap(_row(required=None, final_score=4)) is None


class TestClassifyGap:
    """갭 분류 경계값."""

    def test_boundaries(self):
        assert classify_gap(2) == EXCEEDS
        assert classify_gap(1) == EXCEEDS
        assert classify_gap(0.5) == MEETS
        assert classify_gap(0) == MEETS
        assert classify_gap(-0.5) == SLIGHT_GAP
        assert classify_gap(-1) == SLIGHT_GAP
        assert classify_gap(-1.01) == CRITICAL
        assert classify_gap(-3) == CRITICAL


class TestSummarize:
    """전체 요약 통계."""

    def test_mixed_gaps(self):
        rows = [
            _row(competency_id=COMM, final_score=4, required=3),  # +1
            _row(competency_id=TEAM, name="Teamwork", final_score=2, required=2),  # 0
            _row(user_id=BOB, competency_id=PROB, name="Problem Solving", final_score=1, required=3),  # -2
        ]
        summary = summarize(rows).to_dict()

        assert summary["total_employees"] == 2
        assert summary["total_rows"] == 3
        assert summary["avg_gap"] == -0.33
        assert summary["meets_requirement_percent"] == 66.67
        assert summary["needs_development_percent"] == 33.33

    def test_rows_without_requirement_are_excluded(self):
        rows = [
            _row(final_score=3, required=3),
            _row(user_id=BOB, final_score=1, required=None),
        ]
        summary = summarize(rows)

        assert summary.total_employees == 1
        assert summary.total_rows == 1
        assert summary.avg_gap == 0
        assert summary.meets_requirement_percent == 100

    def test_unscored_rows_are_excluded(self):
        """점수가 없는 행은 0점으로 집계하지 않음."""
        rows = [
            _row(final_score=3, required=3),
            _row(user_id=BOB, required=3),
        ]
        summary = summarize(rows)

        assert summary.total_employees == 1
        assert summary.total_rows == 1
        assert summary.avg_gap == 0
        assert summary.meets_requirement_percent == 100
        assert [e.user_name for e in by_employee(rows)] == ["Alice"]
        assert by_competency(rows)[0].total_assessed == 1

    def test_self_score_alone_counts(self):
        rows = [_row(self_score=2, required=3), _row(user_id=BOB, leader_score=4, required=3)]
        summary = summarize(rows)

        assert summary.total_employees == 2
        assert summary.avg_gap == 0

    def test_empty_input_is_zeroed(self):
        assert summarize([]).to_dict() == {
            "total_employees": 0,
            "total_rows": 0,
            "avg_gap": 0.0,
            "meets_requirement_percent": 0.0,
            "needs_development_percent": 0.0,
        }
        assert build_report([]) == {
            "summary": summarize([]).to_dict(),
            "by_competency": [],
            "by_employee": [],
        }


class TestByCompetency:
    """역량별 집계 — 가장 부족한 역량이 먼저."""

    def test_sorted_by_average_gap(self):
        rows = [
            _row(competency_id=COMM, final_score=4, required=3),
            _row(user_id=BOB, competency_id=COMM, final_score=2, required=3),
            _row(competency_id=PROB, name="Problem Solving", final_score=1, required=3),
        ]
        result = by_competency(rows)

        assert [c.competency_name for c in result] == ["Problem Solving", "Communication"]
        comm = result[1]
        assert comm.avg_gap == 0
        assert comm.employees_below == 1
        assert comm.total_assessed == 2
        assert comm.avg_score == 3
        assert comm.group_name == "Other"

    def test_ties_break_on_name(self):
        rows = [
            _row(competency_id=TEAM, name="Teamwork", final_score=3, required=3),
            _row(competency_id=COMM, name="Communication", final_score=3, required=3),
        ]
        assert [c.competency_name for c in by_competency(rows)] == ["Communication", "Teamwork"]


class TestByEmployee:
    """직원별 집계 — 치명적 갭(≤ −2) 목록 포함."""

    def test_critical_gaps_listed(self):
        rows = [
            _row(competency_id=COMM, final_score=1, required=4),  # -3
            _row(competency_id=TEAM, name="Teamwork", final_score=1, required=2),  # -1
            _row(user_id=BOB, competency_id=COMM, final_score=3, required=3),  # 0
        ]
        result = by_employee(rows)

        assert [e.user_name for e in result] == ["Alice", "Bob"]
        alice = result[0].to_dict()
        assert alice["avg_gap"] == -2
        assert alice["below_count"] == 2
        assert alice["classification"] == CRITICAL
        assert [c["competency_name"] for c in alice["critical_gaps"]] == ["Communication"]
        assert alice["critical_gaps"][0]["gap"] == -3
        assert result[1].critical_gaps == []

    def test_user_without_eligible_rows_is_absent(self):
        rows = [_row(user_id=BOB, final_score=3, required=None)]
        assert by_employee(rows) == []


class TestRadarGroups:
    """레이더 그룹 — 그룹 없는 역량은 "Other"."""

    def test_ungrouped_competencies_fall_into_other(self):
        rows = [
            GapRow(ALICE, "Alice", COMM, "Communication", 3, final_score=4, group_name="Core"),
            GapRow(ALICE, "Alice", TEAM, "Teamwork", 2, final_score=2, group_name="Core"),
            GapRow(ALICE, "Alice", PROB, "Problem Solving", None, final_score=5),
        ]
        groups = [g.to_dict() for g in radar_groups(rows)]

        assert [g["group_name"] for g in groups] == ["Core", "Other"]
        core = groups[0]
        assert core["avg_final_score"] == 3
        assert core["avg_required_level"] == 2.5
        assert [c["competency_name"] for c in core["competencies"]] == ["Communication", "Teamwork"]

        other = groups[1]["competencies"][0]
        assert other["avg_final_score"] == 5
        assert other["avg_required_level"] is None
        assert other["avg_gap"] is None

    def test_unscored_rows_are_skipped(self):
        rows = [
            GapRow(ALICE, "Alice", COMM, "Communication", 3, final_score=4, group_name="Core"),
            GapRow(BOB, "Bob", COMM, "Communication", 3, group_name="Core"),
        ]
        core = radar_groups(rows)[0].to_dict()

        assert core["avg_final_score"] == 4
        assert core["competencies"][0]["avg_gap"] == 1
