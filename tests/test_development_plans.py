"""개인 개발 계획(IDP) API 테스트.

Individual development plan API tests: gap-based pre-population,
explicit activities, ownership and team listing.
"""

import uuid
from datetime import date, timedelta

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.assessment import AssessmentDetail, AssessmentStatus
from app.services.development_plan_service import development_plan_service, suggest_activities
from app.services.gap_analysis import GapRow
from tests.conftest import auth_header

PLANS = "/api/v1/app/my/development-plans"

# Communication +1, Teamwork −1, Problem Solving −2
FINAL = {"Communication": 4, "Teamwork": 1, "Problem Solving": 1}


def _plan_payload(**extra) -> dict:
    start = date.today()
    return {
        "goal": "Close my competency gaps before the next cycle",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=90)).isoformat(),
        **extra,
    }


@pytest_asyncio.fixture
async def done_assessment(db: AsyncSession, assessment, competencies):
    names = {c.id: name for name, c in competencies.items()}
    details = (await db.execute(
        select(AssessmentDetail).where(AssessmentDetail.assessment_id == assessment.id)
    )).scalars().all()
    for detail in details:
        detail.final_score = FINAL[names[detail.competency_id]]
    assessment.status = AssessmentStatus.DONE.value
    await db.flush()
    return assessment


class TestSuggestActivities:
    """갭 → 활동 제안 (순수 함수)."""

    def test_only_negative_gaps_most_severe_first(self):
        user = uuid.uuid4()
        rows = [
            GapRow(user, "Eve", uuid.uuid4(), "Communication", 3, final_score=4),
            GapRow(user, "Eve", uuid.uuid4(), "Teamwork", 2, final_score=1),
            GapRow(user, "Eve", uuid.uuid4(), "Problem Solving", 3, final_score=1),
            GapRow(user, "Eve", uuid.uuid4(), "Presentation", None, final_score=1),
        ]
        suggestions = suggest_activities(rows)

        assert [s["activity_type"] for s in suggestions] == ["TRAINING", "MENTORING"]
        assert [s["gap"] for s in suggestions] == [-2, -1]
        assert "Problem Solving" in suggestions[0]["description"]
        assert "Teamwork" in suggestions[1]["description"]


class TestCreatePlan:
    """계획 생성."""

    async def test_prefilled_from_finalized_assessment(
        self, client: AsyncClient, done_assessment, employee_token
    ):
        payload = _plan_payload(assessment_id=str(done_assessment.id))
        res = await client.post(PLANS, json=payload, headers=auth_header(employee_token))
        assert res.status_code == 201
        body = res.json()

        assert body["status"] == "IN_PROGRESS"
        assert body["assessment_id"] == str(done_assessment.id)
        by_name = {a["competency_name"]: a for a in body["activities"]}
        assert set(by_name) == {"Problem Solving", "Teamwork"}
        assert by_name["Problem Solving"]["activity_type"] == "TRAINING"
        assert by_name["Teamwork"]["activity_type"] == "MENTORING"
        assert all(a["status"] == "PENDING" for a in body["activities"])
        assert by_name["Teamwork"]["due_date"] == payload["end_date"]

    async def test_gap_rows_carry_team_and_assessment(self, db: AsyncSession, done_assessment, team):
        rows = await development_plan_service._gap_rows_for(db, done_assessment.id)
        assert len(rows) == 3
        assert {r.team_id for r in rows} == {team.id}
        assert {r.assessment_id for r in rows} == {done_assessment.id}
        assert {r.user_name for r in rows} == {"Eve Employee"}

    async def test_unfinished_assessment_cannot_prefill(self, client: AsyncClient, assessment, employee_token):
        res = await client.post(
            PLANS, json=_plan_payload(assessment_id=str(assessment.id)), headers=auth_header(employee_token)
        )
        assert res.status_code == 409

    async def test_cannot_link_someone_elses_assessment(
        self, client: AsyncClient, done_assessment, peer_token
    ):
        res = await client.post(
            PLANS, json=_plan_payload(assessment_id=str(done_assessment.id)), headers=auth_header(peer_token)
        )
        assert res.status_code == 403

    async def test_explicit_activities(self, client: AsyncClient, competencies, employee_token):
        activities = [{
            "competency_id": str(competencies["Teamwork"].id),
            "activity_type": "PROJECT_CHALLENGE",
            "description": "Lead the cross-team release retro",
        }]
        res = await client.post(
            PLANS, json=_plan_payload(activities=activities), headers=auth_header(employee_token)
        )
        assert res.status_code == 201
        assert [a["activity_type"] for a in res.json()["activities"]] == ["PROJECT_CHALLENGE"]

    async def test_invalid_input(self, client: AsyncClient, competencies, employee_token):
        bad_type = [{
            "competency_id": str(competencies["Teamwork"].id),
            "activity_type": "VACATION",
            "description": "Rest",
        }]
        res = await client.post(PLANS, json=_plan_payload(activities=bad_type), headers=auth_header(employee_token))
        assert res.status_code == 422

        payload = _plan_payload()
        payload["end_date"] = payload["start_date"]
        res = await client.post(PLANS, json=payload, headers=auth_header(employee_token))
        assert res.status_code == 422

        res = await client.post(PLANS, json=_plan_payload(goal="   "), headers=auth_header(employee_token))
        assert res.status_code == 422


class TestActivities:
    """활동 상태 갱신 및 조회."""

    async def test_owner_completes_activity(
        self, client: AsyncClient, done_assessment, employee_token, peer_token
    ):
        res = await client.post(
            PLANS, json=_plan_payload(assessment_id=str(done_assessment.id)), headers=auth_header(employee_token)
        )
        activity_id = res.json()["activities"][0]["id"]
        url = f"{PLANS}/activities/{activity_id}"

        res = await client.patch(
            url, json={"status": "DONE", "evidence": "Certificate attached"}, headers=auth_header(peer_token)
        )
        assert res.status_code == 403

        res = await client.patch(url, json={"status": "SKIPPED"}, headers=auth_header(employee_token))
        assert res.status_code == 422

        res = await client.patch(
            url, json={"status": "DONE", "evidence": "Certificate attached"}, headers=auth_header(employee_token)
        )
        assert res.status_code == 200
        activity = next(a for a in res.json()["activities"] if a["id"] == activity_id)
        assert activity["status"] == "DONE"
        assert activity["evidence"] == "Certificate attached"

        res = await client.get(f"{PLANS}/active", headers=auth_header(employee_token))
        assert res.status_code == 200
        assert len(res.json()["activities"]) == 2

    async def test_no_active_plan(self, client: AsyncClient, employee_token):
        res = await client.get(f"{PLANS}/active", headers=auth_header(employee_token))
        assert res.status_code == 404

    async def test_leader_lists_team_plans(
        self, client: AsyncClient, done_assessment, employee_token, leader_token
    ):
        await client.post(
            PLANS, json=_plan_payload(assessment_id=str(done_assessment.id)), headers=auth_header(employee_token)
        )
        res = await client.get("/api/v1/app/team/development-plans", headers=auth_header(leader_token))
        assert res.status_code == 200
        assert [p["user_name"] for p in res.json()] == ["Eve Employee"]
