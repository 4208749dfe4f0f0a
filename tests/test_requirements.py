"""역량 카탈로그 및 요구 수준 매트릭스 API 테스트.

Competency catalog and requirement matrix API tests.
"""

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.competency import CompetencyRequirement
from tests.conftest import auth_header

ADMIN = "/api/v1/admin"


def _levels(count: int = 5) -> list[dict]:
    return [{"level_number": n, "behavioral_indicator": f"Indicator {n}"} for n in range(1, count + 1)]


class TestCatalog:
    """역량 그룹/역량 생성."""

    async def test_create_group_and_competency(self, client: AsyncClient, hr_token):
        res = await client.post(
            f"{ADMIN}/competency-groups", json={"name": "Leadership"}, headers=auth_header(hr_token)
        )
        assert res.status_code == 201
        group_id = res.json()["id"]

        res = await client.post(
            f"{ADMIN}/competencies",
            json={"name": "Coaching", "group_id": group_id, "levels": _levels()},
            headers=auth_header(hr_token),
        )
        assert res.status_code == 201
        body = res.json()
        assert body["group_name"] == "Leadership"
        assert [lv["level_number"] for lv in body["levels"]] == [1, 2, 3, 4, 5]

        res = await client.get(f"{ADMIN}/competencies", params={"group_id": group_id}, headers=auth_header(hr_token))
        assert [c["name"] for c in res.json()] == ["Coaching"]

    async def test_duplicate_group_name(self, client: AsyncClient, competencies, hr_token):
        res = await client.post(
            f"{ADMIN}/competency-groups", json={"name": "Core"}, headers=auth_header(hr_token)
        )
        assert res.status_code == 409

    async def test_competency_needs_five_levels(self, client: AsyncClient, hr_token):
        res = await client.post(
            f"{ADMIN}/competencies",
            json={"name": "Coaching", "levels": _levels(4)},
            headers=auth_header(hr_token),
        )
        assert res.status_code == 422

        duplicated = _levels()
        duplicated[4]["level_number"] = 4
        res = await client.post(
            f"{ADMIN}/competencies",
            json={"name": "Coaching", "levels": duplicated},
            headers=auth_header(hr_token),
        )
        assert res.status_code == 422

    async def test_leader_cannot_edit_catalog(self, client: AsyncClient, leader_token):
        res = await client.post(
            f"{ADMIN}/competency-groups", json={"name": "Leadership"}, headers=auth_header(leader_token)
        )
        assert res.status_code == 403


class TestMatrix:
    """밴드 × 역량 매트릭스."""

    async def test_matrix_view(self, client: AsyncClient, bands, competencies, requirements, hr_token):
        res = await client.get(f"{ADMIN}/requirements/matrix", headers=auth_header(hr_token))
        assert res.status_code == 200
        body = res.json()

        assert [b["band_name"] for b in body["bands"]] == ["B1", "B2"]
        assert [g["name"] for g in body["groups"]] == ["Core", "Other"]
        assert [c["name"] for c in body["groups"][1]["competencies"]] == ["Problem Solving"]

        b1 = body["cells"][str(bands["B1"].id)]
        assert b1[str(competencies["Communication"].id)] == 3
        assert body["cells"][str(bands["B2"].id)] == {}

    async def test_set_and_remove_cell(self, client: AsyncClient, bands, competencies, requirements, hr_token):
        cell = {"career_band_id": str(bands["B2"].id), "competency_id": str(competencies["Teamwork"].id)}

        res = await client.put(
            f"{ADMIN}/requirements", json={**cell, "required_level": 4}, headers=auth_header(hr_token)
        )
        assert res.status_code == 200
        assert res.json()["required_level"] == 4

        res = await client.get(
            f"{ADMIN}/career-bands/{bands['B2'].id}/requirements", headers=auth_header(hr_token)
        )
        assert [(r["competency_id"], r["required_level"]) for r in res.json()] == [(cell["competency_id"], 4)]

        res = await client.put(
            f"{ADMIN}/requirements", json={**cell, "required_level": None}, headers=auth_header(hr_token)
        )
        assert res.status_code == 200
        assert res.json()["required_level"] is None

        res = await client.get(
            f"{ADMIN}/career-bands/{bands['B2'].id}/requirements", headers=auth_header(hr_token)
        )
        assert res.json() == []

    async def test_level_out_of_range(self, client: AsyncClient, bands, competencies, hr_token):
        res = await client.put(
            f"{ADMIN}/requirements",
            json={
                "career_band_id": str(bands["B1"].id),
                "competency_id": str(competencies["Teamwork"].id),
                "required_level": 6,
            },
            headers=auth_header(hr_token),
        )
        assert res.status_code == 422

    async def test_unknown_band(self, client: AsyncClient, competencies, hr_token):
        res = await client.put(
            f"{ADMIN}/requirements",
            json={
                "career_band_id": "00000000-0000-0000-0000-000000000000",
                "competency_id": str(competencies["Teamwork"].id),
                "required_level": 3,
            },
            headers=auth_header(hr_token),
        )
        assert res.status_code == 404

    async def test_bulk_update(self, client: AsyncClient, bands, competencies, requirements, hr_token):
        items = [
            {"career_band_id": str(bands["B2"].id), "competency_id": str(c.id), "required_level": 4}
            for c in competencies.values()
        ]
        res = await client.put(f"{ADMIN}/requirements/bulk", json={"items": items}, headers=auth_header(hr_token))
        assert res.status_code == 200
        assert res.json() == {"updated": 3}

        res = await client.get(
            f"{ADMIN}/career-bands/{bands['B2'].id}/requirements", headers=auth_header(hr_token)
        )
        assert len(res.json()) == 3

    async def test_bulk_update_fails_as_a_whole(
        self, client: AsyncClient, db: AsyncSession, bands, competencies, requirements, hr_token
    ):
        """한 셀이라도 잘못되면 오류 — 요청 세션은 롤백되어 아무것도 반영되지 않음."""
        band_id = bands["B1"].id
        communication_id = competencies["Communication"].id
        teamwork_id = competencies["Teamwork"].id
        await db.commit()

        items = [
            {"career_band_id": str(band_id), "competency_id": str(communication_id), "required_level": 5},
            {"career_band_id": str(band_id), "competency_id": str(teamwork_id), "required_level": 0},
        ]
        res = await client.put(f"{ADMIN}/requirements/bulk", json={"items": items}, headers=auth_header(hr_token))
        assert res.status_code == 422
        # get_db와 동일하게 실패한 요청의 작업을 롤백
        await db.rollback()

        level = await db.scalar(
            select(CompetencyRequirement.required_level).where(
                CompetencyRequirement.career_band_id == band_id,
                CompetencyRequirement.competency_id == communication_id,
            )
        )
        assert level == 3


class TestSnapshot:
    """매트릭스 변경은 기존 평가의 요구 수준 스냅샷에 영향 없음."""

    async def test_existing_assessment_keeps_required_level(
        self, client: AsyncClient, assessment, bands, competencies, employee_token, hr_token
    ):
        res = await client.put(
            f"{ADMIN}/requirements",
            json={
                "career_band_id": str(bands["B1"].id),
                "competency_id": str(competencies["Communication"].id),
                "required_level": 5,
            },
            headers=auth_header(hr_token),
        )
        assert res.status_code == 200

        res = await client.get(f"/api/v1/app/my/assessments/{assessment.id}", headers=auth_header(employee_token))
        details = {d["competency_name"]: d for d in res.json()["details"]}
        assert details["Communication"]["required_level"] == 3
