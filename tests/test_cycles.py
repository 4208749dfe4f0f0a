"""평가 주기 API 테스트 — 생성, 활성화/배정, 종료, 삭제, 독촉.

Assessment cycle API tests.
"""

from datetime import date, timedelta

from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.assessment import Assessment, AssessmentDetail
from app.models.notification import Notification
from tests.conftest import auth_header

CYCLES = "/api/v1/admin/cycles"
MY = "/api/v1/app/my"


def _cycle_payload(days: int = 30) -> dict:
    start = date.today()
    return {
        "name": "2027 H1",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=days)).isoformat(),
    }


class TestCycleCrud:
    """주기 생성/조회/수정/삭제."""

    async def test_create_draft(self, client: AsyncClient, hr_token):
        res = await client.post(CYCLES, json=_cycle_payload(), headers=auth_header(hr_token))
        assert res.status_code == 201
        body = res.json()
        assert body["status"] == "DRAFT"
        assert body["name"] == "2027 H1"
        assert body["total_assessments"] == 0

        res = await client.get(CYCLES, headers=auth_header(hr_token))
        assert res.json()["total"] == 1

    async def test_end_must_follow_start(self, client: AsyncClient, hr_token):
        res = await client.post(CYCLES, json=_cycle_payload(days=0), headers=auth_header(hr_token))
        assert res.status_code == 422
        assert res.json()["code"] == "VALIDATION_ERROR"

    async def test_update_dates(self, client: AsyncClient, draft_cycle, hr_token):
        new_end = (draft_cycle.start_date + timedelta(days=60)).isoformat()
        res = await client.put(
            f"{CYCLES}/{draft_cycle.id}", json={"end_date": new_end}, headers=auth_header(hr_token)
        )
        assert res.status_code == 200
        assert res.json()["end_date"] == new_end

        bad_end = (draft_cycle.start_date - timedelta(days=1)).isoformat()
        res = await client.put(
            f"{CYCLES}/{draft_cycle.id}", json={"end_date": bad_end}, headers=auth_header(hr_token)
        )
        assert res.status_code == 422

    async def test_employee_forbidden(self, client: AsyncClient, employee_token):
        res = await client.post(CYCLES, json=_cycle_payload(), headers=auth_header(employee_token))
        assert res.status_code == 403

    async def test_active_cycle_cannot_be_deleted(self, client: AsyncClient, active_cycle, hr_token):
        res = await client.delete(f"{CYCLES}/{active_cycle.id}", headers=auth_header(hr_token))
        assert res.status_code == 409

    async def test_delete_draft(self, client: AsyncClient, draft_cycle, hr_token):
        res = await client.delete(f"{CYCLES}/{draft_cycle.id}", headers=auth_header(hr_token))
        assert res.status_code == 200
        res = await client.get(f"{CYCLES}/{draft_cycle.id}", headers=auth_header(hr_token))
        assert res.status_code == 404


class TestActivation:
    """활성화 + 일괄 배정."""

    async def test_activate_assigns_eligible_users(
        self,
        client: AsyncClient,
        db: AsyncSession,
        draft_cycle,
        requirements,
        employee_user,
        peer_user,
        outsider_user,
        hr_token,
    ):
        """밴드 요구 역량이 있는 사용자만 배정, 나머지는 건수로 보고."""
        res = await client.post(f"{CYCLES}/{draft_cycle.id}/activate", headers=auth_header(hr_token))
        assert res.status_code == 200
        assert res.json() == {"assigned": 2, "skipped_no_requirements": 1, "already_assigned": 0}

        res = await client.get(f"{CYCLES}/{draft_cycle.id}", headers=auth_header(hr_token))
        body = res.json()
        assert body["status"] == "ACTIVE"
        assert body["total_assessments"] == 2

        # 평가마다 요구 역량 3개의 점수 행
        detail_count = await db.scalar(
            select(func.count()).select_from(AssessmentDetail)
            .join(Assessment, Assessment.id == AssessmentDetail.assessment_id)
            .where(Assessment.cycle_id == draft_cycle.id)
        )
        assert detail_count == 6

        # 배정 알림 (SMTP 미설정 → SKIPPED)
        statuses = (await db.execute(
            select(Notification.email_status).where(Notification.template_code == "ASSESSMENT_CYCLE_STARTED")
        )).scalars().all()
        assert statuses == ["SKIPPED", "SKIPPED"]

    async def test_activate_twice_creates_no_duplicates(
        self, client: AsyncClient, db: AsyncSession, draft_cycle, requirements, employee_user, hr_token
    ):
        await client.post(f"{CYCLES}/{draft_cycle.id}/activate", headers=auth_header(hr_token))
        res = await client.post(f"{CYCLES}/{draft_cycle.id}/activate", headers=auth_header(hr_token))
        assert res.status_code == 200
        assert res.json() == {"assigned": 0, "skipped_no_requirements": 0, "already_assigned": 1}

        count = await db.scalar(
            select(func.count()).select_from(Assessment).where(Assessment.cycle_id == draft_cycle.id)
        )
        assert count == 1

    async def test_assign_only_on_active_cycle(self, client: AsyncClient, draft_cycle, hr_token):
        res = await client.post(f"{CYCLES}/{draft_cycle.id}/assign", headers=auth_header(hr_token))
        assert res.status_code == 409

    async def test_completed_cycle_cannot_be_activated(self, client: AsyncClient, active_cycle, hr_token):
        await client.post(f"{CYCLES}/{active_cycle.id}/close", headers=auth_header(hr_token))
        res = await client.post(f"{CYCLES}/{active_cycle.id}/activate", headers=auth_header(hr_token))
        assert res.status_code == 409


class TestSingleAssignment:
    """개별 배정 및 본인 시작."""

    async def test_assign_user(
        self, client: AsyncClient, active_cycle, requirements, employee_user, hr_token
    ):
        url = f"{CYCLES}/{active_cycle.id}/assignments"
        res = await client.post(url, json={"user_id": str(employee_user.id)}, headers=auth_header(hr_token))
        assert res.status_code == 201
        assert res.json()["status"] == "SELF_ASSESSING"
        assert res.json()["cycle_name"] == "2026 H2"

        res = await client.post(url, json={"user_id": str(employee_user.id)}, headers=auth_header(hr_token))
        assert res.status_code == 409

    async def test_band_without_requirements(
        self, client: AsyncClient, active_cycle, requirements, outsider_user, hr_token
    ):
        res = await client.post(
            f"{CYCLES}/{active_cycle.id}/assignments",
            json={"user_id": str(outsider_user.id)},
            headers=auth_header(hr_token),
        )
        assert res.status_code == 422

    async def test_start_my_assessment(
        self, client: AsyncClient, active_cycle, requirements, employee_token, leader_token
    ):
        res = await client.get(f"{MY}/active-cycle", headers=auth_header(employee_token))
        assert res.status_code == 200
        assert res.json()["id"] == str(active_cycle.id)

        res = await client.post(f"{MY}/cycles/{active_cycle.id}/start", headers=auth_header(employee_token))
        assert res.status_code == 201
        assert len(res.json()["details"]) == 3

        # 팀장은 커리어 밴드가 없어 시작 불가
        res = await client.post(f"{MY}/cycles/{active_cycle.id}/start", headers=auth_header(leader_token))
        assert res.status_code == 422

    async def test_no_active_cycle(self, client: AsyncClient, draft_cycle, employee_token):
        res = await client.get(f"{MY}/active-cycle", headers=auth_header(employee_token))
        assert res.status_code == 404


class TestCloseAndRemind:
    """종료 및 독촉 알림."""

    async def test_remind_pending_self_assessments(
        self, client: AsyncClient, db: AsyncSession, draft_cycle, requirements, employee_user, peer_user, hr_token
    ):
        await client.post(f"{CYCLES}/{draft_cycle.id}/activate", headers=auth_header(hr_token))

        res = await client.post(f"{CYCLES}/{draft_cycle.id}/remind", headers=auth_header(hr_token))
        assert res.status_code == 200
        assert res.json() == {"reminded": 2}

        reminders = await db.scalar(
            select(func.count()).select_from(Notification)
            .where(Notification.template_code == "ASSESSMENT_REMINDER")
        )
        assert reminders == 2

    async def test_remind_requires_active_cycle(self, client: AsyncClient, draft_cycle, hr_token):
        res = await client.post(f"{CYCLES}/{draft_cycle.id}/remind", headers=auth_header(hr_token))
        assert res.status_code == 409

    async def test_close(self, client: AsyncClient, assessment, hr_token):
        url = f"{CYCLES}/{assessment.cycle_id}"
        res = await client.post(f"{url}/close", headers=auth_header(hr_token))
        assert res.status_code == 200
        assert res.json()["status"] == "COMPLETED"

        # 다시 종료 불가, 진행 중 평가는 그대로 남음
        assert (await client.post(f"{url}/close", headers=auth_header(hr_token))).status_code == 409
        res = await client.get(f"{url}/assessments", headers=auth_header(hr_token))
        assert res.json()["total"] == 1
        assert res.json()["items"][0]["status"] == "SELF_ASSESSING"
