"""알림 API 및 이메일 발송 테스트.

Notification tests: in-app list/read endpoints and post-commit e-mail
delivery, where a failed send is logged and never raised.
"""

import logging

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.notification import Notification
from app.services.notification_service import notification_service
from tests.conftest import auth_header

NOTIFICATIONS = "/api/v1/app/my/notifications"


class TestInAppNotifications:
    """내 알림 목록/읽음 처리."""

    async def test_assignment_creates_notification(self, client: AsyncClient, assessment, employee_token):
        res = await client.get(NOTIFICATIONS, headers=auth_header(employee_token))
        assert res.status_code == 200
        body = res.json()
        assert body["total"] == 1
        item = body["items"][0]
        assert item["template_code"] == "ASSESSMENT_CYCLE_STARTED"
        assert item["subject"] == "Competency assessment started: 2026 H2"
        assert item["reference_id"] == str(assessment.id)
        assert item["is_read"] is False
        assert item["email_status"] == "SKIPPED"

    async def test_mark_read(self, client: AsyncClient, assessment, employee_token, peer_token):
        items = (await client.get(NOTIFICATIONS, headers=auth_header(employee_token))).json()["items"]
        url = f"{NOTIFICATIONS}/{items[0]['id']}/read"

        # 다른 사용자의 알림은 보이지 않음
        assert (await client.patch(url, headers=auth_header(peer_token))).status_code == 404

        assert (await client.patch(url, headers=auth_header(employee_token))).status_code == 200
        res = await client.get(f"{NOTIFICATIONS}/unread-count", headers=auth_header(employee_token))
        assert res.json() == {"unread_count": 0}

    async def test_mark_all_read(self, client: AsyncClient, assessment, employee_token, hr_token):
        await client.post(f"/api/v1/admin/cycles/{assessment.cycle_id}/remind", headers=auth_header(hr_token))

        res = await client.get(f"{NOTIFICATIONS}/unread-count", headers=auth_header(employee_token))
        assert res.json() == {"unread_count": 2}

        res = await client.patch(f"{NOTIFICATIONS}/read-all", headers=auth_header(employee_token))
        assert res.status_code == 200
        res = await client.get(f"{NOTIFICATIONS}/unread-count", headers=auth_header(employee_token))
        assert res.json() == {"unread_count": 0}

    async def test_leader_notified_on_self_submission(
        self, client: AsyncClient, assessment, competencies, employee_token, leader_token
    ):
        scores = [{"competency_id": str(c.id), "score": 3} for c in competencies.values()]
        await client.post(
            f"/api/v1/app/my/assessments/{assessment.id}/submit-self",
            json={"scores": scores},
            headers=auth_header(employee_token),
        )
        res = await client.get(NOTIFICATIONS, headers=auth_header(leader_token))
        items = res.json()["items"]
        assert [i["template_code"] for i in items] == ["SELF_ASSESSMENT_SUBMITTED"]
        assert "Eve Employee" in items[0]["subject"]


class TestDelivery:
    """커밋 후 이메일 발송."""

    async def test_failed_send_is_logged_not_raised(
        self, db: AsyncSession, employee_user, leader_user, monkeypatch, caplog
    ):
        from app.database import engine as app_engine

        monkeypatch.setattr(settings, "SMTP_USER", "mailer")
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "noreply@example.com")

        sent: list[str] = []

        async def fake_send(to, subject, html, text=None):
            if to == "eve@example.com":
                raise OSError("connection refused")
            sent.append(to)

        monkeypatch.setattr("app.services.notification_service.send_email", fake_send)

        variables = {"cycle_name": "2026 H2", "end_date": "2026-12-31"}
        failing = await notification_service.enqueue(db, employee_user, "ASSESSMENT_REMINDER", variables)
        working = await notification_service.enqueue(db, leader_user, "ASSESSMENT_REMINDER", variables)
        assert failing is not None and working is not None
        await db.commit()

        with caplog.at_level(logging.WARNING, logger="app.services.notification_service"):
            await notification_service.deliver([failing, working])

        assert sent == ["lena@example.com"]
        assert "Failed to send notification" in caplog.text

        rows = await db.execute(
            select(Notification.id, Notification.email_status)
            .where(Notification.id.in_([failing.notification_id, working.notification_id]))
        )
        statuses = {row.id: row.email_status for row in rows}
        assert statuses[failing.notification_id] == "FAILED"
        assert statuses[working.notification_id] == "SENT"

        await app_engine.dispose()

    async def test_user_without_email_is_skipped(self, db: AsyncSession, peer_user, monkeypatch):
        monkeypatch.setattr(settings, "SMTP_USER", "mailer")
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "noreply@example.com")

        email = await notification_service.enqueue(
            db, peer_user, "ASSESSMENT_REMINDER", {"cycle_name": "2026 H2", "end_date": "2026-12-31"}
        )
        assert email is None
        status = await db.scalar(select(Notification.email_status).where(Notification.user_id == peer_user.id))
        assert status == "SKIPPED"
