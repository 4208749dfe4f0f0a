"""이메일 발송 유틸리티 — SMTP (aiosmtplib).

SMTP 설정은 config.py의 SMTP_* 환경 변수로 관리.
SMTP_USER 또는 SMTP_FROM_EMAIL이 비어 있으면 발송하지 않음.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import aiosmtplib

from app.config import settings


def is_smtp_configured() -> bool:
    """SMTP 발송 가능 여부 (Whether outbound e-mail is configured)."""
    return bool(settings.SMTP_USER and settings.SMTP_FROM_EMAIL)


def text_to_html(text: str) -> str:
    """플레인텍스트 → 단순 HTML 본문."""
    paragraphs = [f"<p>{escape(line)}</p>" for line in text.split("\n") if line.strip()]
    return "<html><body>" + "".join(paragraphs) + "</body></html>"


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
) -> None:
    """이메일 발송.

    Args:
        to: 수신자 이메일 주소
        subject: 제목
        html: HTML 본문
        text: 플레인텍스트 본문 (없으면 생략)

    Raises:
        aiosmtplib.SMTPException: SMTP 서버 오류
        OSError: 연결 실패
    """
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        start_tls=True,
    )
