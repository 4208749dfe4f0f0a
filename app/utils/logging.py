"""로깅 설정 모듈.

Logging configuration for the service.
Plain text in local development, one dict-shaped line per record elsewhere
so the platform log collector can parse it.
"""

import json
import logging
import sys

from app.config import settings


class JsonFormatter(logging.Formatter):
    """JSON 한 줄 포맷터 — One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "timestamp": self.formatTime(record, self.datefmt),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def configure_logging() -> None:
    """루트 로거를 설정합니다 (Configure the root logger once at startup)."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if settings.ENVIRONMENT == "local":
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    # 중복 핸들러 제거 — Avoid duplicate handlers on reload
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosmtplib").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """모듈별 로거 반환 — Return the logger for a module."""
    return logging.getLogger(name)
