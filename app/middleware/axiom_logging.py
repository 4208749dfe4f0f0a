"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Sends one structured event per API call to Axiom: endpoint, method,
request data, status code, duration and, for failed calls, the error
``detail`` and ``code`` produced by the AppError handler.
Sensitive fields (token, secret, authorization) are masked.
"""

import json
import re
import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from axiom_py import Client as AxiomClient

from app.config import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

# 마스킹 대상 필드 패턴 — Fields to mask in request bodies and query strings
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_key|apikey|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_DETAIL = 500


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드 재귀 마스킹 — Recursively mask sensitive keys, cap list length."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(k) else _mask(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, depth + 1) for item in data[:50]]
    return data


async def _read_request_body(request: Request) -> Any:
    if request.method not in ("POST", "PUT", "PATCH"):
        return None
    body = await request.body()
    if not body:
        return None
    try:
        return _mask(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "(non-json body)"


def _parse_error(body: bytes) -> dict[str, Any]:
    """오류 응답 body → {"error", "error_code"}."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {"error": body.decode("utf-8", errors="replace")[:_MAX_DETAIL]}
    if not isinstance(data, dict):
        return {"error": str(data)[:_MAX_DETAIL]}
    detail = data.get("detail", data)
    parsed: dict[str, Any] = {"error": str(detail)[:_MAX_DETAIL]}
    if data.get("code"):
        parsed["error_code"] = data["code"]
    return parsed


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 호출을 Axiom 이벤트로 전송하는 미들웨어.

    Pass-through when AXIOM_API_TOKEN / AXIOM_DATASET are unset. Ingest
    failures are logged and never affect the response.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if self._client is None or request.url.path in _SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        event: dict[str, Any] = {
            "service": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
            "method": request.method,
            "path": request.url.path,
            "status_code": 500,
        }
        if request.query_params:
            event["query_params"] = _mask(dict(request.query_params))
        request_body = await _read_request_body(request)
        if request_body is not None:
            event["request_body"] = request_body

        try:
            response = await call_next(request)
            event["status_code"] = response.status_code
            if response.status_code >= 400:
                # 오류 body 소비 후 재구성 — Consume the error body, then rebuild the response
                body = b""
                async for chunk in response.body_iterator:
                    body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                event.update(_parse_error(body))
                response = Response(
                    content=body,
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
            return response
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            self._emit(event)

    def _emit(self, event: dict[str, Any]) -> None:
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception as exc:
            logger.warning("Axiom ingest failed for %s %s: %s", event["method"], event["path"], exc)
