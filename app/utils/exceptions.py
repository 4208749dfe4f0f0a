"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Every failure the assessment engine can report is one of these classes.
They subclass HTTPException so routers can let them propagate unchanged,
and each carries a machine-readable ``code`` rendered next to ``detail``
by the handler registered in ``app.main``.

Taxonomy:
    - ValidationError (422): 입력 누락/형식 오류 (Malformed or incomplete input)
    - ForbiddenError (403): 쓰기 권한 없음 (Caller not authorized)
    - StateError (409): 허용되지 않는 라이프사이클 상태 (Disallowed lifecycle state,
      lost transition race, double submission)
    - NotFoundError (404): 대상 없음 (Referenced record missing or soft-deleted)
    - UnauthorizedError (401): 토큰 검증 실패 (Token verification failed)

Usage:
    from app.utils.exceptions import NotFoundError, StateError
    raise NotFoundError("Assessment not found")
    raise StateError("Assessment is already in stage LEADER_ASSESSING")
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    """도메인 예외 베이스 — status code + 오류 코드.

    Base class for domain errors. ``code`` is stable across releases and
    meant for clients; ``detail`` is the human-readable message.
    """

    code: str = "APP_ERROR"
    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code_default, detail=detail)


class ValidationError(AppError):
    """422 — 점수 누락, 범위 밖 점수, 잘못된 날짜 범위 등.

    Raised for malformed or incomplete input, e.g. a missing competency
    score, a score outside 1–5, or an end date not after the start date.
    """

    code = "VALIDATION_ERROR"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, detail: str = "Invalid input") -> None:
        super().__init__(detail)


class ForbiddenError(AppError):
    """403 — 요청한 쓰기/조회 권한이 없음.

    Raised when the caller is not allowed to perform the requested
    operation (e.g. a non-leader submitting leader scores).
    """

    code = "PERMISSION_DENIED"
    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(detail)


class StateError(AppError):
    """409 — 현재 라이프사이클 상태에서 허용되지 않는 작업.

    Raised when an operation is attempted in a disallowed lifecycle state,
    including double submission and a lost stage-transition race.
    """

    code = "STATE_ERROR"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self, detail: str = "Operation not allowed in the current state") -> None:
        super().__init__(detail)


class NotFoundError(AppError):
    """404 — 요청한 리소스를 찾을 수 없음."""

    code = "NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(detail)


class UnauthorizedError(AppError):
    """401 — 인증 실패 (토큰 누락, 만료, 위조)."""

    code = "UNAUTHORIZED"
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(detail)
