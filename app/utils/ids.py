"""ID 파싱 유틸리티.

UUID parsing helper for ids arriving as strings in request bodies.
"""

from uuid import UUID

from app.utils.exceptions import ValidationError


def parse_uuid(value: str, field: str = "id") -> UUID:
    """문자열 → UUID, 형식 오류 시 ValidationError.

    Args:
        value: UUID 문자열 (UUID string)
        field: 오류 메시지에 쓸 필드 이름 (Field name used in the error message)

    Raises:
        ValidationError: 올바른 UUID가 아님 (Not a valid UUID)
    """
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value!r}")
