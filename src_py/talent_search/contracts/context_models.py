"""
목적:
- 요청 컨텍스트/오류 이벤트/오류 응답 모델을 정의한다.

설명:
- 인증 게이트가 확인한 스코프 집합을 `AuthContext`로 전달한다.
- 오류 보고기로 보내는 `ErrorEvent`와 호출자에게 돌려줄 오류 본문을 분리한다.

디자인 패턴:
- DTO(Data Transfer Object).

참조:
- src_py/talent_search/auth/gate.py
- src_py/talent_search/reporting/reporter.py
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from talent_search.exceptions import TalentSearchError, ValidationError


class AuthContext(BaseModel):
    """인증된 호출자 컨텍스트."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1)
    scopes: frozenset[str] = Field(default_factory=frozenset)


class ErrorEvent(BaseModel):
    """오류 보고 이벤트 모델."""

    error_kind: str = Field(min_length=1)
    message: str = Field(default="")
    request_id: str = Field(min_length=1)
    compiled_query: dict[str, Any] | None = Field(default=None)


def error_response(exc: Exception) -> tuple[int, dict[str, Any]]:
    """예외를 (HTTP 상태, 공개 오류 본문)으로 변환한다.

    내부 오류의 상세 메시지는 노출하지 않는다.
    """
    if not isinstance(exc, TalentSearchError):
        return 500, {"error": "internal", "message": TalentSearchError.public_message}

    if not exc.client_fault:
        return exc.http_status, {"error": exc.error_kind, "message": exc.public_message}

    body: dict[str, Any] = {"error": exc.error_kind, "message": str(exc)}
    if isinstance(exc, ValidationError) and exc.field:
        body["field"] = exc.field
    return exc.http_status, body
