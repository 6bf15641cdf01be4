"""
목적:
- Talent Search 계층의 예외 타입을 표준화한다.

설명:
- 클라이언트 오류(검증/인증)와 내부 오류(백엔드/직렬화/설정)를 명시적으로 구분해
  라우팅 계층이 HTTP 상태와 공개 메시지를 일관되게 선택할 수 있게 한다.
- 내부 오류는 `public_message`만 호출자에게 노출하고, 상세 내용은 오류 보고기로 전달한다.

디자인 패턴:
- 계층형 예외(Hierarchical Exception).

참조:
- src_py/talent_search/search/engine.py
- src_py/talent_search/search/executor.py
"""

from __future__ import annotations

from typing import Any


class TalentSearchError(Exception):
    """Talent Search 공통 베이스 예외."""

    error_kind = "internal"
    http_status = 500
    client_fault = False
    public_message = "검색 요청을 처리하지 못했습니다"


class ConfigurationError(TalentSearchError):
    """설정값이 유효하지 않을 때 발생한다."""

    error_kind = "configuration"


class DependencyUnavailableError(TalentSearchError):
    """Redis/Rollbar 등 필수 의존성을 사용할 수 없을 때 발생한다."""

    error_kind = "dependency_unavailable"
    http_status = 503
    public_message = "검색 서비스를 일시적으로 사용할 수 없습니다"


class ValidationError(TalentSearchError):
    """필터/요청 입력이 유효하지 않을 때 발생한다."""

    error_kind = "validation"
    http_status = 400
    client_fault = True

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class AuthError(TalentSearchError):
    """자격 증명이 없거나 만료되었거나 유효하지 않을 때 발생한다."""

    error_kind = "auth"
    http_status = 401
    client_fault = True


class InsufficientScopeError(AuthError):
    """자격 증명은 유효하지만 필요한 스코프가 없을 때 발생한다."""

    http_status = 403


class BackendTransportError(TalentSearchError):
    """재시도 가능한 백엔드 전송 실패(타임아웃/연결/5xx)를 나타낸다.

    실행기 내부에서만 사용되며 호출자에게는 `BackendUnavailable`로 전달된다.
    """

    error_kind = "backend_transport"
    http_status = 503

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class BackendUnavailable(TalentSearchError):
    """재시도를 모두 소진했거나 페이지 조회 제한 시간이 지났을 때 발생한다."""

    error_kind = "backend_unavailable"
    http_status = 503
    public_message = "검색 백엔드를 일시적으로 사용할 수 없습니다"


class BackendQueryError(TalentSearchError):
    """백엔드가 쿼리를 구조적으로 거부했을 때 발생한다(재시도 불가)."""

    error_kind = "backend_query"

    def __init__(
        self,
        message: str,
        status: int | None = None,
        compiled_query: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.compiled_query = compiled_query


class SerializationError(TalentSearchError):
    """응답 형태 변환에 실패했을 때 발생한다."""

    error_kind = "serialization"


class InternalSearchError(TalentSearchError):
    """예상하지 못한 내부 실패를 감싸는 예외."""
