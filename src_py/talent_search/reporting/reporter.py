"""
목적:
- 내부 오류를 외부 오류 수집기로 보고한다.

설명:
- 보고 대상은 내부 오류(백엔드/직렬화/설정/예상 외 실패)이며 클라이언트 오류는 보고하지 않는다.
- 보고 실패는 로그로만 남기고 원래 오류를 가리지 않는다.
- Rollbar 보고기는 `rollbar` 패키지를 필요 시점에 불러온다.

디자인 패턴:
- 어댑터(Adapter).

참조:
- src_py/talent_search/contracts/context_models.py
- src_py/talent_search/search/engine.py
"""

from __future__ import annotations

import logging
from typing import Protocol

from talent_search.config.models import RollbarConfig
from talent_search.contracts.context_models import ErrorEvent
from talent_search.exceptions import DependencyUnavailableError

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    """오류 보고기 인터페이스."""

    def report(self, event: ErrorEvent) -> None:
        ...


class LoggingErrorReporter:
    """로그 전용 오류 보고기."""

    def report(self, event: ErrorEvent) -> None:
        logger.error(
            "search request failed: request_id=%s error_kind=%s message=%s compiled_query=%s",
            event.request_id,
            event.error_kind,
            event.message,
            event.compiled_query,
        )


class RollbarErrorReporter:
    """Rollbar 오류 보고기."""

    def __init__(self, config: RollbarConfig) -> None:
        self._config = config
        self._rollbar = self._create_client(config)

    @staticmethod
    def _create_client(config: RollbarConfig):
        try:
            import rollbar
        except ImportError as exc:  # pragma: no cover - 런타임 환경 의존
            raise DependencyUnavailableError(f"rollbar 패키지를 불러오지 못했습니다: {exc}") from exc

        rollbar.init(config.access_token.get_secret_value(), environment=config.environment)
        return rollbar

    def report(self, event: ErrorEvent) -> None:
        try:
            self._rollbar.report_message(
                f"[{event.error_kind}] {event.message}",
                level="error",
                extra_data={
                    "request_id": event.request_id,
                    "compiled_query": event.compiled_query,
                },
            )
        except Exception:
            logger.exception("rollbar report failed: request_id=%s", event.request_id)
