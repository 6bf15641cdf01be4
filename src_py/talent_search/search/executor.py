"""
목적:
- 컴파일된 쿼리를 검색 백엔드에 전송하고 재시도/타임아웃 정책을 적용한다.

설명:
- 시도 1회마다 `request_timeout_ms`, 재시도와 대기 시간을 포함한 논리적 페이지 조회 전체에
  `page_timeout_ms` 제한을 둔다.
- 재시도 가능한 실패는 첫 페이지 요청에서만 지수 백오프로 재시도한다.
- 4xx 거부는 즉시 `BackendQueryError`로 전달한다.
- 호출 태스크가 취소되면 진행 중인 백엔드 결과는 폐기된다.

디자인 패턴:
- 서비스 레이어(Service Layer) + 재시도 정책(Retry Policy).

참조:
- src_py/talent_search/backend/elastic.py
- src_py/talent_search/query/elastic_dsl.py
- src_py/talent_search/search/engine.py
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from talent_search.backend.elastic import BackendPage, SearchBackend, parse_search_response
from talent_search.config.models import ElasticsearchConfig
from talent_search.exceptions import BackendQueryError, BackendTransportError, BackendUnavailable
from talent_search.query.elastic_dsl import build_search_body
from talent_search.query.tree import CompiledQuery

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class SearchExecutor:
    """검색 백엔드 호출 실행기."""

    def __init__(
        self,
        config: ElasticsearchConfig,
        backend: SearchBackend,
        *,
        id_field: str = "id",
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._config = config
        self._backend = backend
        self._id_field = id_field
        self._sleep = sleep

    async def execute(
        self,
        compiled: CompiledQuery,
        *,
        size: int,
        search_after: list[Any] | None = None,
        min_score: float | None = None,
        initial_page: bool = True,
        request_id: str = "",
    ) -> BackendPage:
        """페이지 1개를 조회한다."""
        body = build_search_body(
            compiled,
            size=size,
            id_field=self._id_field,
            search_after=search_after,
            min_score=min_score,
        )
        max_attempts = 1 + (self._config.max_retries if initial_page else 0)
        page_timeout_sec = self._config.page_timeout_ms / 1000.0

        try:
            async with asyncio.timeout(page_timeout_sec):
                raw = await self._search_with_retry(body, max_attempts, request_id)
        except TimeoutError as exc:
            raise BackendUnavailable(
                f"페이지 조회 제한 시간을 초과했습니다: page_timeout_ms={self._config.page_timeout_ms}"
            ) from exc
        except BackendQueryError as exc:
            if exc.compiled_query is None:
                exc.compiled_query = body
            raise

        try:
            return parse_search_response(raw, self._id_field)
        except BackendQueryError as exc:
            exc.compiled_query = body
            raise

    async def _search_with_retry(
        self,
        body: dict[str, Any],
        max_attempts: int,
        request_id: str,
    ) -> dict[str, Any]:
        request_timeout_sec = self._config.request_timeout_ms / 1000.0
        last_error: BackendTransportError | None = None

        for attempt in range(1, max_attempts + 1):
            started = time.monotonic()
            try:
                return await asyncio.to_thread(self._backend.search, body, request_timeout_sec)
            except BackendTransportError as exc:
                last_error = exc
                elapsed_ms = int((time.monotonic() - started) * 1000)
                if attempt >= max_attempts:
                    break

                backoff_ms = min(
                    self._config.retry_base_ms * (2 ** max(0, attempt - 1)),
                    self._config.retry_max_ms,
                )
                logger.warning(
                    "search backend attempt failed, retrying: request_id=%s attempt=%d/%d "
                    "elapsed_ms=%d backoff_ms=%d error=%s",
                    request_id,
                    attempt,
                    max_attempts,
                    elapsed_ms,
                    backoff_ms,
                    exc,
                )
                await self._sleep(backoff_ms / 1000.0)

        raise BackendUnavailable(
            f"검색 백엔드 재시도를 모두 소진했습니다: attempts={max_attempts}, last_error={last_error}"
        ) from last_error
