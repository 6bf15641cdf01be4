"""
목적:
- 후보 검색 요청 1건을 처리하는 검색 엔진 클래스를 제공한다.

설명:
- 인증 게이트 -> 필터 정규화 -> 쿼리 컴파일 -> 백엔드 조회 -> 점수 보정/페이지 분할 -> 응답 투영 순서로 처리한다.
- 정렬이 RELEVANCE이고 boost가 없으면 백엔드 `search_after`로 다음 페이지를 조회한다(`backend` 모드).
- 그 외에는 후보 윈도를 가져와 재정렬한 뒤 커서 이후 구간을 자른다(`window` 모드).
  윈도 밖에 매칭 문서가 더 있으면 결과에 `truncated=True`를 표시한다.
- 내부 오류는 요청 ID/컴파일된 쿼리와 함께 오류 보고기로 정확히 한 번 보고한다.

디자인 패턴:
- 서비스 레이어(Service Layer) + 파이프라인(Pipeline).

참조:
- src_py/talent_search/auth/gate.py
- src_py/talent_search/filters/normalizer.py
- src_py/talent_search/query/compiler.py
- src_py/talent_search/search/executor.py
- src_py/talent_search/ranking/ranker.py
- src_py/talent_search/response/shaper.py
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from talent_search.auth.gate import AuthGate
from talent_search.auth.replay import RedisReplayGuard, ReplayGuard
from talent_search.backend.elastic import ElasticsearchBackend, SearchBackend
from talent_search.config.models import SearchConfig
from talent_search.contracts.context_models import ErrorEvent
from talent_search.contracts.filter_models import FilterCriteria
from talent_search.contracts.search_models import SearchRequest, SearchResult, SortMode
from talent_search.exceptions import (
    BackendUnavailable,
    InternalSearchError,
    TalentSearchError,
    ValidationError,
)
from talent_search.filters.normalizer import FilterNormalizer, RawFilters
from talent_search.filters.params import split_query_params
from talent_search.query.compiler import QueryCompiler
from talent_search.ranking.cursor import PageCursor, PagingMode, request_fingerprint
from talent_search.ranking.ranker import RankingEngine, paginate
from talent_search.reporting.reporter import ErrorReporter, LoggingErrorReporter, RollbarErrorReporter
from talent_search.response.shaper import ResponseShaper
from talent_search.search.executor import SearchExecutor, SleepFn

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
RequestResolver = Callable[[], tuple[RawFilters, dict[str, Any]]]


class TalentSearchEngine:
    """후보 검색 엔진 클래스."""

    def __init__(
        self,
        config: SearchConfig,
        backend: SearchBackend | None = None,
        reporter: ErrorReporter | None = None,
        replay_guard: ReplayGuard | None = None,
        clock: Clock | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._config = config
        self._clock = clock or _utc_now
        self._backend = backend or ElasticsearchBackend(config.elasticsearch)
        self._reporter = reporter or _default_reporter(config)

        if replay_guard is None and config.auth.replay is not None:
            replay_guard = RedisReplayGuard(config.auth.replay)

        catalog = config.catalog
        self._auth_gate = AuthGate(config.auth, replay_guard=replay_guard)
        self._normalizer = FilterNormalizer(catalog)
        self._compiler = QueryCompiler(
            text_fields=catalog.text_fields,
            id_field=catalog.id_field,
            visibility=config.visibility,
        )
        self._executor = SearchExecutor(
            config.elasticsearch,
            self._backend,
            id_field=catalog.id_field,
            sleep=sleep,
        )
        self._ranking = RankingEngine(config.ranking)
        self._shaper = ResponseShaper(config.whitelist_by_scope)

    @property
    def config(self) -> SearchConfig:
        return self._config

    async def search(
        self,
        filters: RawFilters,
        *,
        credential: SecretStr | str | None,
        sort: SortMode | str = SortMode.RELEVANCE,
        boosts: Mapping[str, float] | None = None,
        page_size: int | None = None,
        cursor: str | None = None,
        keywords: str | None = None,
        epoch: datetime | None = None,
        presented_ids: Sequence[str] = (),
        request_id: str | None = None,
        timeout_ms: int | None = None,
    ) -> SearchResult:
        """파싱된 필터 매핑으로 후보를 검색한다."""
        options: dict[str, Any] = {
            "sort": sort,
            "boosts": dict(boosts or {}),
            "page_size": page_size,
            "cursor": cursor,
            "keywords": keywords,
            "epoch": epoch,
            "presented_ids": tuple(presented_ids),
        }
        return await self._guarded(
            lambda: (filters, options),
            credential=credential,
            request_id=request_id,
            timeout_ms=timeout_ms,
        )

    async def search_params(
        self,
        params: Mapping[str, str | Sequence[str]],
        *,
        credential: SecretStr | str | None,
        request_id: str | None = None,
        timeout_ms: int | None = None,
    ) -> SearchResult:
        """쿼리 문자열 매핑(`skills[]=...&sort=recency`)으로 후보를 검색한다."""

        def resolve() -> tuple[RawFilters, dict[str, Any]]:
            parsed = split_query_params(params)
            return parsed.filters, parsed.model_dump(exclude={"filters"})

        return await self._guarded(
            resolve,
            credential=credential,
            request_id=request_id,
            timeout_ms=timeout_ms,
        )

    def close(self) -> None:
        close = getattr(self._backend, "close", None)
        if callable(close):
            close()

    async def _guarded(
        self,
        resolve: RequestResolver,
        *,
        credential: SecretStr | str | None,
        request_id: str | None,
        timeout_ms: int | None,
    ) -> SearchResult:
        request_id = request_id or uuid4().hex
        if timeout_ms is not None and timeout_ms <= 0:
            raise ValidationError(f"timeout_ms는 1 이상이어야 합니다: {timeout_ms}", field="timeout_ms")
        timeout_sec = timeout_ms / 1000.0 if timeout_ms is not None else None

        try:
            async with asyncio.timeout(timeout_sec):
                return await self._run(resolve, credential, request_id)
        except TalentSearchError as exc:
            if not exc.client_fault:
                self._report(exc, request_id)
            raise
        except TimeoutError as exc:
            wrapped = BackendUnavailable(f"요청 제한 시간을 초과했습니다: timeout_ms={timeout_ms}")
            self._report(wrapped, request_id)
            raise wrapped from exc
        except Exception as exc:
            wrapped = InternalSearchError(f"예상하지 못한 검색 실패: {type(exc).__name__}: {exc}")
            self._report(wrapped, request_id)
            raise wrapped from exc

    async def _run(
        self,
        resolve: RequestResolver,
        credential: SecretStr | str | None,
        request_id: str,
    ) -> SearchResult:
        started = time.monotonic()
        now = self._clock()

        auth = self._auth_gate.verify(credential, now)
        raw_filters, options = resolve()
        criteria = self._normalizer.normalize(raw_filters)
        request = self._build_request(criteria, options, credential)

        fingerprint = request_fingerprint(request)
        mode = _paging_mode(request)
        cursor = _decode_cursor(request.cursor, fingerprint, mode)
        reference_time = cursor.reference_time if cursor is not None else now

        compiled = self._compiler.compile(
            request.criteria,
            keywords=request.keywords,
            epoch=request.epoch or reference_time,
            presented_ids=request.presented_ids,
        )
        min_score = self._config.ranking.min_score if request.keywords else None

        if mode is PagingMode.BACKEND:
            page = await self._executor.execute(
                compiled,
                size=request.page_size + 1,
                search_after=[cursor.score, cursor.doc_id] if cursor is not None else None,
                min_score=min_score,
                initial_page=cursor is None,
                request_id=request_id,
            )
            after = None
        else:
            page = await self._executor.execute(
                compiled,
                size=self._config.elasticsearch.candidate_window,
                min_score=min_score,
                initial_page=cursor is None,
                request_id=request_id,
            )
            after = cursor.key if cursor is not None else None

        ranked = self._ranking.rank(
            page,
            sort=request.sort,
            boosts=request.boosts,
            compiled=compiled,
            reference_time=reference_time,
        )
        hits, has_more = paginate(ranked, after=after, page_size=request.page_size)

        next_cursor = None
        if has_more and hits:
            last = hits[-1]
            next_cursor = PageCursor(
                score=last.score,
                doc_id=last.doc_id,
                reference_time=reference_time,
                mode=mode,
                fingerprint=fingerprint,
            ).encode()

        window = self._config.elasticsearch.candidate_window
        truncated = (
            mode is PagingMode.WINDOW and len(page.hits) >= window and page.total > window
        )

        result = SearchResult(
            hits=self._shaper.shape(hits, auth.scopes),
            total_count=page.total,
            total_count_exact=page.total_exact,
            next_cursor=next_cursor,
            truncated=truncated,
        )

        logger.info(
            "search completed: request_id=%s client_id=%s mode=%s hits=%d total=%d truncated=%s elapsed_ms=%d",
            request_id,
            auth.client_id,
            mode.value,
            len(result.hits),
            result.total_count,
            result.truncated,
            int((time.monotonic() - started) * 1000),
        )
        return result

    def _build_request(
        self,
        criteria: tuple[FilterCriteria, ...],
        options: Mapping[str, Any],
        credential: SecretStr | str | None,
    ) -> SearchRequest:
        values = {key: value for key, value in options.items() if value is not None}
        values.setdefault("page_size", self._config.default_page_size)

        try:
            request = SearchRequest(criteria=criteria, credential=credential, **values)
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            location = error.get("loc") or ()
            field = str(location[0]) if location else None
            raise ValidationError(f"검색 요청이 유효하지 않습니다: {error.get('msg')}", field=field) from exc

        catalog = self._config.catalog
        for field_path in request.boosts:
            if catalog.field_type(field_path) is None:
                raise ValidationError(
                    f"카탈로그에 없는 boost 필드입니다: {field_path}",
                    field=f"boost[{field_path}]",
                )
        if request.keywords and not catalog.text_fields:
            raise ValidationError("키워드 검색 대상 텍스트 필드가 설정되지 않았습니다", field="keywords")
        return request

    def _report(self, exc: TalentSearchError, request_id: str) -> None:
        event = ErrorEvent(
            error_kind=exc.error_kind,
            message=str(exc),
            request_id=request_id,
            compiled_query=getattr(exc, "compiled_query", None),
        )
        try:
            self._reporter.report(event)
        except Exception:
            logger.exception("error reporter failed: request_id=%s", request_id)


def _paging_mode(request: SearchRequest) -> PagingMode:
    if request.sort is SortMode.RELEVANCE and not request.boosts:
        return PagingMode.BACKEND
    return PagingMode.WINDOW


def _decode_cursor(token: str | None, fingerprint: str, mode: PagingMode) -> PageCursor | None:
    if token is None:
        return None
    cursor = PageCursor.decode(token)
    if cursor.fingerprint != fingerprint or cursor.mode is not mode:
        raise ValidationError("커서가 현재 검색 조건과 일치하지 않습니다", field="cursor")
    return cursor


def _default_reporter(config: SearchConfig) -> ErrorReporter:
    if config.rollbar is not None:
        return RollbarErrorReporter(config.rollbar)
    return LoggingErrorReporter()


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)
