"""
목적:
- Python과 Elasticsearch 간 검색 호출 경계를 제공한다.

설명:
- `_search` 요청 본문을 공식 클라이언트로 전달하고 응답을 `BackendPage`로 변환한다.
- 전송 실패/타임아웃/5xx/429는 재시도 가능한 `BackendTransportError`로,
  그 밖의 4xx 거부는 재시도 불가 `BackendQueryError`로 변환한다.
- 클라이언트 자체 재시도는 끄고, 재시도 정책은 실행기 한 곳에서만 적용한다.

디자인 패턴:
- 어댑터(Adapter).

참조:
- src_py/talent_search/search/executor.py
- src_py/talent_search/config/models.py
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from elasticsearch import ApiError, Elasticsearch, TransportError

from talent_search.config.models import ElasticsearchConfig
from talent_search.exceptions import BackendQueryError, BackendTransportError


class SearchBackend(Protocol):
    """검색 백엔드 호출 인터페이스."""

    def search(self, body: dict[str, Any], timeout_sec: float) -> dict[str, Any]: ...


@dataclass(frozen=True, slots=True)
class BackendHit:
    """백엔드 원본 히트 1건."""

    doc_id: str
    score: float
    source: dict[str, Any]
    matched_queries: tuple[str, ...] = ()
    sort: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class BackendPage:
    """백엔드 응답 1페이지."""

    hits: list[BackendHit] = field(default_factory=list)
    total: int = 0
    total_exact: bool = True


class ElasticsearchBackend:
    """Elasticsearch 클라이언트 래퍼."""

    def __init__(self, config: ElasticsearchConfig, client: Elasticsearch | None = None) -> None:
        self._config = config
        self._client = client or self._create_client(config)

    @staticmethod
    def _create_client(config: ElasticsearchConfig) -> Elasticsearch:
        options: dict[str, Any] = {
            "hosts": list(config.hosts),
            "verify_certs": config.verify_certs,
            "request_timeout": config.request_timeout_ms / 1000.0,
            "max_retries": 0,
            "retry_on_timeout": False,
        }
        if config.api_key is not None:
            options["api_key"] = config.api_key.get_secret_value()
        elif config.username is not None:
            password = config.password.get_secret_value() if config.password is not None else ""
            options["basic_auth"] = (config.username, password)
        return Elasticsearch(**options)

    @property
    def index(self) -> str:
        return self._config.index

    def search(self, body: dict[str, Any], timeout_sec: float) -> dict[str, Any]:
        """검색 요청 1회를 실행한다."""
        try:
            response = self._client.options(request_timeout=timeout_sec).search(
                index=self._config.index,
                **body,
            )
        except ApiError as exc:
            status = int(exc.meta.status)
            if status >= 500 or status == 429:
                raise BackendTransportError(
                    f"Elasticsearch 일시 오류: status={status}, error={exc.message}",
                    status=status,
                ) from exc
            raise BackendQueryError(
                f"Elasticsearch가 쿼리를 거부했습니다: status={status}, error={exc.message}",
                status=status,
                compiled_query=body,
            ) from exc
        except TransportError as exc:
            raise BackendTransportError(f"Elasticsearch 전송 실패: {exc}") from exc

        return dict(response.body)

    def close(self) -> None:
        self._client.close()


def parse_search_response(raw: dict[str, Any], id_field: str) -> BackendPage:
    """`_search` 응답 JSON을 `BackendPage`로 변환한다."""
    hits_section = raw.get("hits")
    if not isinstance(hits_section, dict):
        raise BackendQueryError("Elasticsearch 응답에 hits 객체가 없습니다")

    raw_hits = hits_section.get("hits")
    if not isinstance(raw_hits, list):
        raise BackendQueryError("Elasticsearch 응답 hits.hits가 배열이 아닙니다")

    hits = [_parse_hit(item, id_field) for item in raw_hits]

    raw_total = hits_section.get("total")
    if isinstance(raw_total, dict):
        total = int(raw_total.get("value", 0))
        total_exact = raw_total.get("relation", "eq") == "eq"
    elif isinstance(raw_total, int):
        total, total_exact = raw_total, True
    else:
        total, total_exact = len(hits), False

    return BackendPage(hits=hits, total=total, total_exact=total_exact)


def _parse_hit(item: Any, id_field: str) -> BackendHit:
    if not isinstance(item, dict):
        raise BackendQueryError("Elasticsearch 히트가 객체가 아닙니다")

    source = item.get("_source") or {}
    if not isinstance(source, dict):
        raise BackendQueryError("Elasticsearch 히트 _source가 객체가 아닙니다")

    doc_id = source.get(id_field, item.get("_id"))
    if doc_id is None or doc_id == "":
        raise BackendQueryError(f"Elasticsearch 히트에 문서 식별자가 없습니다: field={id_field}")

    sort_values = tuple(item.get("sort") or ())
    score = item.get("_score")
    if score is None:
        score = sort_values[0] if sort_values else 0.0

    matched = item.get("matched_queries") or ()
    if isinstance(matched, dict):
        matched = tuple(matched.keys())

    return BackendHit(
        doc_id=str(doc_id),
        score=float(score),
        source=source,
        matched_queries=tuple(str(name) for name in matched),
        sort=sort_values,
    )
