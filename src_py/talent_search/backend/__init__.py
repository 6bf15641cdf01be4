"""
목적:
- 검색 백엔드 어댑터 계층의 공개 심볼을 제공한다.

설명:
- Elasticsearch 어댑터와 응답 모델을 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/backend/elastic.py
"""

from .elastic import (
    BackendHit,
    BackendPage,
    ElasticsearchBackend,
    SearchBackend,
    parse_search_response,
)

__all__ = [
    "SearchBackend",
    "ElasticsearchBackend",
    "BackendHit",
    "BackendPage",
    "parse_search_response",
]
