"""
목적:
- Python 계약 모델 계층의 공개 심볼을 제공한다.

설명:
- 필터/검색/컨텍스트 모델을 하나의 네임스페이스에서 재노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/contracts/filter_models.py
- src_py/talent_search/contracts/search_models.py
- src_py/talent_search/contracts/context_models.py
"""

from .context_models import AuthContext, ErrorEvent, error_response
from .filter_models import (
    FieldType,
    FilterCriteria,
    FilterOperator,
    FilterRole,
    GeoDistance,
    RangeBound,
    find_contradiction,
)
from .search_models import (
    MAX_PAGE_SIZE,
    CandidateSummary,
    SearchRequest,
    SearchResult,
    SortMode,
)

__all__ = [
    "FieldType",
    "FilterOperator",
    "FilterRole",
    "FilterCriteria",
    "RangeBound",
    "GeoDistance",
    "find_contradiction",
    "SortMode",
    "SearchRequest",
    "SearchResult",
    "CandidateSummary",
    "MAX_PAGE_SIZE",
    "AuthContext",
    "ErrorEvent",
    "error_response",
]
