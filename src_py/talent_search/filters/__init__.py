"""
목적:
- 필터 정규화 계층의 공개 심볼을 제공한다.

설명:
- 필터 정규화기와 쿼리 파라미터 분리 유틸을 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/filters/normalizer.py
- src_py/talent_search/filters/params.py
"""

from .normalizer import FilterNormalizer
from .params import QueryParams, split_query_params

__all__ = ["FilterNormalizer", "QueryParams", "split_query_params"]
