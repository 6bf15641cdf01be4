"""
목적:
- 쿼리 컴파일 계층의 공개 심볼을 제공한다.

설명:
- 컴파일러, 쿼리 트리, Elasticsearch 렌더러를 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/query/compiler.py
- src_py/talent_search/query/elastic_dsl.py
"""

from .compiler import QueryCompiler
from .elastic_dsl import build_search_body, render_query
from .tree import BoolNode, CompiledQuery, NestedClause

__all__ = [
    "QueryCompiler",
    "CompiledQuery",
    "BoolNode",
    "NestedClause",
    "render_query",
    "build_search_body",
]
