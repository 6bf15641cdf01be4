"""
목적:
- 백엔드 중립 쿼리 트리를 Elasticsearch Query DSL(JSON)로 렌더링한다.

설명:
- 리프 `name`은 `_name`으로 렌더링되어 응답의 `matched_queries`에 보고된다.
- 검색 본문은 `_score desc, id asc` 정렬을 고정해 커서 페이지네이션이 안정적이도록 한다.

디자인 패턴:
- 방문자(Visitor) 스타일 렌더러.

참조:
- src_py/talent_search/query/tree.py
- src_py/talent_search/search/executor.py
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from talent_search.query.tree import (
    BoolNode,
    Clause,
    CompiledQuery,
    ExistsClause,
    GeoDistanceClause,
    MultiMatchClause,
    NestedClause,
    RangeClause,
    TermClause,
    TermsClause,
)


def render_query(compiled: CompiledQuery) -> dict[str, Any]:
    """컴파일된 쿼리를 Elasticsearch `query` 객체로 변환한다."""
    if compiled.root.empty:
        return {"match_all": {}}
    return render_clause(compiled.root)


def build_search_body(
    compiled: CompiledQuery,
    *,
    size: int,
    id_field: str,
    search_after: list[Any] | None = None,
    min_score: float | None = None,
) -> dict[str, Any]:
    """`_search` 요청 본문을 생성한다."""
    body: dict[str, Any] = {
        "query": render_query(compiled),
        "size": size,
        "sort": [
            {"_score": {"order": "desc"}},
            {id_field: {"order": "asc"}},
        ],
        "track_total_hits": True,
    }
    if search_after is not None:
        body["search_after"] = search_after
    if min_score is not None:
        body["min_score"] = min_score
    return body


def render_clause(clause: Clause) -> dict[str, Any]:
    if isinstance(clause, BoolNode):
        bool_body: dict[str, Any] = {}
        if clause.must:
            bool_body["must"] = [render_clause(item) for item in clause.must]
        if clause.should:
            bool_body["should"] = [render_clause(item) for item in clause.should]
        if clause.must_not:
            bool_body["must_not"] = [render_clause(item) for item in clause.must_not]
        if clause.minimum_should_match is not None:
            bool_body["minimum_should_match"] = clause.minimum_should_match
        return {"bool": bool_body}

    if isinstance(clause, TermClause):
        term: dict[str, Any] = {"value": _json_value(clause.value)}
        _with_name(term, clause.name)
        return {"term": {clause.field: term}}

    if isinstance(clause, TermsClause):
        terms: dict[str, Any] = {clause.field: [_json_value(value) for value in clause.values]}
        _with_name(terms, clause.name)
        return {"terms": terms}

    if isinstance(clause, RangeClause):
        bounds: dict[str, Any] = {}
        if clause.lower is not None:
            bounds["gte" if clause.include_lower else "gt"] = _json_value(clause.lower)
        if clause.upper is not None:
            bounds["lte" if clause.include_upper else "lt"] = _json_value(clause.upper)
        _with_name(bounds, clause.name)
        return {"range": {clause.field: bounds}}

    if isinstance(clause, GeoDistanceClause):
        geo: dict[str, Any] = {
            "distance": f"{clause.distance_m}m",
            clause.field: {"lat": clause.lat, "lon": clause.lon},
        }
        _with_name(geo, clause.name)
        return {"geo_distance": geo}

    if isinstance(clause, ExistsClause):
        exists: dict[str, Any] = {"field": clause.field}
        _with_name(exists, clause.name)
        return {"exists": exists}

    if isinstance(clause, MultiMatchClause):
        multi_match: dict[str, Any] = {
            "query": clause.query,
            "fields": list(clause.fields),
            "type": "cross_fields",
            "tie_breaker": 0.0,
        }
        _with_name(multi_match, clause.name)
        return {"multi_match": multi_match}

    if isinstance(clause, NestedClause):
        nested: dict[str, Any] = {
            "path": clause.path,
            "query": render_clause(clause.query),
        }
        _with_name(nested, clause.name)
        return {"nested": nested}

    raise TypeError(f"렌더링할 수 없는 절 타입입니다: {type(clause).__name__}")


def _with_name(body: dict[str, Any], name: str | None) -> None:
    if name is not None:
        body["_name"] = name


def _json_value(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
