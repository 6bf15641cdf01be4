"""
목적:
- 백엔드 중립 불리언 쿼리 트리 노드를 정의한다.

설명:
- 모든 노드는 불변 데이터클래스이며 생성 후 변경되지 않는다.
- 동일 입력을 두 번 컴파일하면 `==` 비교로 구조 동일성을 확인할 수 있다.
- 리프 `name`은 백엔드의 named query 보고와 매칭해 boost 대상 조건을 식별한다.

디자인 패턴:
- 합성(Composite) + 불변 값 객체.

참조:
- src_py/talent_search/query/compiler.py
- src_py/talent_search/query/elastic_dsl.py
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from talent_search.contracts.filter_models import Literal


@dataclass(frozen=True, slots=True)
class TermClause:
    field: str
    value: Literal
    name: str | None = None


@dataclass(frozen=True, slots=True)
class TermsClause:
    field: str
    values: tuple[Literal, ...]
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RangeClause:
    field: str
    lower: Literal | None
    upper: Literal | None
    include_lower: bool = True
    include_upper: bool = True
    name: str | None = None


@dataclass(frozen=True, slots=True)
class GeoDistanceClause:
    field: str
    lat: float
    lon: float
    distance_m: float
    name: str | None = None


@dataclass(frozen=True, slots=True)
class ExistsClause:
    field: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class MultiMatchClause:
    fields: tuple[str, ...]
    query: str
    name: str | None = None


@dataclass(frozen=True, slots=True)
class BoolNode:
    must: tuple["Clause", ...] = ()
    should: tuple["Clause", ...] = ()
    must_not: tuple["Clause", ...] = ()
    minimum_should_match: int | None = None

    @property
    def empty(self) -> bool:
        return not (self.must or self.should or self.must_not)


@dataclass(frozen=True, slots=True)
class NestedClause:
    """같은 하위 문서 인스턴스에 함께 적용되는 조건 묶음."""

    path: str
    scope: str
    query: BoolNode
    name: str | None = None


Clause = Union[
    TermClause,
    TermsClause,
    RangeClause,
    GeoDistanceClause,
    ExistsClause,
    MultiMatchClause,
    NestedClause,
    BoolNode,
]


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    """컴파일 결과. 루트 불리언 노드와 named clause -> 필드 경로 매핑을 가진다."""

    root: BoolNode
    named_fields: tuple[tuple[str, tuple[str, ...]], ...] = ()

    def fields_for(self, name: str) -> tuple[str, ...]:
        for clause_name, field_paths in self.named_fields:
            if clause_name == name:
                return field_paths
        return ()
