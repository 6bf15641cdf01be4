"""
목적:
- 정규화된 필터 조건 목록을 하나의 불변 `CompiledQuery`로 컴파일한다.

설명:
- 역할(MUST/SHOULD/MUST_NOT)별로 조건을 나누고 입력 순서를 유지한다.
- 같은 `nested_scope`를 공유하는 조건은 하나의 nested 절 안에서 AND로 결합해
  같은 하위 문서 인스턴스에 바인딩되도록 한다.
- 키워드 검색과 후보 노출 규칙(승인 여부/노출 기간/제시된 후보 예외)을 MUST에 추가한다.
- 컴파일은 순수 함수이며 부수 효과가 없다.

디자인 패턴:
- 컴파일러(Compiler) + 빌더(Builder).

참조:
- src_py/talent_search/query/tree.py
- src_py/talent_search/contracts/filter_models.py
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from talent_search.config.models import VisibilityConfig
from talent_search.contracts.filter_models import (
    FilterCriteria,
    FilterOperator,
    FilterRole,
)
from talent_search.exceptions import ConfigurationError
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


class QueryCompiler:
    """필터 조건 -> 불리언 쿼리 트리 컴파일러."""

    def __init__(
        self,
        *,
        text_fields: Sequence[str] = (),
        id_field: str = "id",
        visibility: VisibilityConfig | None = None,
    ) -> None:
        self._text_fields = tuple(text_fields)
        self._id_field = id_field
        self._visibility = visibility

    def compile(
        self,
        criteria: Sequence[FilterCriteria],
        *,
        keywords: str | None = None,
        epoch: datetime | None = None,
        presented_ids: Sequence[str] = (),
    ) -> CompiledQuery:
        """조건 목록을 컴파일한다. 같은 입력에는 항상 같은 트리를 반환한다."""
        named_fields: list[tuple[str, tuple[str, ...]]] = []
        buckets: dict[FilterRole, list[Clause]] = {}

        for role in FilterRole:
            members = [(index, item) for index, item in enumerate(criteria) if item.role is role]
            buckets[role] = _compile_bucket(members, role, named_fields)

        user_must = buckets[FilterRole.MUST]
        should = buckets[FilterRole.SHOULD]

        must: list[Clause] = list(user_must)
        if keywords and self._text_fields:
            must.append(MultiMatchClause(fields=self._text_fields, query=keywords))

        visibility = self._visibility_clause(epoch, presented_ids)
        if visibility is not None:
            must.append(visibility)

        root = BoolNode(
            must=tuple(must),
            should=tuple(should),
            must_not=tuple(buckets[FilterRole.MUST_NOT]),
            minimum_should_match=1 if should and not user_must else None,
        )
        return CompiledQuery(root=root, named_fields=tuple(named_fields))

    def _visibility_clause(
        self,
        epoch: datetime | None,
        presented_ids: Sequence[str],
    ) -> Clause | None:
        config = self._visibility
        if config is None:
            return None
        if epoch is None:
            raise ConfigurationError("노출 규칙을 적용하려면 기준 시각(epoch)이 필요합니다")

        rules: list[Clause] = []
        if config.accepted_field:
            rules.append(TermClause(field=config.accepted_field, value=True))
        if config.window_start_field:
            rules.append(RangeClause(field=config.window_start_field, lower=None, upper=epoch))
        if config.window_end_field:
            rules.append(RangeClause(field=config.window_end_field, lower=epoch, upper=None))
        if not rules:
            return None

        visible = BoolNode(must=tuple(rules))
        if not presented_ids:
            return visible

        presented = TermsClause(field=self._id_field, values=tuple(dict.fromkeys(presented_ids)))
        return BoolNode(should=(visible, presented), minimum_should_match=1)


def _compile_bucket(
    members: list[tuple[int, FilterCriteria]],
    role: FilterRole,
    named_fields: list[tuple[str, tuple[str, ...]]],
) -> list[Clause]:
    named = role is not FilterRole.MUST_NOT
    slots: list[Clause | str] = []
    groups: dict[str, list[tuple[int, FilterCriteria]]] = {}

    for index, item in members:
        scope = item.nested_scope
        if scope:
            if scope not in groups:
                groups[scope] = []
                slots.append(scope)
            groups[scope].append((index, item))
            continue

        name = f"c{index}" if named else None
        slots.append(build_leaf(item, name))
        if name is not None:
            named_fields.append((name, (item.field_path,)))

    clauses: list[Clause] = []
    for slot in slots:
        if not isinstance(slot, str):
            clauses.append(slot)
            continue

        group = groups[slot]
        name = f"g{group[0][0]}" if named else None
        clauses.append(
            NestedClause(
                path=nested_path_of(slot),
                scope=slot,
                query=BoolNode(must=tuple(build_leaf(item, None) for _, item in group)),
                name=name,
            )
        )
        if name is not None:
            named_fields.append((name, tuple(item.field_path for _, item in group)))
    return clauses


def build_leaf(item: FilterCriteria, name: str | None) -> Clause:
    """연산자별 리프 절을 생성한다."""
    operator = item.operator
    field = item.field_path

    if operator is FilterOperator.EQ:
        return TermClause(field=field, value=item.values[0], name=name)

    if operator is FilterOperator.IN:
        return TermsClause(field=field, values=tuple(item.values), name=name)

    if operator is FilterOperator.RANGE:
        lower, upper = item.values
        return RangeClause(
            field=field,
            lower=None if lower is None else lower.value,
            upper=None if upper is None else upper.value,
            include_lower=True if lower is None else lower.inclusive,
            include_upper=True if upper is None else upper.inclusive,
            name=name,
        )

    if operator is FilterOperator.GEO_WITHIN:
        point = item.values[0]
        return GeoDistanceClause(
            field=field,
            lat=point.lat,
            lon=point.lon,
            distance_m=point.distance_m,
            name=name,
        )

    return ExistsClause(field=field, name=name)


def nested_path_of(scope: str) -> str:
    """`path@group` 형식의 scope에서 nested 경로를 꺼낸다."""
    return scope.split("@", 1)[0]
