"""
목적:
- 정규화된 필터 조건 인터페이스 모델을 정의한다.

설명:
- 문자열 파라미터를 카탈로그 선언 타입으로 변환한 결과를 태그된 값으로 표현한다.
- 연산자별 값 형태(EQ 1개, IN 1개 이상, RANGE 하한/상한 2개 등)를 모델 수준에서 검증한다.

디자인 패턴:
- 값 객체(Value Object).

참조:
- src_py/talent_search/filters/normalizer.py
- src_py/talent_search/query/compiler.py
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FieldType(str, Enum):
    """스키마 카탈로그의 필드 선언 타입."""

    KEYWORD = "keyword"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"
    BOOLEAN = "boolean"
    GEO_POINT = "geo_point"

    @property
    def orderable(self) -> bool:
        return self in (FieldType.INTEGER, FieldType.FLOAT, FieldType.DATE)


class FilterOperator(str, Enum):
    EQ = "eq"
    IN = "in"
    RANGE = "range"
    GEO_WITHIN = "geo_within"
    EXISTS = "exists"


class FilterRole(str, Enum):
    MUST = "must"
    SHOULD = "should"
    MUST_NOT = "must_not"


Literal = Union[bool, int, float, datetime, str]


class RangeBound(BaseModel):
    """범위 조건의 한쪽 경계."""

    model_config = ConfigDict(frozen=True)

    value: Literal
    inclusive: bool = Field(default=True)


class GeoDistance(BaseModel):
    """좌표 + 반경 조건."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    distance_m: float = Field(gt=0.0)


FilterValue = Union[RangeBound, GeoDistance, Literal]


class FilterCriteria(BaseModel):
    """단일 필드 필터 조건 모델."""

    model_config = ConfigDict(frozen=True)

    field_path: str = Field(min_length=1)
    operator: FilterOperator
    values: tuple[FilterValue | None, ...] = Field(default=())
    role: FilterRole = Field(default=FilterRole.MUST)
    nested_scope: str | None = Field(default=None)

    @model_validator(mode="after")
    def validate_value_shape(self) -> "FilterCriteria":
        operator = self.operator
        values = self.values

        if operator is FilterOperator.RANGE:
            if len(values) != 2:
                raise ValueError("RANGE 조건은 하한/상한 2개 경계가 필요합니다")
            if any(value is not None and not isinstance(value, RangeBound) for value in values):
                raise ValueError("RANGE 경계는 RangeBound 또는 None이어야 합니다")
            if values[0] is None and values[1] is None:
                raise ValueError("RANGE 조건은 최소 한쪽 경계가 필요합니다")
            return self

        if any(value is None or isinstance(value, RangeBound) for value in values):
            raise ValueError(f"{operator.value} 조건 값에 범위 경계를 사용할 수 없습니다")

        if operator is FilterOperator.EQ and len(values) != 1:
            raise ValueError("EQ 조건은 값이 정확히 1개여야 합니다")
        if operator is FilterOperator.IN and not values:
            raise ValueError("IN 조건 값 집합이 비어 있습니다")
        if operator is FilterOperator.GEO_WITHIN and (
            len(values) != 1 or not isinstance(values[0], GeoDistance)
        ):
            raise ValueError("GEO_WITHIN 조건은 GeoDistance 값 1개가 필요합니다")
        if operator is FilterOperator.EXISTS and values:
            raise ValueError("EXISTS 조건은 값을 가질 수 없습니다")
        if operator in (FilterOperator.EQ, FilterOperator.IN) and any(
            isinstance(value, GeoDistance) for value in values
        ):
            raise ValueError("좌표 값은 GEO_WITHIN 조건에서만 사용할 수 있습니다")
        return self

    def identity(self) -> tuple[object, ...]:
        """연산자+값 동일성 비교 키를 반환한다(IN은 순서 무시)."""
        if self.operator is FilterOperator.IN:
            return (self.field_path, self.operator, frozenset(self.values))
        return (self.field_path, self.operator, self.values)


def find_contradiction(
    criteria: tuple[FilterCriteria, ...] | list[FilterCriteria],
) -> FilterCriteria | None:
    """MUST와 MUST_NOT에 동일한 연산자/값으로 함께 등장한 조건을 찾는다."""
    required = {item.identity() for item in criteria if item.role is FilterRole.MUST}
    for item in criteria:
        if item.role is FilterRole.MUST_NOT and item.identity() in required:
            return item
    return None
