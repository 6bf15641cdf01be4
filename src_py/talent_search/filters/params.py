"""
목적:
- 라우팅 계층이 넘긴 쿼리 문자열 매핑에서 예약 키와 필터 키를 분리한다.

설명:
- `sort`, `cursor`, `page_size`, `keywords`, `epoch`, `presented_ids[]`, `boost[<field>]`는
  요청 옵션으로, 나머지 키는 필터로 취급한다.
- 값 검증 실패는 해당 키를 담은 `ValidationError`로 변환한다.

디자인 패턴:
- DTO(Data Transfer Object) + 파서(Parser).

참조:
- src_py/talent_search/search/engine.py
- src_py/talent_search/filters/normalizer.py
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from talent_search.contracts.search_models import MAX_PAGE_SIZE, SortMode
from talent_search.exceptions import ValidationError
from talent_search.filters.normalizer import parse_datetime

_BOOST_KEY = re.compile(r"^boost\[(?P<field>[A-Za-z_][A-Za-z0-9_.]*)\]$")
_RESERVED_KEYS = {"sort", "cursor", "page_size", "keywords", "epoch", "presented_ids"}


class QueryParams(BaseModel):
    """분리된 요청 파라미터 모델."""

    model_config = ConfigDict(frozen=True)

    filters: dict[str, list[str]] = Field(default_factory=dict)
    sort: SortMode = Field(default=SortMode.RELEVANCE)
    page_size: int | None = Field(default=None, ge=1, le=MAX_PAGE_SIZE)
    cursor: str | None = Field(default=None)
    keywords: str | None = Field(default=None)
    epoch: datetime | None = Field(default=None)
    presented_ids: tuple[str, ...] = Field(default=())
    boosts: dict[str, float] = Field(default_factory=dict)


def split_query_params(params: Mapping[str, str | Sequence[str]]) -> QueryParams:
    """쿼리 문자열 매핑을 요청 옵션과 필터로 분리한다."""
    filters: dict[str, list[str]] = {}
    boosts: dict[str, float] = {}
    options: dict[str, object] = {}

    for raw_key, raw_value in params.items():
        key = raw_key.strip()
        values = _as_list(raw_value)
        bare_key = key[:-2] if key.endswith("[]") else key

        boost_match = _BOOST_KEY.match(key)
        if boost_match is not None:
            boosts[boost_match.group("field")] = _parse_weight(key, values)
            continue

        if bare_key not in _RESERVED_KEYS:
            filters[key] = values
            continue

        if bare_key == "presented_ids":
            options["presented_ids"] = tuple(value for value in values if value)
            continue

        value = _single(key, values)
        if value is None:
            continue
        if bare_key == "sort":
            options["sort"] = _parse_sort(key, value)
        elif bare_key == "page_size":
            options["page_size"] = _parse_page_size(key, value)
        elif bare_key == "epoch":
            options["epoch"] = parse_datetime(value, key)
        else:
            options[bare_key] = value

    return QueryParams(filters=filters, boosts=boosts, **options)


def _as_list(raw_value: str | Sequence[str]) -> list[str]:
    if isinstance(raw_value, str):
        return [raw_value.strip()]
    return [str(value).strip() for value in raw_value]


def _single(key: str, values: list[str]) -> str | None:
    present = [value for value in values if value]
    if not present:
        return None
    if len(present) > 1:
        raise ValidationError(f"값은 1개만 지정할 수 있습니다: {key}", field=key)
    return present[0]


def _parse_sort(key: str, value: str) -> SortMode:
    try:
        return SortMode(value.lower())
    except ValueError as exc:
        allowed = ", ".join(mode.value for mode in SortMode)
        raise ValidationError(f"정렬 방식이 잘못되었습니다: {value} (allowed={allowed})", field=key) from exc


def _parse_page_size(key: str, value: str) -> int:
    try:
        page_size = int(value)
    except ValueError as exc:
        raise ValidationError(f"page_size는 정수여야 합니다: {value}", field=key) from exc
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationError(f"page_size는 1 이상 {MAX_PAGE_SIZE} 이하이어야 합니다: {value}", field=key)
    return page_size


def _parse_weight(key: str, values: list[str]) -> float:
    value = _single(key, values)
    if value is None:
        raise ValidationError(f"boost 가중치가 비어 있습니다: {key}", field=key)
    try:
        weight = float(value)
    except ValueError as exc:
        raise ValidationError(f"boost 가중치는 숫자여야 합니다: {key}={value}", field=key) from exc
    if not math.isfinite(weight):
        raise ValidationError(f"boost 가중치는 유한한 숫자여야 합니다: {key}={value}", field=key)
    return weight
