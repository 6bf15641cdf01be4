"""
목적:
- 문자열 필터 파라미터를 타입이 지정된 `FilterCriteria`로 정규화한다.

설명:
- 키 접두사로 역할(MUST/SHOULD/MUST_NOT)을, 값 형태로 연산자를 결정한다.
- 카탈로그에 선언된 타입으로 값을 파싱하고, 위반 시 필드 단위 `ValidationError`를 발생시킨다.
- 생성 외의 부수 효과는 없다.

키 문법:
- `[-|!|~]field.path[@group][[]]`
- `-`/`!` 는 MUST_NOT, `~` 는 SHOULD, 접두사가 없으면 MUST.
- `@group` 은 같은 nested 경로 안에서 서로 다른 하위 문서를 구분한다.

값 문법:
- `*` 단일 값은 EXISTS.
- geo_point 필드: `lat,lon,radius[km|m|mi]` 는 GEO_WITHIN.
- 정렬 가능한 필드(integer/float/date): `a..b`, `[a..b)`, `(a,b]` 는 RANGE.
- 그 외 값 1개는 EQ, 여러 개는 IN.

디자인 패턴:
- 파서(Parser) + 값 객체 팩토리.

참조:
- src_py/talent_search/contracts/filter_models.py
- src_py/talent_search/config/catalog.py
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime

from pydantic import ValidationError as PydanticValidationError

from talent_search.config.catalog import SchemaCatalog
from talent_search.contracts.filter_models import (
    FieldType,
    FilterCriteria,
    FilterOperator,
    FilterRole,
    GeoDistance,
    Literal,
    RangeBound,
    find_contradiction,
)
from talent_search.exceptions import ValidationError

EXISTS_TOKEN = "*"

_KEY_PATTERN = re.compile(
    r"^(?P<prefix>[-!~]?)(?P<path>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)"
    r"(?:@(?P<group>[A-Za-z0-9_]+))?(?:\[\])?$"
)
_BRACKET_RANGE = re.compile(r"^(?P<open>[\[(])(?P<lower>[^,]*?)(?:\.\.|,)(?P<upper>[^,]*?)(?P<close>[\])])$")
_BARE_RANGE = re.compile(r"^(?P<lower>.*?)\.\.(?P<upper>.*)$")
_GEO_TOKEN = re.compile(
    r"^\s*(?P<lat>[-+]?\d+(?:\.\d+)?)\s*,\s*(?P<lon>[-+]?\d+(?:\.\d+)?)\s*,"
    r"\s*(?P<radius>\d+(?:\.\d+)?)\s*(?P<unit>km|m|mi)?\s*$"
)
_UNIT_METERS = {"km": 1_000.0, "m": 1.0, "mi": 1_609.344}
_ROLE_PREFIX = {"": FilterRole.MUST, "-": FilterRole.MUST_NOT, "!": FilterRole.MUST_NOT, "~": FilterRole.SHOULD}
_TRUE_TOKENS = {"1", "true", "yes", "y"}
_FALSE_TOKENS = {"0", "false", "no", "n"}
_INTEGER_TOKEN = re.compile(r"[-+]?\d+", re.ASCII)

RawFilters = Mapping[str, str | Sequence[str]]


class FilterNormalizer:
    """카탈로그 기반 필터 정규화기."""

    def __init__(self, catalog: SchemaCatalog) -> None:
        self._catalog = catalog

    def normalize(self, raw: RawFilters) -> tuple[FilterCriteria, ...]:
        """원시 파라미터 전체를 정규화하고 모순 조건을 검사한다."""
        criteria = tuple(self.normalize_entry(key, values) for key, values in raw.items())

        conflict = find_contradiction(criteria)
        if conflict is not None:
            raise ValidationError(
                f"같은 조건이 MUST와 MUST_NOT에 동시에 지정되었습니다: {conflict.field_path}",
                field=conflict.field_path,
            )
        return criteria

    def normalize_entry(self, key: str, raw_values: str | Sequence[str]) -> FilterCriteria:
        """단일 키/값 묶음을 `FilterCriteria`로 변환한다."""
        match = _KEY_PATTERN.match(key.strip())
        if match is None:
            raise ValidationError(f"필터 키 형식이 잘못되었습니다: {key}", field=key)

        field_path = match.group("path")
        role = _ROLE_PREFIX[match.group("prefix")]
        field_type = self._catalog.field_type(field_path)
        if field_type is None:
            raise ValidationError(f"알 수 없는 필드입니다: {field_path}", field=field_path)

        nested_scope = self._resolve_scope(field_path, match.group("group"))
        values = _as_value_list(raw_values)
        if not values:
            raise ValidationError(f"필터 값이 비어 있습니다: {field_path}", field=field_path)

        operator, parsed = self._parse_values(field_path, field_type, values)
        try:
            return FilterCriteria(
                field_path=field_path,
                operator=operator,
                values=parsed,
                role=role,
                nested_scope=nested_scope,
            )
        except PydanticValidationError as exc:
            raise ValidationError(
                f"필터 조건이 유효하지 않습니다: {field_path}: {_first_error(exc)}",
                field=field_path,
            ) from exc

    def _resolve_scope(self, field_path: str, group: str | None) -> str | None:
        nested_path = self._catalog.nested_path_for(field_path)
        if nested_path is None:
            if group is not None:
                raise ValidationError(
                    f"nested 필드가 아니므로 @group을 사용할 수 없습니다: {field_path}",
                    field=field_path,
                )
            return None
        if group is None:
            return nested_path
        return f"{nested_path}@{group}"

    def _parse_values(
        self,
        field_path: str,
        field_type: FieldType,
        values: list[str],
    ) -> tuple[FilterOperator, tuple[object, ...]]:
        if values == [EXISTS_TOKEN]:
            return FilterOperator.EXISTS, ()
        if EXISTS_TOKEN in values:
            raise ValidationError(f"`*`는 단독으로만 사용할 수 있습니다: {field_path}", field=field_path)

        if field_type is FieldType.GEO_POINT:
            if len(values) != 1:
                raise ValidationError(f"좌표 조건은 1개만 지정할 수 있습니다: {field_path}", field=field_path)
            return FilterOperator.GEO_WITHIN, (_parse_geo(field_path, values[0]),)

        if field_type.orderable and any(_looks_like_range(value) for value in values):
            if len(values) != 1:
                raise ValidationError(
                    f"범위 조건은 다른 값과 함께 지정할 수 없습니다: {field_path}",
                    field=field_path,
                )
            return FilterOperator.RANGE, _parse_range(field_path, field_type, values[0])

        parsed: list[Literal] = []
        for value in values:
            literal = _parse_literal(field_path, field_type, value)
            if literal not in parsed:
                parsed.append(literal)

        if len(parsed) == 1:
            return FilterOperator.EQ, (parsed[0],)
        return FilterOperator.IN, tuple(parsed)


def _as_value_list(raw_values: str | Sequence[str]) -> list[str]:
    if isinstance(raw_values, str):
        candidates = [raw_values]
    else:
        candidates = [str(value) for value in raw_values]
    return [value.strip() for value in candidates if value.strip()]


def _looks_like_range(value: str) -> bool:
    return bool(_BRACKET_RANGE.match(value)) or ".." in value


def _parse_range(
    field_path: str,
    field_type: FieldType,
    token: str,
) -> tuple[RangeBound | None, RangeBound | None]:
    bracketed = _BRACKET_RANGE.match(token)
    if bracketed is not None:
        lower_raw = bracketed.group("lower").strip()
        upper_raw = bracketed.group("upper").strip()
        lower_inclusive = bracketed.group("open") == "["
        upper_inclusive = bracketed.group("close") == "]"
    else:
        bare = _BARE_RANGE.match(token)
        if bare is None:
            raise ValidationError(f"범위 형식이 잘못되었습니다: {field_path}={token}", field=field_path)
        lower_raw = bare.group("lower").strip()
        upper_raw = bare.group("upper").strip()
        lower_inclusive = upper_inclusive = True

    if not lower_raw and not upper_raw:
        raise ValidationError(f"범위 조건은 최소 한쪽 경계가 필요합니다: {field_path}", field=field_path)

    lower = (
        RangeBound(value=_parse_literal(field_path, field_type, lower_raw), inclusive=lower_inclusive)
        if lower_raw
        else None
    )
    upper = (
        RangeBound(value=_parse_literal(field_path, field_type, upper_raw), inclusive=upper_inclusive)
        if upper_raw
        else None
    )

    if lower is not None and upper is not None and lower.value > upper.value:
        raise ValidationError(
            f"범위 하한이 상한보다 큽니다: {field_path}={token}",
            field=field_path,
        )
    return lower, upper


def _parse_geo(field_path: str, token: str) -> GeoDistance:
    match = _GEO_TOKEN.match(token)
    if match is None:
        raise ValidationError(
            f"좌표 형식이 잘못되었습니다(lat,lon,radius): {field_path}={token}",
            field=field_path,
        )

    unit = match.group("unit") or "km"
    try:
        return GeoDistance(
            lat=float(match.group("lat")),
            lon=float(match.group("lon")),
            distance_m=float(match.group("radius")) * _UNIT_METERS[unit],
        )
    except PydanticValidationError as exc:
        raise ValidationError(
            f"좌표 값이 범위를 벗어났습니다: {field_path}={token}",
            field=field_path,
        ) from exc


def _parse_literal(field_path: str, field_type: FieldType, raw: str) -> Literal:
    if field_type is FieldType.KEYWORD:
        return raw

    if field_type is FieldType.INTEGER:
        if not _INTEGER_TOKEN.fullmatch(raw):
            raise ValidationError(f"정수 형식이 아닙니다: {field_path}={raw}", field=field_path)
        return int(raw)

    if field_type is FieldType.FLOAT:
        try:
            value = float(raw)
        except ValueError as exc:
            raise ValidationError(f"실수 형식이 아닙니다: {field_path}={raw}", field=field_path) from exc
        if not math.isfinite(value):
            raise ValidationError(f"유한한 실수가 아닙니다: {field_path}={raw}", field=field_path)
        return value

    if field_type is FieldType.DATE:
        return parse_datetime(raw, field_path)

    if field_type is FieldType.BOOLEAN:
        lowered = raw.lower()
        if lowered in _TRUE_TOKENS:
            return True
        if lowered in _FALSE_TOKENS:
            return False
        raise ValidationError(f"불리언 형식이 아닙니다: {field_path}={raw}", field=field_path)

    raise ValidationError(f"{field_type.value} 필드에 단일 값을 사용할 수 없습니다: {field_path}", field=field_path)


def parse_datetime(raw: str, field_path: str) -> datetime:
    """ISO-8601 문자열을 UTC 기준 datetime으로 변환한다."""
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"ISO-8601 날짜 형식이 아닙니다: {field_path}={raw}", field=field_path) from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _first_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return str(errors[0].get("msg", exc))
