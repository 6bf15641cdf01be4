"""
목적:
- 검색 요청/결과 인터페이스 모델을 정의한다.

설명:
- 요청 1건 단위로 생성되어 검증 후 한 번만 소비되는 `SearchRequest`를 제공한다.
- 공개 응답은 화이트리스트로 투영된 `CandidateSummary`만 담는다.

디자인 패턴:
- DTO(Data Transfer Object).

참조:
- src_py/talent_search/search/engine.py
- src_py/talent_search/response/shaper.py
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from talent_search.contracts.filter_models import FilterCriteria, find_contradiction

MAX_PAGE_SIZE = 100


class SortMode(str, Enum):
    RELEVANCE = "relevance"
    RECENCY = "recency"
    CUSTOM_BOOST = "custom_boost"


class SearchRequest(BaseModel):
    """검색 요청 모델."""

    model_config = ConfigDict(frozen=True)

    criteria: tuple[FilterCriteria, ...] = Field(default=())
    sort: SortMode = Field(default=SortMode.RELEVANCE)
    boosts: dict[str, float] = Field(default_factory=dict)
    page_size: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)
    cursor: str | None = Field(default=None)
    credential: SecretStr | None = Field(default=None)
    keywords: str | None = Field(default=None)
    epoch: datetime | None = Field(default=None)
    presented_ids: tuple[str, ...] = Field(default=())

    @field_validator("boosts")
    @classmethod
    def validate_boosts(cls, value: dict[str, float]) -> dict[str, float]:
        for field_path, weight in value.items():
            if not math.isfinite(weight):
                raise ValueError(f"boost 가중치는 유한한 숫자여야 합니다: {field_path}={weight}")
        return value

    @field_validator("keywords")
    @classmethod
    def normalize_keywords(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None

    @model_validator(mode="after")
    def validate_consistency(self) -> "SearchRequest":
        conflict = find_contradiction(self.criteria)
        if conflict is not None:
            raise ValueError(
                f"같은 조건이 MUST와 MUST_NOT에 동시에 지정되었습니다: {conflict.field_path}"
            )
        return self


class CandidateSummary(BaseModel):
    """공개 후보 요약 모델. 화이트리스트 필드만 가진다."""

    model_config = ConfigDict(frozen=True, extra="allow")


class SearchResult(BaseModel):
    """검색 결과 모델."""

    hits: list[CandidateSummary] = Field(default_factory=list)
    total_count: int = Field(ge=0)
    total_count_exact: bool = Field(default=True)
    next_cursor: str | None = Field(default=None)
    truncated: bool = Field(default=False)

    def to_response(self) -> dict[str, Any]:
        """공개 응답 JSON 형태로 변환한다."""
        return {
            "results": [hit.model_dump(mode="json") for hit in self.hits],
            "totalCount": self.total_count,
            "nextCursor": self.next_cursor,
            "truncated": self.truncated,
        }
