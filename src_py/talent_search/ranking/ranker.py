"""
목적:
- 백엔드 관련도 점수를 boost/최신성 가중치로 보정하고 안정적으로 정렬한다.

설명:
- `adjusted = base × recencyWeight + Σ boost(매칭된 조건의 필드)`.
- `recencyWeight = exp(-ageInDays / half_life_days)` 는 RECENCY/CUSTOM_BOOST 정렬에서만 적용한다.
- 정렬은 `adjusted` 내림차순, 동점은 문서 ID 오름차순이다.
- 같은 문서 ID가 여러 번 오면 첫 히트만 유지한다.

디자인 패턴:
- 전략(Strategy) 없는 단일 스코어러 + 커서 페이지 분할기.

참조:
- src_py/talent_search/backend/elastic.py
- src_py/talent_search/ranking/cursor.py
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import numpy as np

from talent_search.backend.elastic import BackendHit, BackendPage
from talent_search.config.models import RankingConfig
from talent_search.contracts.search_models import SortMode
from talent_search.query.tree import CompiledQuery
from talent_search.ranking.cursor import CursorKey

_SECONDS_PER_DAY = 86_400.0
_RECENCY_SORTS = (SortMode.RECENCY, SortMode.CUSTOM_BOOST)


@dataclass(frozen=True, slots=True)
class RankedHit:
    """보정 점수가 계산된 히트."""

    doc_id: str
    score: float
    base_score: float
    source: dict[str, Any]

    @property
    def key(self) -> CursorKey:
        return CursorKey(score=self.score, doc_id=self.doc_id)


class RankingEngine:
    """점수 보정 및 페이지 분할 엔진."""

    def __init__(self, config: RankingConfig) -> None:
        self._config = config

    def rank(
        self,
        page: BackendPage,
        *,
        sort: SortMode,
        boosts: Mapping[str, float],
        compiled: CompiledQuery,
        reference_time: datetime,
    ) -> list[RankedHit]:
        """히트 목록을 보정 점수 기준으로 정렬한다."""
        hits = _dedupe(page.hits)
        if not hits:
            return []

        count = len(hits)
        base = np.fromiter((hit.score for hit in hits), dtype=np.float64, count=count)

        if sort in _RECENCY_SORTS:
            recency = self._recency_weights(hits, reference_time)
        else:
            recency = np.ones(count, dtype=np.float64)

        bonus = np.fromiter(
            (_boost_sum(hit, boosts, compiled) for hit in hits),
            dtype=np.float64,
            count=count,
        )
        adjusted = base * recency + bonus

        doc_ids = np.array([hit.doc_id for hit in hits], dtype=str)
        order = np.lexsort((doc_ids, -adjusted))

        return [
            RankedHit(
                doc_id=hits[index].doc_id,
                score=float(adjusted[index]),
                base_score=hits[index].score,
                source=hits[index].source,
            )
            for index in order
        ]

    def _recency_weights(self, hits: Sequence[BackendHit], reference_time: datetime) -> np.ndarray:
        field = self._config.recency_field
        if field is None:
            return np.ones(len(hits), dtype=np.float64)

        ages = np.array(
            [_age_days(lookup(hit.source, field), reference_time) for hit in hits],
            dtype=np.float64,
        )
        missing = np.isnan(ages)
        clipped = np.clip(np.where(missing, 0.0, ages), 0.0, None)
        weights = np.exp(-clipped / self._config.half_life_days)
        return np.where(missing, 0.0, weights)


def paginate(
    ranked: Sequence[RankedHit],
    *,
    after: CursorKey | None,
    page_size: int,
) -> tuple[list[RankedHit], bool]:
    """커서 이후의 히트에서 한 페이지를 자르고, 다음 페이지 존재 여부를 함께 반환한다."""
    remaining = [hit for hit in ranked if after is None or hit.key.follows(after)]
    return remaining[:page_size], len(remaining) > page_size


def lookup(source: Mapping[str, Any], path: str) -> Any:
    """점 표기 경로로 문서 값을 조회한다."""
    current: Any = source
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def _dedupe(hits: Sequence[BackendHit]) -> list[BackendHit]:
    seen: set[str] = set()
    unique: list[BackendHit] = []
    for hit in hits:
        if hit.doc_id in seen:
            continue
        seen.add(hit.doc_id)
        unique.append(hit)
    return unique


def _boost_sum(hit: BackendHit, boosts: Mapping[str, float], compiled: CompiledQuery) -> float:
    if not boosts:
        return 0.0
    total = 0.0
    for name in hit.matched_queries:
        for field_path in compiled.fields_for(name):
            total += boosts.get(field_path, 0.0)
    return total


def _age_days(value: Any, reference_time: datetime) -> float:
    if isinstance(value, bool) or value is None:
        return math.nan

    if isinstance(value, (int, float)):
        timestamp = float(value) / 1000.0
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value)
        except ValueError:
            return math.nan
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        timestamp = moment.timestamp()
    else:
        return math.nan

    return (reference_time.timestamp() - timestamp) / _SECONDS_PER_DAY
