"""
목적:
- 검색 히트를 호출자 스코프의 화이트리스트로 투영한다.

설명:
- 허용 필드는 호출자가 가진 모든 스코프 화이트리스트의 합집합이다.
- 화이트리스트에 없는 필드는 항상 제거된다(설정이 없으면 빈 요약).
- 점 표기 항목(`experience.company`)은 하위 문서/하위 문서 배열 안으로 투영한다.

디자인 패턴:
- 프로젝션(Projection).

참조:
- src_py/talent_search/contracts/search_models.py
- src_py/talent_search/search/engine.py
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic_core import PydanticSerializationError

from talent_search.contracts.search_models import CandidateSummary
from talent_search.exceptions import SerializationError
from talent_search.ranking.ranker import RankedHit

# 하위 경로 트리. 값이 None이면 해당 노드 전체를 허용한다.
ProjectionTree = dict[str, "ProjectionTree | None"]


class ResponseShaper:
    """스코프별 화이트리스트 기반 응답 투영기."""

    def __init__(self, whitelist_by_scope: Mapping[str, Sequence[str]]) -> None:
        self._whitelist_by_scope = {
            scope: tuple(fields) for scope, fields in whitelist_by_scope.items()
        }

    def allowed_fields(self, scopes: Iterable[str]) -> frozenset[str]:
        allowed: set[str] = set()
        for scope in scopes:
            allowed.update(self._whitelist_by_scope.get(scope, ()))
        return frozenset(allowed)

    def shape(self, hits: Sequence[RankedHit], scopes: Iterable[str]) -> list[CandidateSummary]:
        """히트 목록을 공개 후보 요약 목록으로 변환한다."""
        tree = build_projection_tree(self.allowed_fields(scopes))
        summaries: list[CandidateSummary] = []
        for hit in hits:
            projected = project(hit.source, tree)
            summary = CandidateSummary(**projected)
            try:
                summary.model_dump(mode="json")
            except PydanticSerializationError as exc:
                raise SerializationError(
                    f"후보 요약을 직렬화하지 못했습니다: doc_id={hit.doc_id}, error={exc}"
                ) from exc
            summaries.append(summary)
        return summaries


def build_projection_tree(paths: Iterable[str]) -> ProjectionTree:
    tree: ProjectionTree = {}
    # 짧은 경로를 먼저 넣어 상위 전체 허용이 하위 항목을 덮게 한다.
    for path in sorted(paths, key=lambda item: item.count(".")):
        node = tree
        parts = path.split(".")
        for index, part in enumerate(parts):
            last = index == len(parts) - 1
            if part in node and node[part] is None:
                break
            if last:
                node[part] = None
                break
            child = node.setdefault(part, {})
            node = child
    return tree


def project(source: Mapping[str, Any], tree: ProjectionTree) -> dict[str, Any]:
    """문서를 투영 트리에 맞게 잘라낸다."""
    projected: dict[str, Any] = {}
    for key, subtree in tree.items():
        if key not in source:
            continue
        value = source[key]
        if subtree is None:
            projected[key] = value
        elif isinstance(value, Mapping):
            projected[key] = project(value, subtree)
        elif isinstance(value, list):
            projected[key] = [project(item, subtree) for item in value if isinstance(item, Mapping)]
    return projected
