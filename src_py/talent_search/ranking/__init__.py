"""
목적:
- 랭킹/페이지네이션 계층의 공개 심볼을 제공한다.

설명:
- 점수 보정 엔진과 커서 모델을 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/ranking/ranker.py
- src_py/talent_search/ranking/cursor.py
"""

from .cursor import CursorKey, PageCursor, PagingMode, request_fingerprint
from .ranker import RankedHit, RankingEngine, paginate

__all__ = [
    "RankingEngine",
    "RankedHit",
    "paginate",
    "CursorKey",
    "PageCursor",
    "PagingMode",
    "request_fingerprint",
]
