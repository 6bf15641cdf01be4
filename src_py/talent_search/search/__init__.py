"""
목적:
- 검색 실행 계층의 공개 심볼을 제공한다.

설명:
- 검색 엔진 퍼사드와 백엔드 실행기를 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/search/engine.py
- src_py/talent_search/search/executor.py
"""

from .engine import TalentSearchEngine
from .executor import SearchExecutor

__all__ = ["TalentSearchEngine", "SearchExecutor"]
