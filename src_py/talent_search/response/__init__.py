"""
목적:
- 응답 투영 계층의 공개 심볼을 제공한다.

설명:
- 화이트리스트 기반 응답 투영기를 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/response/shaper.py
"""

from .shaper import ResponseShaper

__all__ = ["ResponseShaper"]
