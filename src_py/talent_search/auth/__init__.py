"""
목적:
- 인증 계층의 공개 심볼을 제공한다.

설명:
- 인증 게이트와 일회용 코드 재사용 차단기를 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/auth/gate.py
- src_py/talent_search/auth/replay.py
"""

from .gate import AuthGate
from .replay import RedisReplayGuard, ReplayGuard

__all__ = ["AuthGate", "ReplayGuard", "RedisReplayGuard"]
