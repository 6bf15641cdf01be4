"""
목적:
- 오류 보고 계층의 공개 심볼을 제공한다.

설명:
- 로그/Rollbar 보고기를 외부에 노출한다.

디자인 패턴:
- 모듈 퍼사드(Module Facade).

참조:
- src_py/talent_search/reporting/reporter.py
"""

from .reporter import ErrorReporter, LoggingErrorReporter, RollbarErrorReporter

__all__ = ["ErrorReporter", "LoggingErrorReporter", "RollbarErrorReporter"]
