"""
목적:
- Talent Search Python 패키지의 공개 진입점을 제공한다.

설명:
- 라이브러리 핵심 클래스는 `TalentSearchEngine`이다.
- 설정/인터페이스/예외/오류 보고기를 함께 노출한다.

디자인 패턴:
- 퍼사드(Facade).

참조:
- src_py/talent_search/search/engine.py
"""

from .config.catalog import SchemaCatalog
from .config.models import (
    AuthClientConfig,
    AuthConfig,
    ElasticsearchConfig,
    RankingConfig,
    RedisReplayConfig,
    RollbarConfig,
    SearchConfig,
    VisibilityConfig,
)
from .contracts.context_models import AuthContext, ErrorEvent, error_response
from .contracts.filter_models import FieldType, FilterCriteria, FilterOperator, FilterRole
from .contracts.search_models import CandidateSummary, SearchRequest, SearchResult, SortMode
from .exceptions import (
    AuthError,
    BackendQueryError,
    BackendUnavailable,
    ConfigurationError,
    DependencyUnavailableError,
    InsufficientScopeError,
    InternalSearchError,
    SerializationError,
    TalentSearchError,
    ValidationError,
)
from .reporting import ErrorReporter, LoggingErrorReporter, RollbarErrorReporter
from .search.engine import TalentSearchEngine
from .version import __version__

__all__ = [
    "__version__",
    "TalentSearchEngine",
    "SearchConfig",
    "SchemaCatalog",
    "ElasticsearchConfig",
    "RankingConfig",
    "VisibilityConfig",
    "AuthConfig",
    "AuthClientConfig",
    "RedisReplayConfig",
    "RollbarConfig",
    "FieldType",
    "FilterOperator",
    "FilterRole",
    "FilterCriteria",
    "SortMode",
    "SearchRequest",
    "SearchResult",
    "CandidateSummary",
    "AuthContext",
    "ErrorEvent",
    "error_response",
    "ErrorReporter",
    "LoggingErrorReporter",
    "RollbarErrorReporter",
    "TalentSearchError",
    "ValidationError",
    "AuthError",
    "InsufficientScopeError",
    "BackendUnavailable",
    "BackendQueryError",
    "SerializationError",
    "InternalSearchError",
    "ConfigurationError",
    "DependencyUnavailableError",
]
