"""
목적:
- 일회용 코드 재사용을 Redis로 차단한다.

설명:
- `SET key 1 NX EX ttl`이 성공한 최초 요청만 코드를 사용할 수 있다.
- 여러 검색 프로세스가 같은 Redis를 공유하면 프로세스 간에도 재사용이 차단된다.

디자인 패턴:
- 저장소 패턴(Repository Pattern).

참조:
- src_py/talent_search/auth/gate.py
- src_py/talent_search/config/models.py
"""

from __future__ import annotations

from typing import Any, Protocol

from talent_search.config.models import RedisReplayConfig
from talent_search.exceptions import DependencyUnavailableError


class ReplayGuard(Protocol):
    """일회용 코드 사용 기록 저장소 인터페이스."""

    def claim(self, key: str, ttl_sec: int) -> bool:
        """처음 사용하는 키면 True, 이미 사용된 키면 False를 반환한다."""


class RedisReplayGuard:
    """Redis 기반 일회용 코드 재사용 차단기."""

    def __init__(self, config: RedisReplayConfig, client: Any | None = None) -> None:
        self._config = config
        self._redis = client if client is not None else self._create_client(config)

    @staticmethod
    def _create_client(config: RedisReplayConfig):
        try:
            import redis
        except ImportError as exc:  # pragma: no cover - 런타임 환경 의존
            raise DependencyUnavailableError(f"redis 패키지를 불러오지 못했습니다: {exc}") from exc

        password = config.password.get_secret_value() if config.password is not None else None
        return redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            username=config.username,
            password=password,
            ssl=config.use_ssl,
            decode_responses=True,
        )

    def claim(self, key: str, ttl_sec: int) -> bool:
        redis_key = f"{self._config.key_prefix}:{key}"
        try:
            created = self._redis.set(redis_key, "1", nx=True, ex=max(1, ttl_sec))
        except Exception as exc:
            raise DependencyUnavailableError(f"Redis 일회용 코드 기록 실패: key={redis_key}, error={exc}") from exc
        return bool(created)
