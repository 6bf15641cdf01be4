"""
목적:
- Talent Search 라이브러리의 설정 인터페이스를 정의한다.

설명:
- Elasticsearch/Redis/랭킹/인증/노출 규칙 값을 단일 모델로 관리한다.
- 라이브러리는 `.env`를 직접 읽지 않고, 외부에서 생성된 설정 객체를 주입받는다.

디자인 패턴:
- 값 객체(Value Object).

참조:
- scripts/run-search.py
- src_py/talent_search/search/engine.py
- src_py/talent_search/search/executor.py
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from talent_search.config.catalog import SchemaCatalog
from talent_search.contracts.filter_models import FieldType
from talent_search.contracts.search_models import MAX_PAGE_SIZE


class ElasticsearchConfig(BaseModel):
    """Elasticsearch 연결 및 조회 제어 설정 모델."""

    model_config = ConfigDict(frozen=True)

    hosts: list[str] = Field(min_length=1)
    index: str = Field(min_length=1)
    username: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)
    api_key: SecretStr | None = Field(default=None)
    verify_certs: bool = Field(default=True)
    request_timeout_ms: int = Field(default=2_000, ge=1)
    page_timeout_ms: int = Field(default=8_000, ge=1)
    max_retries: int = Field(default=2, ge=0)
    retry_base_ms: int = Field(default=200, ge=1)
    retry_max_ms: int = Field(default=2_000, ge=1)
    candidate_window: int = Field(default=1_000, ge=1, le=10_000)

    @field_validator("retry_max_ms")
    @classmethod
    def validate_retry_window(cls, value: int, info) -> int:
        retry_base_ms = info.data.get("retry_base_ms", 200)
        if value < retry_base_ms:
            raise ValueError("retry_max_ms는 retry_base_ms 이상이어야 합니다")
        return value

    @field_validator("page_timeout_ms")
    @classmethod
    def validate_page_timeout(cls, value: int, info) -> int:
        request_timeout_ms = info.data.get("request_timeout_ms", 2_000)
        if value < request_timeout_ms:
            raise ValueError("page_timeout_ms는 request_timeout_ms 이상이어야 합니다")
        return value


class RedisReplayConfig(BaseModel):
    """일회용 토큰 재사용 차단용 Redis 설정 모델."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    username: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None)
    use_ssl: bool = Field(default=False)
    key_prefix: str = Field(default="talent-search:otp", min_length=1)


class AuthClientConfig(BaseModel):
    """API 클라이언트별 TOTP 시크릿/스코프 설정 모델."""

    model_config = ConfigDict(frozen=True)

    secret: SecretStr
    scopes: frozenset[str] = Field(default_factory=frozenset)


class AuthConfig(BaseModel):
    """인증 게이트 설정 모델."""

    model_config = ConfigDict(frozen=True)

    clients: dict[str, AuthClientConfig] = Field(default_factory=dict)
    required_scope: str = Field(default="candidates:search", min_length=1)
    interval_sec: int = Field(default=30, ge=1)
    digits: int = Field(default=6, ge=6, le=10)
    valid_window: int = Field(default=1, ge=0, le=10)
    expired_lookback: int = Field(default=20, ge=0)
    replay: RedisReplayConfig | None = Field(default=None)


class RankingConfig(BaseModel):
    """점수 보정 설정 모델."""

    model_config = ConfigDict(frozen=True)

    recency_field: str | None = Field(default="updated_at")
    half_life_days: float = Field(default=90.0, gt=0.0)
    min_score: float | None = Field(default=None, ge=0.0)


class VisibilityConfig(BaseModel):
    """후보 노출 규칙 설정 모델.

    승인 플래그가 참이고 기준 시각이 노출 기간 안에 있는 문서만 조회된다.
    """

    model_config = ConfigDict(frozen=True)

    accepted_field: str | None = Field(default="accepted")
    window_start_field: str | None = Field(default="batch_starts_at")
    window_end_field: str | None = Field(default="batch_ends_at")


class RollbarConfig(BaseModel):
    """Rollbar 오류 보고 설정 모델."""

    model_config = ConfigDict(frozen=True)

    access_token: SecretStr
    environment: str = Field(default="production", min_length=1)


class SearchConfig(BaseModel):
    """검색 엔진 설정 모델."""

    model_config = ConfigDict(frozen=True)

    elasticsearch: ElasticsearchConfig
    catalog: SchemaCatalog
    whitelist_by_scope: dict[str, list[str]] = Field(default_factory=dict)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    visibility: VisibilityConfig | None = Field(default=None)
    rollbar: RollbarConfig | None = Field(default=None)
    default_page_size: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)

    @model_validator(mode="after")
    def validate_catalog_references(self) -> "SearchConfig":
        catalog = self.catalog

        recency_field = self.ranking.recency_field
        if recency_field is not None and catalog.field_type(recency_field) is not FieldType.DATE:
            raise ValueError(f"recency_field는 카탈로그의 date 필드여야 합니다: {recency_field}")

        visibility = self.visibility
        if visibility is not None:
            expected = {
                visibility.accepted_field: FieldType.BOOLEAN,
                visibility.window_start_field: FieldType.DATE,
                visibility.window_end_field: FieldType.DATE,
            }
            for field_path, field_type in expected.items():
                if field_path is not None and catalog.field_type(field_path) is not field_type:
                    raise ValueError(
                        f"노출 규칙 필드 타입이 맞지 않습니다: {field_path} (expected={field_type.value})"
                    )
        return self
