"""
목적:
- 루트 `.env`와 스키마 JSON을 읽어 TalentSearchEngine을 실행하는 드라이버 스크립트를 제공한다.

설명:
- 라이브러리 본체는 환경 파일을 직접 읽지 않는다.
- Elasticsearch/Redis/Rollbar 연결 정보는 `.env`에서, 카탈로그/화이트리스트/API 클라이언트는
  `--schema` JSON 파일에서 읽는다.
- `--param key=value`를 반복 지정해 쿼리 문자열 매핑을 구성하고 응답 JSON을 출력한다.

디자인 패턴:
- 드라이버(Driver Script).

참조:
- src_py/talent_search/config/models.py
- src_py/talent_search/search/engine.py
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from talent_search import (
    AuthConfig,
    ElasticsearchConfig,
    RankingConfig,
    RedisReplayConfig,
    RollbarConfig,
    SchemaCatalog,
    SearchConfig,
    TalentSearchEngine,
    TalentSearchError,
    VisibilityConfig,
    error_response,
)

REQUIRED_ENV_KEYS = [
    "ES_HOSTS",
    "ES_INDEX",
    "ES_REQUEST_TIMEOUT_MS",
    "ES_PAGE_TIMEOUT_MS",
    "SEARCH_MAX_RETRIES",
    "SEARCH_RETRY_BASE_MS",
    "SEARCH_RETRY_MAX_MS",
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Talent Search 드라이버")
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        help="쿼리 파라미터 key=value (반복 지정 가능, 예: skills[]=python)",
    )
    parser.add_argument("--credential", required=True, help="<client_id>:<일회용 코드>")
    parser.add_argument("--schema", default="search-schema.json", help="카탈로그/화이트리스트 JSON 경로")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="루트 기준 환경 파일 경로 (기본: .env)",
    )
    parser.add_argument("--log-level", default="INFO", help="로그 레벨 (기본: INFO)")
    return parser.parse_args()


def load_env_file(path: Path) -> None:
    if not path.exists():
        raise RuntimeError(f"환경 파일이 존재하지 않습니다: {path}")

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        os.environ[key.strip()] = value.strip().strip('"').strip("'")


def ensure_required_env() -> None:
    missing = [key for key in REQUIRED_ENV_KEYS if not os.environ.get(key)]
    if missing:
        raise RuntimeError(f"필수 환경 변수가 누락되었습니다: {', '.join(missing)}")


def parse_bool_env(key: str, default: str) -> bool:
    raw = os.environ.get(key, default).strip().lower()
    if raw in {"1", "true", "yes", "y"}:
        return True
    if raw in {"0", "false", "no", "n"}:
        return False
    raise RuntimeError(f"불리언 환경 변수 형식이 잘못되었습니다: {key}={raw}")


def parse_params(pairs: list[str]) -> dict[str, list[str]]:
    params: dict[str, list[str]] = {}
    for pair in pairs:
        if "=" not in pair:
            raise RuntimeError(f"--param 형식은 key=value 이어야 합니다: {pair}")
        key, value = pair.split("=", 1)
        params.setdefault(key, []).append(value)
    return params


def build_config(schema: dict) -> SearchConfig:
    elasticsearch = ElasticsearchConfig(
        hosts=[host.strip() for host in os.environ["ES_HOSTS"].split(",") if host.strip()],
        index=os.environ["ES_INDEX"],
        username=os.environ.get("ES_USERNAME") or None,
        password=os.environ.get("ES_PASSWORD") or None,
        api_key=os.environ.get("ES_API_KEY") or None,
        verify_certs=parse_bool_env("ES_VERIFY_CERTS", "true"),
        request_timeout_ms=int(os.environ["ES_REQUEST_TIMEOUT_MS"]),
        page_timeout_ms=int(os.environ["ES_PAGE_TIMEOUT_MS"]),
        max_retries=int(os.environ["SEARCH_MAX_RETRIES"]),
        retry_base_ms=int(os.environ["SEARCH_RETRY_BASE_MS"]),
        retry_max_ms=int(os.environ["SEARCH_RETRY_MAX_MS"]),
        candidate_window=int(os.environ.get("SEARCH_CANDIDATE_WINDOW", "1000")),
    )

    replay = None
    if os.environ.get("REDIS_HOST"):
        replay = RedisReplayConfig(
            host=os.environ["REDIS_HOST"],
            port=int(os.environ.get("REDIS_PORT", "6379")),
            db=int(os.environ.get("REDIS_DB", "0")),
            username=os.environ.get("REDIS_USERNAME") or None,
            password=os.environ.get("REDIS_PASSWORD") or None,
            use_ssl=parse_bool_env("REDIS_USE_SSL", "false"),
        )

    rollbar = None
    if os.environ.get("ROLLBAR_ACCESS_TOKEN"):
        rollbar = RollbarConfig(
            access_token=os.environ["ROLLBAR_ACCESS_TOKEN"],
            environment=os.environ.get("ROLLBAR_ENVIRONMENT", "production"),
        )

    auth = AuthConfig.model_validate({**schema.get("auth", {}), "replay": replay})
    visibility = schema.get("visibility")

    return SearchConfig(
        elasticsearch=elasticsearch,
        catalog=SchemaCatalog.model_validate(schema["catalog"]),
        whitelist_by_scope=schema.get("whitelist_by_scope", {}),
        ranking=RankingConfig.model_validate(schema.get("ranking", {})),
        auth=auth,
        visibility=VisibilityConfig.model_validate(visibility) if visibility is not None else None,
        rollbar=rollbar,
    )


async def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    repo_root = Path(__file__).resolve().parents[1]
    load_env_file(repo_root / args.env_file)
    ensure_required_env()

    schema_path = repo_root / args.schema
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    config = build_config(schema)

    engine = TalentSearchEngine(config=config)
    try:
        result = await engine.search_params(parse_params(args.param), credential=args.credential)
    except TalentSearchError as exc:
        status, body = error_response(exc)
        print(f"[status] {status}")
        print("[error]", json.dumps(body, ensure_ascii=False))
        return 1
    finally:
        engine.close()

    print("[result]", json.dumps(result.to_response(), ensure_ascii=False))
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(asyncio.run(main()))
    except Exception as exc:  # noqa: BLE001
        print(f"[error] {exc}", file=sys.stderr)
        raise SystemExit(1)
