from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pyotp
import pytest

from talent_search.config.catalog import SchemaCatalog
from talent_search.config.models import (
    AuthClientConfig,
    AuthConfig,
    ElasticsearchConfig,
    SearchConfig,
)
from talent_search.contracts.filter_models import FieldType
from talent_search.search.engine import TalentSearchEngine

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)
RECRUITER_SECRET = "JBSWY3DPEHPK3PXP"
VIEWER_SECRET = "KRSXG5CTMVRXEZLU"


def otp_for(secret: str, when: datetime = FIXED_NOW) -> str:
    return pyotp.TOTP(secret).at(when)


class InMemoryBackend:
    """문서 목록을 `_score desc, id asc` 순서로 돌려주는 가짜 백엔드."""

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        self.documents = list(documents or [])
        self.failures: list[Exception] = []
        self.calls: list[dict[str, Any]] = []

    def search(self, body: dict[str, Any], timeout_sec: float) -> dict[str, Any]:
        self.calls.append(body)
        if self.failures:
            raise self.failures.pop(0)

        ordered = sorted(self.documents, key=lambda doc: (-doc["score"], doc["source"]["id"]))
        search_after = body.get("search_after")
        if search_after is not None:
            after_score, after_id = search_after
            ordered = [
                doc
                for doc in ordered
                if doc["score"] < after_score
                or (doc["score"] == after_score and doc["source"]["id"] > after_id)
            ]

        hits = [
            {
                "_id": doc["source"]["id"],
                "_score": doc["score"],
                "_source": doc["source"],
                "matched_queries": doc.get("matched", []),
                "sort": [doc["score"], doc["source"]["id"]],
            }
            for doc in ordered[: body["size"]]
        ]
        return {"hits": {"total": {"value": len(self.documents), "relation": "eq"}, "hits": hits}}


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, tuple[str, int | None]] = {}

    def set(self, key: str, value: str, nx: bool = False, ex: int | None = None):
        if nx and key in self.store:
            return None
        self.store[key] = (value, ex)
        return True


class RecordingReporter:
    def __init__(self) -> None:
        self.events = []

    def report(self, event) -> None:
        self.events.append(event)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_doc(doc_id: str, score: float, matched: list[str] | None = None, **fields: Any) -> dict[str, Any]:
    return {"score": score, "matched": matched or [], "source": {"id": doc_id, **fields}}


@pytest.fixture
def catalog() -> SchemaCatalog:
    return SchemaCatalog(
        field_types={
            "id": FieldType.KEYWORD,
            "name": FieldType.KEYWORD,
            "email": FieldType.KEYWORD,
            "ssn": FieldType.KEYWORD,
            "skills": FieldType.KEYWORD,
            "headline": FieldType.KEYWORD,
            "yearsExperience": FieldType.INTEGER,
            "salary": FieldType.FLOAT,
            "remote": FieldType.BOOLEAN,
            "updated_at": FieldType.DATE,
            "accepted": FieldType.BOOLEAN,
            "batch_starts_at": FieldType.DATE,
            "batch_ends_at": FieldType.DATE,
            "location": FieldType.GEO_POINT,
            "experience.company": FieldType.KEYWORD,
            "experience.title": FieldType.KEYWORD,
            "experience.years": FieldType.INTEGER,
        },
        nested_paths=frozenset({"experience"}),
        text_fields=("headline", "name"),
    )


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        clients={
            "recruiter": AuthClientConfig(
                secret=RECRUITER_SECRET,
                scopes=frozenset({"candidates:search", "candidates:contact"}),
            ),
            "viewer": AuthClientConfig(
                secret=VIEWER_SECRET,
                scopes=frozenset({"candidates:browse"}),
            ),
        },
    )


@pytest.fixture
def search_config(catalog: SchemaCatalog, auth_config: AuthConfig) -> SearchConfig:
    return SearchConfig(
        elasticsearch=ElasticsearchConfig(
            hosts=["http://localhost:9200"],
            index="candidates",
            max_retries=2,
            retry_base_ms=100,
            retry_max_ms=400,
        ),
        catalog=catalog,
        whitelist_by_scope={
            "candidates:search": ["id", "name", "skills", "yearsExperience", "experience.company"],
            "candidates:contact": ["email"],
        },
        auth=auth_config,
    )


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def engine(search_config, backend, reporter, sleeper) -> TalentSearchEngine:
    return TalentSearchEngine(
        search_config,
        backend=backend,
        reporter=reporter,
        clock=lambda: FIXED_NOW,
        sleep=sleeper,
    )


@pytest.fixture
def credential() -> str:
    return f"recruiter:{otp_for(RECRUITER_SECRET)}"
