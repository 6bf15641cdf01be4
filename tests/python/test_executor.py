import asyncio
import time
from types import SimpleNamespace

import pytest
from elasticsearch import ApiError
from elasticsearch import ConnectionError as EsConnectionError

from conftest import InMemoryBackend, RecordingSleep, make_doc
from talent_search.backend.elastic import ElasticsearchBackend
from talent_search.config.models import ElasticsearchConfig
from talent_search.exceptions import (
    BackendQueryError,
    BackendTransportError,
    BackendUnavailable,
)
from talent_search.query.compiler import QueryCompiler
from talent_search.search.executor import SearchExecutor

COMPILED = QueryCompiler().compile(())


def _config(**overrides) -> ElasticsearchConfig:
    values = {
        "hosts": ["http://localhost:9200"],
        "index": "candidates",
        "max_retries": 2,
        "retry_base_ms": 100,
        "retry_max_ms": 150,
    }
    values.update(overrides)
    return ElasticsearchConfig(**values)


def test_two_timeouts_then_success_backs_off_exponentially() -> None:
    backend = InMemoryBackend([make_doc("a", 1.0)])
    backend.failures = [BackendTransportError("timeout"), BackendTransportError("timeout")]
    sleeper = RecordingSleep()
    executor = SearchExecutor(_config(), backend, sleep=sleeper)

    page = asyncio.run(executor.execute(COMPILED, size=10))

    assert [hit.doc_id for hit in page.hits] == ["a"]
    assert len(backend.calls) == 3
    assert sleeper.delays == [0.1, 0.15]


def test_exhausted_retries_raise_backend_unavailable() -> None:
    backend = InMemoryBackend()
    backend.failures = [BackendTransportError("503", status=503) for _ in range(3)]
    executor = SearchExecutor(_config(), backend, sleep=RecordingSleep())

    with pytest.raises(BackendUnavailable, match="attempts=3"):
        asyncio.run(executor.execute(COMPILED, size=10))
    assert len(backend.calls) == 3


def test_continuation_pages_are_not_retried() -> None:
    backend = InMemoryBackend()
    backend.failures = [BackendTransportError("timeout")]
    sleeper = RecordingSleep()
    executor = SearchExecutor(_config(), backend, sleep=sleeper)

    with pytest.raises(BackendUnavailable):
        asyncio.run(executor.execute(COMPILED, size=10, initial_page=False))
    assert len(backend.calls) == 1
    assert sleeper.delays == []


def test_query_rejection_is_not_retried_and_carries_body() -> None:
    backend = InMemoryBackend()
    backend.failures = [BackendQueryError("bad query", status=400)]
    executor = SearchExecutor(_config(), backend, sleep=RecordingSleep())

    with pytest.raises(BackendQueryError) as exc_info:
        asyncio.run(executor.execute(COMPILED, size=10))

    assert len(backend.calls) == 1
    assert exc_info.value.compiled_query == backend.calls[0]


def test_page_timeout_bounds_the_whole_fetch() -> None:
    class SlowBackend:
        def search(self, body, timeout_sec):
            time.sleep(0.3)
            return {"hits": {"total": 0, "hits": []}}

    executor = SearchExecutor(
        _config(request_timeout_ms=10, page_timeout_ms=50),
        SlowBackend(),
        sleep=RecordingSleep(),
    )

    with pytest.raises(BackendUnavailable, match="page_timeout_ms=50"):
        asyncio.run(executor.execute(COMPILED, size=10))


def test_malformed_response_is_a_query_error() -> None:
    class BrokenBackend:
        def search(self, body, timeout_sec):
            return {"took": 3}

    executor = SearchExecutor(_config(), BrokenBackend(), sleep=RecordingSleep())

    with pytest.raises(BackendQueryError, match="hits"):
        asyncio.run(executor.execute(COMPILED, size=10))


class _FakeClient:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.requests = []

    def options(self, **kwargs):
        self.requests.append(kwargs)
        return self

    def search(self, **kwargs):
        self.requests.append(kwargs)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return SimpleNamespace(body=self.outcome)


def _api_error(status: int) -> ApiError:
    return ApiError("rejected", meta=SimpleNamespace(status=status), body={})


@pytest.mark.parametrize("status", [500, 503, 429])
def test_elasticsearch_backend_maps_retryable_statuses(status: int) -> None:
    backend = ElasticsearchBackend(_config(), client=_FakeClient(_api_error(status)))

    with pytest.raises(BackendTransportError) as exc_info:
        backend.search({"size": 1}, 2.0)
    assert exc_info.value.status == status


def test_elasticsearch_backend_maps_client_errors_to_query_errors() -> None:
    backend = ElasticsearchBackend(_config(), client=_FakeClient(_api_error(400)))

    with pytest.raises(BackendQueryError) as exc_info:
        backend.search({"size": 1}, 2.0)
    assert exc_info.value.status == 400
    assert exc_info.value.compiled_query == {"size": 1}


def test_elasticsearch_backend_maps_connection_errors() -> None:
    backend = ElasticsearchBackend(_config(), client=_FakeClient(EsConnectionError("refused")))

    with pytest.raises(BackendTransportError, match="전송 실패"):
        backend.search({"size": 1}, 2.0)


def test_elasticsearch_backend_passes_timeout_and_index() -> None:
    client = _FakeClient({"hits": {"total": 0, "hits": []}})
    backend = ElasticsearchBackend(_config(), client=client)

    assert backend.search({"size": 3}, 1.5) == {"hits": {"total": 0, "hits": []}}
    assert client.requests == [{"request_timeout": 1.5}, {"index": "candidates", "size": 3}]
