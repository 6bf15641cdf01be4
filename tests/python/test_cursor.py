import base64

import pytest

from conftest import FIXED_NOW
from talent_search.contracts.search_models import SearchRequest, SortMode
from talent_search.exceptions import ValidationError
from talent_search.ranking.cursor import PageCursor, PagingMode, request_fingerprint


def _cursor(**overrides) -> PageCursor:
    values = {
        "score": 1.25,
        "doc_id": "cand-7",
        "reference_time": FIXED_NOW,
        "mode": PagingMode.WINDOW,
        "fingerprint": "abc123",
    }
    values.update(overrides)
    return PageCursor(**values)


def test_cursor_token_is_opaque_and_decodable() -> None:
    cursor = _cursor()

    token = cursor.encode()

    assert "cand-7" not in token
    assert "=" not in token
    assert PageCursor.decode(token) == cursor


@pytest.mark.parametrize(
    "token",
    [
        "not-base64!!",
        base64.urlsafe_b64encode(b"{}").decode(),
        base64.urlsafe_b64encode(b"[1, 2]").decode(),
    ],
)
def test_malformed_cursor_is_a_validation_error(token: str) -> None:
    with pytest.raises(ValidationError, match="커서") as exc_info:
        PageCursor.decode(token)
    assert exc_info.value.field == "cursor"


def test_unknown_cursor_version_is_rejected() -> None:
    token = _cursor(version=99).encode()

    with pytest.raises(ValidationError, match="버전"):
        PageCursor.decode(token)


def test_fingerprint_ignores_page_size_and_cursor_but_not_sort() -> None:
    base = SearchRequest(sort=SortMode.RECENCY, boosts={"skills": 1.0, "name": 2.0})
    same = SearchRequest(sort=SortMode.RECENCY, boosts={"name": 2.0, "skills": 1.0}, page_size=50, cursor="x")
    other = SearchRequest(sort=SortMode.RELEVANCE, boosts={"skills": 1.0, "name": 2.0})

    assert request_fingerprint(base) == request_fingerprint(same)
    assert request_fingerprint(base) != request_fingerprint(other)
