import math
from datetime import timedelta

import pytest

from conftest import FIXED_NOW
from talent_search.backend.elastic import BackendHit, BackendPage
from talent_search.config.models import RankingConfig
from talent_search.contracts.search_models import SortMode
from talent_search.query.tree import BoolNode, CompiledQuery
from talent_search.ranking.cursor import CursorKey
from talent_search.ranking.ranker import RankingEngine, lookup, paginate

COMPILED = CompiledQuery(
    root=BoolNode(),
    named_fields=(("c0", ("skills",)), ("g1", ("experience.company", "experience.years"))),
)


def _hit(doc_id: str, score: float, matched=(), **source) -> BackendHit:
    return BackendHit(doc_id=doc_id, score=score, source={"id": doc_id, **source}, matched_queries=tuple(matched))


def _days_ago(days: float) -> str:
    return (FIXED_NOW - timedelta(days=days)).isoformat()


@pytest.fixture
def ranking() -> RankingEngine:
    return RankingEngine(RankingConfig(half_life_days=10.0))


def test_relevance_orders_by_score_then_id(ranking) -> None:
    page = BackendPage(hits=[_hit("b", 1.0), _hit("c", 2.0), _hit("a", 1.0)])

    ranked = ranking.rank(page, sort=SortMode.RELEVANCE, boosts={}, compiled=COMPILED, reference_time=FIXED_NOW)

    assert [hit.doc_id for hit in ranked] == ["c", "a", "b"]
    assert [hit.score for hit in ranked] == [2.0, 1.0, 1.0]


def test_duplicate_ids_keep_first_occurrence(ranking) -> None:
    page = BackendPage(hits=[_hit("a", 1.0, name="first"), _hit("a", 5.0, name="second")])

    ranked = ranking.rank(page, sort=SortMode.RELEVANCE, boosts={}, compiled=COMPILED, reference_time=FIXED_NOW)

    assert len(ranked) == 1
    assert ranked[0].source["name"] == "first"


def test_boosts_add_weight_per_matched_criterion(ranking) -> None:
    page = BackendPage(
        hits=[
            _hit("a", 1.0, matched=["c0"]),
            _hit("b", 1.5),
            _hit("c", 1.0, matched=["c0", "g1"]),
        ]
    )

    ranked = ranking.rank(
        page,
        sort=SortMode.RELEVANCE,
        boosts={"skills": 1.0, "experience.years": 0.25},
        compiled=COMPILED,
        reference_time=FIXED_NOW,
    )

    assert [(hit.doc_id, hit.score) for hit in ranked] == [("c", 2.25), ("a", 2.0), ("b", 1.5)]


def test_recency_weight_decays_with_half_life(ranking) -> None:
    page = BackendPage(
        hits=[
            _hit("old", 1.0, updated_at=_days_ago(20)),
            _hit("new", 1.0, updated_at=_days_ago(0)),
            _hit("future", 1.0, updated_at=_days_ago(-5)),
            _hit("missing", 1.0),
        ]
    )

    ranked = ranking.rank(page, sort=SortMode.RECENCY, boosts={}, compiled=COMPILED, reference_time=FIXED_NOW)
    scores = {hit.doc_id: hit.score for hit in ranked}

    assert scores["new"] == pytest.approx(1.0)
    assert scores["future"] == pytest.approx(1.0)
    assert scores["old"] == pytest.approx(math.exp(-2.0))
    assert scores["missing"] == 0.0
    assert [hit.doc_id for hit in ranked] == ["future", "new", "old", "missing"]


def test_recency_weight_is_ignored_for_relevance(ranking) -> None:
    page = BackendPage(hits=[_hit("old", 1.0, updated_at=_days_ago(365))])

    ranked = ranking.rank(page, sort=SortMode.RELEVANCE, boosts={}, compiled=COMPILED, reference_time=FIXED_NOW)

    assert ranked[0].score == 1.0


def test_epoch_millis_dates_are_supported(ranking) -> None:
    millis = int((FIXED_NOW - timedelta(days=10)).timestamp() * 1000)
    page = BackendPage(hits=[_hit("a", 2.0, updated_at=millis)])

    ranked = ranking.rank(page, sort=SortMode.CUSTOM_BOOST, boosts={}, compiled=COMPILED, reference_time=FIXED_NOW)

    assert ranked[0].score == pytest.approx(2.0 * math.exp(-1.0))
    assert ranked[0].base_score == 2.0


def test_paginate_returns_hits_strictly_after_cursor(ranking) -> None:
    page = BackendPage(hits=[_hit(doc_id, 1.0) for doc_id in "abcde"])
    ranked = ranking.rank(page, sort=SortMode.RELEVANCE, boosts={}, compiled=COMPILED, reference_time=FIXED_NOW)

    first, more = paginate(ranked, after=None, page_size=2)
    second, more_again = paginate(ranked, after=first[-1].key, page_size=2)
    last, no_more = paginate(ranked, after=CursorKey(score=1.0, doc_id="d"), page_size=2)

    assert [hit.doc_id for hit in first] == ["a", "b"] and more
    assert [hit.doc_id for hit in second] == ["c", "d"] and more_again
    assert [hit.doc_id for hit in last] == ["e"] and not no_more


def test_lookup_follows_dotted_paths() -> None:
    assert lookup({"profile": {"updated_at": "x"}}, "profile.updated_at") == "x"
    assert lookup({"profile": "flat"}, "profile.updated_at") is None
