import pytest

from talent_search.exceptions import SerializationError
from talent_search.ranking.ranker import RankedHit
from talent_search.response.shaper import ResponseShaper, build_projection_tree

WHITELIST = {
    "candidates:search": ["id", "name", "experience.company"],
    "candidates:contact": ["email"],
}


def _hit(**source) -> RankedHit:
    return RankedHit(doc_id=source.get("id", "x"), score=1.0, base_score=1.0, source=source)


def test_fields_outside_whitelist_are_dropped() -> None:
    shaper = ResponseShaper(WHITELIST)
    hit = _hit(id="a", name="Kim", ssn="900101-1234567", email="kim@example.com")

    (summary,) = shaper.shape([hit], {"candidates:search"})

    assert summary.model_dump() == {"id": "a", "name": "Kim"}


def test_union_of_scope_whitelists_is_applied() -> None:
    shaper = ResponseShaper(WHITELIST)
    hit = _hit(id="a", name="Kim", email="kim@example.com")

    (summary,) = shaper.shape([hit], {"candidates:search", "candidates:contact"})

    assert summary.model_dump() == {"id": "a", "name": "Kim", "email": "kim@example.com"}


def test_unknown_scopes_fail_closed() -> None:
    shaper = ResponseShaper(WHITELIST)

    (summary,) = shaper.shape([_hit(id="a", name="Kim")], {"admin"})

    assert summary.model_dump() == {}


def test_dotted_entries_project_inside_sub_documents() -> None:
    shaper = ResponseShaper(WHITELIST)
    hit = _hit(
        id="a",
        experience=[
            {"company": "acme", "salary": 100},
            {"company": "globex", "salary": 200},
            "malformed",
        ],
    )

    (summary,) = shaper.shape([hit], {"candidates:search"})

    assert summary.model_dump()["experience"] == [{"company": "acme"}, {"company": "globex"}]


def test_whole_field_entry_wins_over_dotted_entry() -> None:
    assert build_projection_tree(["experience.company", "experience"]) == {"experience": None}


def test_unserializable_values_raise_serialization_error() -> None:
    shaper = ResponseShaper({"s": ["blob"]})

    with pytest.raises(SerializationError, match="doc_id=a"):
        shaper.shape([_hit(id="a", blob=object())], {"s"})
