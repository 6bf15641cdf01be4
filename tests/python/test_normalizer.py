from datetime import UTC, datetime

import pytest

from talent_search.contracts.filter_models import FilterOperator, FilterRole, GeoDistance, RangeBound
from talent_search.exceptions import ValidationError
from talent_search.filters.normalizer import FilterNormalizer


@pytest.fixture
def normalizer(catalog) -> FilterNormalizer:
    return FilterNormalizer(catalog)


def test_multiple_values_become_in_and_open_range(normalizer) -> None:
    criteria = normalizer.normalize({"skills": ["python", "go"], "yearsExperience": "3.."})

    skills, years = criteria
    assert skills.operator is FilterOperator.IN
    assert skills.values == ("python", "go")
    assert skills.role is FilterRole.MUST

    assert years.operator is FilterOperator.RANGE
    assert years.values == (RangeBound(value=3, inclusive=True), None)


def test_single_value_is_eq_and_duplicates_collapse(normalizer) -> None:
    assert normalizer.normalize_entry("skills", ["rust", "rust"]).operator is FilterOperator.EQ


def test_role_prefixes(normalizer) -> None:
    assert normalizer.normalize_entry("-skills", "php").role is FilterRole.MUST_NOT
    assert normalizer.normalize_entry("!skills", "php").role is FilterRole.MUST_NOT
    assert normalizer.normalize_entry("~skills", "php").role is FilterRole.SHOULD


def test_bracket_range_bounds_keep_inclusivity(normalizer) -> None:
    item = normalizer.normalize_entry("salary", "(1000.5,2000]")

    lower, upper = item.values
    assert lower == RangeBound(value=1000.5, inclusive=False)
    assert upper == RangeBound(value=2000.0, inclusive=True)


def test_date_range_is_parsed_as_utc(normalizer) -> None:
    item = normalizer.normalize_entry("updated_at", "2024-01-01..2024-02-01T00:00:00+09:00")

    lower, upper = item.values
    assert lower.value == datetime(2024, 1, 1, tzinfo=UTC)
    assert upper.value.utcoffset().total_seconds() == 9 * 3600


def test_geo_token_converts_units(normalizer) -> None:
    item = normalizer.normalize_entry("location", "37.5,127.0,10km")

    assert item.operator is FilterOperator.GEO_WITHIN
    assert item.values == (GeoDistance(lat=37.5, lon=127.0, distance_m=10_000.0),)


def test_star_means_exists(normalizer) -> None:
    item = normalizer.normalize_entry("email", "*")

    assert item.operator is FilterOperator.EXISTS
    assert item.values == ()


def test_boolean_tokens(normalizer) -> None:
    assert normalizer.normalize_entry("remote", "yes").values == (True,)
    with pytest.raises(ValidationError, match="불리언 형식이 아닙니다"):
        normalizer.normalize_entry("remote", "maybe")


def test_nested_fields_share_scope_and_groups_split_it(normalizer) -> None:
    company = normalizer.normalize_entry("experience.company", "acme")
    title = normalizer.normalize_entry("experience.title@second", "cto")

    assert company.nested_scope == "experience"
    assert title.nested_scope == "experience@second"


def test_group_on_flat_field_is_rejected(normalizer) -> None:
    with pytest.raises(ValidationError, match="@group") as exc_info:
        normalizer.normalize_entry("skills@a", "python")
    assert exc_info.value.field == "skills"


def test_unknown_field_is_rejected_with_field_name(normalizer) -> None:
    with pytest.raises(ValidationError, match="알 수 없는 필드") as exc_info:
        normalizer.normalize({"favouriteColour": "blue"})
    assert exc_info.value.field == "favouriteColour"


def test_type_mismatch_is_rejected(normalizer) -> None:
    with pytest.raises(ValidationError, match="정수 형식이 아닙니다"):
        normalizer.normalize_entry("yearsExperience", "many")


def test_inverted_and_empty_ranges_are_rejected(normalizer) -> None:
    with pytest.raises(ValidationError, match="하한이 상한보다 큽니다"):
        normalizer.normalize_entry("yearsExperience", "10..3")
    with pytest.raises(ValidationError, match="최소 한쪽 경계"):
        normalizer.normalize_entry("yearsExperience", "..")


def test_empty_values_are_rejected(normalizer) -> None:
    with pytest.raises(ValidationError, match="필터 값이 비어 있습니다"):
        normalizer.normalize_entry("skills", ["", "  "])


def test_range_cannot_be_mixed_with_plain_values(normalizer) -> None:
    with pytest.raises(ValidationError, match="범위 조건은 다른 값과"):
        normalizer.normalize_entry("yearsExperience", ["3..5", "7"])


def test_contradicting_must_and_must_not_is_rejected(normalizer) -> None:
    with pytest.raises(ValidationError, match="MUST와 MUST_NOT") as exc_info:
        normalizer.normalize({"skills": ["python", "go"], "-skills": ["go", "python"]})
    assert exc_info.value.field == "skills"


def test_out_of_range_coordinates_are_rejected(normalizer) -> None:
    with pytest.raises(ValidationError, match="좌표 값이 범위를 벗어났습니다"):
        normalizer.normalize_entry("location", "95,10,1km")


@pytest.mark.parametrize("raw", ["1_000", "١٢", "３"])
def test_integers_accept_only_ascii_digits(normalizer, raw) -> None:
    with pytest.raises(ValidationError, match="정수 형식이 아닙니다") as exc_info:
        normalizer.normalize_entry("yearsExperience", raw)
    assert exc_info.value.field == "yearsExperience"


def test_signed_integers_are_accepted(normalizer) -> None:
    criteria = normalizer.normalize_entry("yearsExperience", "+4")
    assert criteria.values == (4,)
