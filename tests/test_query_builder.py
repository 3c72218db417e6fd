import pytest

from bulktagger.core.models import FilterCriteria
from bulktagger.core.query_builder import build_product_query


@pytest.mark.parametrize(
    "criteria",
    [
        FilterCriteria(),
        FilterCriteria(keyword="", product_type="", collection_handle=""),
        FilterCriteria(keyword="   ", product_type="\t", collection_handle="\n "),
        FilterCriteria(keyword=None, product_type=None, collection_handle=None),
    ],
)
def test_blank_criteria_yield_no_query(criteria):
    assert build_product_query(criteria) is None


def test_keyword_only():
    assert build_product_query(FilterCriteria(keyword="  shirt ")) == "title:*shirt*"


def test_keyword_quotes_are_removed():
    assert build_product_query(FilterCriteria(keyword="men's \"classic\" tee")) == "title:*mens classic tee*"


def test_keyword_of_only_quotes_is_ignored():
    assert build_product_query(FilterCriteria(keyword="'\"'")) is None


def test_exact_match_fields_escape_single_quotes():
    query = build_product_query(FilterCriteria(product_type="Kid's Wear", collection_handle="o'neill"))
    assert query == "product_type:'Kid\\'s Wear' AND collection:'o\\'neill'"


def test_all_fields_joined_with_and_in_fixed_order():
    query = build_product_query(
        FilterCriteria(keyword="shirt", product_type="Tops", collection_handle="summer-sale")
    )
    assert query == "title:*shirt* AND product_type:'Tops' AND collection:'summer-sale'"


def test_unicode_is_preserved():
    assert build_product_query(FilterCriteria(keyword="café crème")) == "title:*café crème*"
