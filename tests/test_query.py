"""Tests for Filter and Query validation."""

from __future__ import annotations

import pytest

from docstore import Filter, FilterOp, InvalidArgumentError, PaginationToken, Query


def test_filter_accepts_operator_strings():
    f = Filter("age", ">=", 3)
    assert f.op is FilterOp.GE


def test_filter_rejects_unknown_operator():
    with pytest.raises(InvalidArgumentError, match="Invalid filter operation"):
        Filter("age", "!=", 3)


@pytest.mark.parametrize("value", [True, None, [1], {"a": 1}])
def test_comparison_requires_string_or_number(value):
    with pytest.raises(InvalidArgumentError):
        Filter("age", "=", value)


def test_in_filter_values_become_tuple():
    f = Filter("tier", FilterOp.IN, ["gold", "silver"])
    assert f.value == ("gold", "silver")


@pytest.mark.parametrize("value", ["gold", [], [True]])
def test_in_filter_requires_non_empty_scalar_collection(value):
    with pytest.raises(InvalidArgumentError):
        Filter("tier", "in", value)


@pytest.mark.parametrize("path", ["", "a..b", ".a"])
def test_filter_rejects_bad_paths(path):
    with pytest.raises(InvalidArgumentError):
        Filter(path, "=", 1)


def test_top_level_field():
    assert Filter("stats.wins", "=", 1).top_level_field == "stats"


def test_query_coerces_tuples_to_filters():
    q = Query(filters=(("a", "=", 1),))
    assert q.filters == (Filter("a", FilterOp.EQ, 1),)
    assert q.has_equality_filter("a")
    assert q.has_filter("a")
    assert not q.has_filter(None)


def test_offset_and_limit_must_be_non_negative():
    with pytest.raises(InvalidArgumentError):
        Query(offset=-1)
    with pytest.raises(InvalidArgumentError):
        Query(limit=-1)


def test_offset_and_pagination_token_are_exclusive():
    with pytest.raises(InvalidArgumentError, match="both an offset and a pagination token"):
        Query(offset=2, pagination_token=PaginationToken("Table", None))


def test_pagination_token_string_is_decoded():
    token = PaginationToken("Table", {"id": {"S": "a"}})
    q = Query(pagination_token=str(token))
    assert q.pagination_token == token


def test_order_by_must_appear_in_filters():
    with pytest.raises(InvalidArgumentError, match="must appear in a Where clause"):
        Query(filters=(("a", "=", 1),), order_by_field="b")


def test_order_by_without_filters_is_allowed():
    q = Query(order_by_field="b")
    assert q.ordering_consistent("b")
    assert not q.ordering_consistent("c")
    assert Query().ordering_consistent(None)
