"""Tests for CLI filter parsing."""

import pytest

from docstore import Filter, FilterOp, InvalidArgumentError
from docstore.cli._filters import group_filter_args, parse_cli_filters


def test_parse_empty():
    assert parse_cli_filters([]) == []


def test_parse_eq_string():
    assert parse_cli_filters([("Player", "eq", '"ann"')]) == [Filter("Player", FilterOp.EQ, "ann")]


def test_parse_numeric_comparison():
    (f,) = parse_cli_filters([("Score", "gte", "10")])
    assert f.op is FilterOp.GE
    assert f.value == 10


def test_parse_in_list():
    (f,) = parse_cli_filters([("Tier", "not_in", '["gold", "silver"]')])
    assert f.op is FilterOp.NOT_IN
    assert f.value == ("gold", "silver")


def test_unknown_operator():
    with pytest.raises(ValueError, match="Unknown filter operator 'ne'"):
        parse_cli_filters([("Score", "ne", "1")])


def test_invalid_json_value():
    with pytest.raises(ValueError, match="not valid JSON"):
        parse_cli_filters([("Player", "eq", "ann")])


def test_invalid_filter_value_type():
    with pytest.raises(InvalidArgumentError):
        parse_cli_filters([("Player", "eq", "true")])


def test_group_separate_tokens():
    assert group_filter_args(["Player", "eq", '"ann"']) == [("Player", "eq", '"ann"')]


def test_group_space_separated_strings():
    assert group_filter_args(['Player eq "ann"', "Score gt 3"]) == [
        ("Player", "eq", '"ann"'),
        ("Score", "gt", "3"),
    ]


def test_group_rejects_incomplete_filter():
    with pytest.raises(ValueError, match="expected 'PATH OP VALUE_JSON'"):
        group_filter_args(["Player eq"])
