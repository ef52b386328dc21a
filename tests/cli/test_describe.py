"""Tests for docstore describe."""

import json

from tests.cli.conftest import invoke


def test_describe_text(runner, fake_dynamo):
    result = invoke(runner, ["describe", "games"])
    assert result.exit_code == 0
    assert "Partition key: Player" in result.output
    assert "Sort key:      Game" in result.output
    assert "ByScore" in result.output
    assert "GlobalLeaderboard" in result.output


def test_describe_json(runner, fake_dynamo):
    result = invoke(runner, ["--json", "describe", "games"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["partition_key"] == "Player"
    assert [ix["name"] for ix in data["local_indexes"]] == ["ByScore"]
    by_time = next(ix for ix in data["global_indexes"] if ix["name"] == "ByTime")
    assert by_time["projection"] == "INCLUDE"
    assert by_time["non_key_attributes"] == ["Score"]


def test_describe_missing_table(runner, fake_dynamo):
    result = invoke(runner, ["describe", "nope"])
    assert result.exit_code == 3
    assert "ResourceNotFound" in result.output


def test_version(runner):
    result = invoke(runner, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("docstore ")
