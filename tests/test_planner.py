"""Tests for query planning: queryable selection and native request building."""

from __future__ import annotations

import pytest

from docstore import CollectionOptions, Filter, FilterOp, InvalidArgumentError, Query
from docstore.planner import SCAN, QueryPlanner, Queryable
from docstore.schema import TableSchema
from tests.fakes import index_description, table_description


def _planner(options, schema):
    return QueryPlanner(options, schema)


def _q(*filters, **kwargs):
    return Query(filters=tuple(filters), **kwargs)


# --- pk-only table scenarios ---


@pytest.fixture
def pk_only():
    options = CollectionOptions(table_name="things", partition_key="pk", allow_scans=True)
    schema = TableSchema.from_description(table_description("things", "pk"))
    return _planner(options, schema)


def test_pk_only_equality_uses_table(pk_only):
    plan = pk_only.plan(_q(("pk", "=", "a")))
    assert plan.label == "Table"
    assert plan.operation == "query"
    assert plan.request["KeyConditionExpression"] == "#n0 = :v0"
    assert plan.request["ExpressionAttributeNames"] == {"#n0": "pk"}
    assert plan.request["ExpressionAttributeValues"] == {":v0": {"S": "a"}}
    assert "FilterExpression" not in plan.request
    assert plan.pagination_keys == ("pk",)


def test_pk_only_non_key_filter_scans(pk_only):
    plan = pk_only.plan(_q(("color", "=", "red")))
    assert plan.label == "Scan"
    assert plan.operation == "scan"
    assert plan.request["FilterExpression"] == "#n0 = :v0"
    assert "KeyConditionExpression" not in plan.request
    assert pk_only.query_plan(_q(("color", "=", "red"))) == "Scan"


def test_scan_rejected_when_scans_disabled():
    options = CollectionOptions(table_name="things", partition_key="pk")
    planner = _planner(options, TableSchema.from_description(table_description("things", "pk")))
    with pytest.raises(InvalidArgumentError, match="allow_scans"):
        planner.plan(_q(("color", "=", "red")))


def test_scan_with_ordering_requirement_fails(pk_only):
    with pytest.raises(InvalidArgumentError, match="ordering requirement"):
        pk_only.plan(_q(("color", ">", "a"), order_by_field="color"))


def test_scan_without_filters(pk_only):
    plan = pk_only.plan(Query(limit=5))
    assert plan.label == "Scan"
    assert plan.request == {"TableName": "things", "Limit": 5}


# --- games table: LSI, GSIs with full and partial projections ---


def test_full_table_key_match_uses_table(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(_q(("Player", "=", "ann"), ("Game", ">", "a")))
    assert plan.label == "Table"
    assert plan.request["KeyConditionExpression"] == "#n0 = :v0 AND #n1 > :v1"
    assert plan.pagination_keys == ("Player", "Game")


@pytest.mark.parametrize("sort_op", ["=", "<", ">", "<=", ">="])
def test_table_chosen_for_any_sort_key_comparison(games_options, games_schema, sort_op):
    planner = _planner(games_options, games_schema)
    query = _q(("Player", "=", "ann"), ("Game", sort_op, "chess"), ("Score", ">", 3))
    assert planner.best_queryable(query) == Queryable(None, planner.table_key)


def test_local_index_on_its_sort_key(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(_q(("Player", "=", "ann"), ("Score", ">", 10)))
    assert plan.label == "Index ByScore"
    assert plan.request["IndexName"] == "ByScore"
    assert plan.request["KeyConditionExpression"] == "#n0 = :v0 AND #n1 > :v1"
    assert plan.pagination_keys == ("Player", "Game", "Score")


def test_local_index_ordering_descending(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(
        _q(("Player", "=", "ann"), ("Score", ">", 0), order_by_field="Score", order_ascending=False)
    )
    assert plan.label == "Index ByScore"
    assert plan.request["ScanIndexForward"] is False


def test_global_index_with_sort_key(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(_q(("Game", "=", "chess"), ("Score", ">=", 100)))
    assert plan.label == "Index GlobalLeaderboard"
    assert plan.pagination_keys == ("Player", "Game", "Score")


def test_partial_projection_index_used_when_fields_covered(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    query = _q(("Game", "=", "chess"), ("Time", "<", "2024"), field_paths=("Player", "Score"))
    plan = planner.plan(query)
    assert plan.label == "Index ByTime"
    # Pagination keys are appended to the projection.
    projected = {
        plan.request["ExpressionAttributeNames"][alias]
        for alias in plan.request["ProjectionExpression"].split(",")
    }
    assert projected == {"Player", "Score", "Game", "Time"}


def test_partial_projection_index_skipped_for_uncovered_fields(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    query = _q(("Game", "=", "chess"), ("Time", "<", "2024"), field_paths=("Secret",))
    # ByTime does not project Secret; the best remaining match is partition-only.
    assert planner.query_plan(query) == "Index GlobalLeaderboard"


def test_partial_projection_index_skipped_without_field_list(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    query = _q(("Game", "=", "chess"), ("Time", "<", "2024"))
    assert planner.query_plan(query) == "Index GlobalLeaderboard"


def test_uncovered_fields_fall_back_to_scan_never_under_projecting_index():
    schema = TableSchema.from_description(
        table_description(
            "events",
            "id",
            global_indexes=[
                index_description(
                    "ByKind", "kind", "at", projection="INCLUDE", non_key_attributes=["size"]
                )
            ],
        )
    )
    query = _q(("kind", "=", "click"), ("at", ">", 5), field_paths=("payload",))

    allowed = CollectionOptions(table_name="events", partition_key="id", allow_scans=True)
    assert _planner(allowed, schema).query_plan(query) == "Scan"

    forbidden = CollectionOptions(table_name="events", partition_key="id")
    with pytest.raises(InvalidArgumentError):
        _planner(forbidden, schema).plan(query)

    covered = _q(("kind", "=", "click"), ("at", ">", 5), field_paths=("size", "id"))
    assert _planner(forbidden, schema).query_plan(covered) == "Index ByKind"


def test_partition_only_table_match(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(_q(("Player", "=", "ann"), ("Color", "=", "red")))
    assert plan.label == "Table"
    assert plan.request["KeyConditionExpression"] == "#n0 = :v0"
    assert plan.request["FilterExpression"] == "#n1 = :v1"


def test_partition_only_global_index_without_sort_key(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    assert planner.query_plan(_q(("Level", "=", 3))) == "Index ByLevel"


def test_ordering_on_non_sort_key_fails(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    query = _q(("Player", "=", "ann"), ("Color", "=", "red"), order_by_field="Color")
    with pytest.raises(InvalidArgumentError, match="ordering requirement"):
        planner.plan(query)


def test_ordering_on_table_sort_key(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    query = _q(("Player", "=", "ann"), ("Game", ">", ""), order_by_field="Game", order_ascending=False)
    plan = planner.plan(query)
    assert plan.label == "Table"
    assert plan.request["ScanIndexForward"] is False


def test_scan_fallback(games_schema):
    options = CollectionOptions(
        table_name="games", partition_key="Player", sort_key="Game", allow_scans=True
    )
    planner = _planner(options, games_schema)
    assert planner.best_queryable(_q(("Color", "=", "red"))) is SCAN


def test_first_eligible_index_in_schema_order():
    schema = TableSchema.from_description(
        table_description(
            "t",
            "id",
            global_indexes=[
                index_description("First", "group"),
                index_description("Second", "group"),
            ],
        )
    )
    options = CollectionOptions(table_name="t", partition_key="id")
    assert _planner(options, schema).query_plan(_q(("group", "=", "g"))) == "Index First"


# --- expression rendering ---


def test_in_and_not_in_filters_render(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(
        _q(
            ("Player", "=", "ann"),
            Filter("Color", FilterOp.IN, ["red", "blue"]),
            Filter("Shape", FilterOp.NOT_IN, ("square",)),
        )
    )
    assert plan.request["FilterExpression"] == (
        "#n1 IN (:v1, :v2) AND NOT (#n2 IN (:v3))"
    )
    assert plan.request["ExpressionAttributeValues"][":v2"] == {"S": "blue"}


def test_in_filter_on_key_field_rejected(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    query = _q(("Player", "=", "ann"), ("Game", "in", ["a", "b"]))
    with pytest.raises(InvalidArgumentError, match="Invalid filter operation on key"):
        planner.plan(query)


def test_nested_filter_paths_use_alias_chains(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(_q(("Player", "=", "ann"), ("stats.wins", ">", 2)))
    assert plan.request["FilterExpression"] == "#n1.#n2 > :v1"
    assert plan.request["ExpressionAttributeNames"] == {
        "#n0": "Player",
        "#n1": "stats",
        "#n2": "wins",
    }


def test_limit_is_passed_to_the_request(games_options, games_schema):
    planner = _planner(games_options, games_schema)
    plan = planner.plan(_q(("Player", "=", "ann"), limit=7))
    assert plan.request["Limit"] == 7
