"""Query planning: choose the table, an index, or a scan, and build the native request."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from docstore.config import CollectionOptions
from docstore.errors import InvalidArgumentError
from docstore.expressions import ExpressionBuilder
from docstore.query import Filter, FilterOp, Query
from docstore.schema import IndexDescription, Key, TableSchema

logger = logging.getLogger(__name__)

PLAN_SCAN = "Scan"
PLAN_TABLE = "Table"

_KEY_CONDITION_OPS = {
    FilterOp.EQ: "=",
    FilterOp.LT: "<",
    FilterOp.GT: ">",
    FilterOp.LE: "<=",
    FilterOp.GE: ">=",
}


@dataclass(frozen=True)
class Queryable:
    """What serves a query: the base table (``index_name`` None), an index, or a scan.

    Both fields None means no table or index can serve the query.
    """

    index_name: str | None
    key: Key | None


SCAN = Queryable(None, None)


@dataclass(frozen=True)
class QueryPlan:
    """A planned read: the native Scan or Query request plus its pagination keys."""

    operation: str  # "scan" or "query"
    request: dict[str, Any]
    queryable: Queryable
    pagination_keys: tuple[str, ...]

    @property
    def label(self) -> str:
        if self.operation == "scan":
            return PLAN_SCAN
        if self.queryable.index_name is not None:
            return f"Index {self.queryable.index_name}"
        return PLAN_TABLE


class QueryPlanner:
    """Plans queries against one table using its cached schema."""

    def __init__(self, options: CollectionOptions, schema: TableSchema) -> None:
        self._options = options
        self._schema = schema

    @property
    def table_key(self) -> Key:
        return Key(self._options.partition_key, self._options.sort_key)

    def plan(self, query: Query) -> QueryPlan:
        """Plan ``query``; raises InvalidArgumentError when only a forbidden scan would do."""
        builder = ExpressionBuilder()
        queryable = self.best_queryable(query)

        pagination_keys = [self._options.partition_key]
        if self._options.sort_key is not None:
            pagination_keys.append(self._options.sort_key)

        key = queryable.key
        if key is None:
            if query.order_by_field:
                raise InvalidArgumentError(
                    "query requires a table scan, but has an ordering requirement; "
                    "add an index or remove the order-by clause"
                )
            if not self._options.allow_scans:
                raise InvalidArgumentError(
                    "query requires a table scan; set allow_scans=True to enable"
                )
            request: dict[str, Any] = {"TableName": self._options.table_name}
            if query.limit > 0:
                request["Limit"] = query.limit
            if query.filters:
                request["FilterExpression"] = self.filters_to_condition(
                    list(query.filters), builder
                )
            self._apply_projection(request, query, pagination_keys, builder)
            builder.apply(request)
            plan = QueryPlan("scan", request, queryable, tuple(pagination_keys))
            logger.debug("planned %s on %s", plan.label, self._options.table_name)
            return plan

        for name in (key.partition_key, key.sort_key):
            if name is not None and name not in pagination_keys:
                pagination_keys.append(name)

        request = {"TableName": self._options.table_name}
        if query.limit > 0:
            request["Limit"] = query.limit

        key_conditions: list[str] = []
        non_key_filters: list[Filter] = []
        for f in query.filters:
            condition = self.to_key_condition(f, key, builder)
            if condition is not None:
                key_conditions.append(condition)
            else:
                non_key_filters.append(f)
        if key_conditions:
            request["KeyConditionExpression"] = " AND ".join(key_conditions)
        if non_key_filters:
            request["FilterExpression"] = self.filters_to_condition(non_key_filters, builder)

        self._apply_projection(request, query, pagination_keys, builder)
        if queryable.index_name is not None:
            request["IndexName"] = queryable.index_name
        if query.order_by_field and not query.order_ascending:
            request["ScanIndexForward"] = False
        builder.apply(request)

        plan = QueryPlan("query", request, queryable, tuple(pagination_keys))
        logger.debug(
            "planned %s on %s with %s", plan.label, self._options.table_name, key
        )
        return plan

    def query_plan(self, query: Query) -> str:
        return self.plan(query).label

    # --- queryable selection ---

    def best_queryable(self, query: Query) -> Queryable:
        """Find the best table or index for ``query``.

        Full key matches (partition equality plus a sort-key filter) win over
        partition-only matches, which still beat a scan. Among equally good
        indexes the first in schema order is chosen.
        """
        table_key = self.table_key

        if query.has_equality_filter(table_key.partition_key):
            if query.has_filter(table_key.sort_key) and query.ordering_consistent(
                table_key.sort_key
            ):
                return Queryable(None, table_key)

            # Local indexes share the table's partition key.
            for ix in self._schema.local_indexes:
                if (
                    query.has_filter(ix.key.sort_key)
                    and self.local_fields_included(query, ix)
                    and query.ordering_consistent(ix.key.sort_key)
                ):
                    return Queryable(ix.name, ix.key)

        for ix in self._schema.global_indexes:
            if ix.key.sort_key is None:
                continue
            if (
                query.has_equality_filter(ix.key.partition_key)
                and query.has_filter(ix.key.sort_key)
                and self.global_fields_included(query, ix)
                and query.ordering_consistent(ix.key.sort_key)
            ):
                return Queryable(ix.name, ix.key)

        # Partition-key-only matches.
        if query.has_equality_filter(table_key.partition_key) and query.ordering_consistent(
            table_key.sort_key
        ):
            return Queryable(None, table_key)

        for ix in self._schema.global_indexes:
            if (
                query.has_equality_filter(ix.key.partition_key)
                and self.global_fields_included(query, ix)
                and query.ordering_consistent(ix.key.sort_key)
            ):
                return Queryable(ix.name, ix.key)

        return SCAN

    def local_fields_included(self, query: Query, ix: IndexDescription) -> bool:
        """A local index can serve explicit field lists by fetching from the table.

        Only a query wanting every field needs the index to project ALL.
        """
        return bool(query.field_paths) or ix.projects_all

    def global_fields_included(self, query: Query, ix: IndexDescription) -> bool:
        """Report whether every field the query selects is projected into the global index."""
        if ix.projects_all:
            return True
        if not query.field_paths:
            return False
        index_fields = {self._options.partition_key, ix.key.partition_key}
        if self._options.sort_key is not None:
            index_fields.add(self._options.sort_key)
        if ix.key.sort_key is not None:
            index_fields.add(ix.key.sort_key)
        index_fields.update(ix.non_key_attributes)
        return all(fp in index_fields for fp in query.field_paths)

    # --- expression rendering ---

    def to_key_condition(self, f: Filter, key: Key, builder: ExpressionBuilder) -> str | None:
        """Render ``f`` as a key condition if it names the queryable's partition or sort key."""
        if f.field_path != key.partition_key and f.field_path != key.sort_key:
            return None
        op = _KEY_CONDITION_OPS.get(f.op)
        if op is None:
            raise InvalidArgumentError(f"Invalid filter operation on key {f.field_path}: {f.op.value}")
        return f"{builder.name(f.field_path)} {op} {builder.value(f.value)}"

    def filters_to_condition(self, filters: list[Filter], builder: ExpressionBuilder) -> str:
        if not filters:
            raise InvalidArgumentError("No filters specified")
        return " AND ".join(self.filter_to_condition(f, builder) for f in filters)

    def filter_to_condition(self, f: Filter, builder: ExpressionBuilder) -> str:
        name = builder.name(f.field_path)
        if f.op in (FilterOp.IN, FilterOp.NOT_IN):
            placeholders = ", ".join(builder.value(v) for v in f.value)
            condition = f"{name} IN ({placeholders})"
            if f.op is FilterOp.NOT_IN:
                return f"NOT ({condition})"
            return condition
        return f"{name} {_KEY_CONDITION_OPS[f.op]} {builder.value(f.value)}"

    def _apply_projection(
        self,
        request: dict[str, Any],
        query: Query,
        pagination_keys: list[str],
        builder: ExpressionBuilder,
    ) -> None:
        if not query.field_paths:
            return
        # Pagination keys must come back so a resume cursor can be built.
        paths = list(query.field_paths)
        for name in pagination_keys:
            if name not in paths:
                paths.append(name)
        request["ProjectionExpression"] = builder.projection(paths)
