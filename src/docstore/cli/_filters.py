"""CLI filter token parser: converts PATH OP VALUE_JSON triples to Filters."""

from __future__ import annotations

import json
from typing import Any

from docstore.query import Filter, FilterOp

# Map CLI operator tokens to filter operations
_OP_MAP: dict[str, FilterOp] = {
    "eq": FilterOp.EQ,
    "gt": FilterOp.GT,
    "gte": FilterOp.GE,
    "lt": FilterOp.LT,
    "lte": FilterOp.LE,
    "in": FilterOp.IN,
    "not_in": FilterOp.NOT_IN,
}


def parse_cli_filters(triples: list[tuple[str, str, str]]) -> list[Filter]:
    """Parse CLI filter triples (PATH, OP, VALUE_JSON) into Filters.

    Multiple filters are AND-combined by the query.
    """
    filters: list[Filter] = []
    for path, op_token, value_json in triples:
        op = _OP_MAP.get(op_token)
        if op is None:
            raise ValueError(
                f"Unknown filter operator '{op_token}'. "
                f"Valid operators: {', '.join(sorted(_OP_MAP.keys()))}"
            )
        try:
            value: Any = json.loads(value_json)
        except json.JSONDecodeError as e:
            raise ValueError(f"Filter value for '{path}' is not valid JSON: {value_json}") from e
        filters.append(Filter(path, op, value))
    return filters


def group_filter_args(filter_args: list[str] | None) -> list[tuple[str, str, str]]:
    """Group raw --filter values into triples.

    Accepts either repeated ``--filter PATH --filter OP --filter VALUE`` tokens
    (a multiple of three) or one ``"PATH OP VALUE_JSON"`` string per option.
    """
    if not filter_args:
        return []
    triples: list[tuple[str, str, str]] = []
    if len(filter_args) % 3 == 0 and all(len(arg.split(None, 2)) == 1 for arg in filter_args):
        for i in range(0, len(filter_args), 3):
            triples.append((filter_args[i], filter_args[i + 1], filter_args[i + 2]))
        return triples
    for arg in filter_args:
        parts = arg.split(None, 2)
        if len(parts) != 3:
            raise ValueError(f"Invalid filter (expected 'PATH OP VALUE_JSON'): {arg}")
        triples.append((parts[0], parts[1], parts[2]))
    return triples
