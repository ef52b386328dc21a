"""Rendering of table descriptions and query plans for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any

INDEX_HEADERS = ["Scope", "Index", "Partition key", "Sort key", "Projection", "Attributes"]


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def print_fields(data: dict[str, Any]) -> None:
    """Print ``label: value`` lines with the values aligned.

    Missing values print as ``-``; dicts and lists print as compact JSON.
    """
    width = max((len(label) for label in data), default=0) + 1
    for label, value in data.items():
        if value is None:
            value = "-"
        elif isinstance(value, (dict, list)):
            value = json.dumps(value, default=str)
        print(f"{label + ':':<{width}} {value}")


def index_rows(schema: dict[str, Any]) -> list[list[str]]:
    """One row per secondary index of a ``TableSchema.to_dict()`` mapping, locals first."""
    rows = []
    for scope in ("local", "global"):
        for ix in schema[f"{scope}_indexes"]:
            rows.append(
                [
                    scope,
                    ix["name"],
                    ix["partition_key"],
                    ix["sort_key"] or "-",
                    ix["projection"],
                    ",".join(ix["non_key_attributes"]) or "-",
                ]
            )
    return rows


def print_index_table(rows: list[list[str]]) -> None:
    widths = [max(len(cell) for cell in column) for column in zip(INDEX_HEADERS, *rows)]
    print("  ".join(h.ljust(w) for h, w in zip(INDEX_HEADERS, widths)).rstrip())
    print("  ".join("-" * w for w in widths))
    for row in rows:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())


def print_error(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)
