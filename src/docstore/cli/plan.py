"""docstore plan: show which table, index or scan would serve a query."""

from __future__ import annotations

from typing import Optional

import typer

from docstore.cli import _exitcodes as ec
from docstore.cli import _store
from docstore.cli._filters import group_filter_args, parse_cli_filters
from docstore.cli._output import print_error, print_fields, print_json
from docstore.config import CollectionOptions
from docstore.error_mapping import translate
from docstore.errors import DocstoreError
from docstore.query import Query


def plan_cmd(
    table: str = typer.Argument(..., help="DynamoDB table name"),
    partition_key: str = typer.Option(..., "--partition-key", help="Table partition key field"),
    sort_key: Optional[str] = typer.Option(None, "--sort-key", help="Table sort key field"),
    filter_args: Optional[list[str]] = typer.Option(
        None, "--filter", help="PATH OP VALUE_JSON (repeatable)"
    ),
    order_by: Optional[str] = typer.Option(None, "--order-by", help="Field to order by"),
    desc: bool = typer.Option(False, "--desc", help="Descending order"),
    fields: Optional[list[str]] = typer.Option(None, "--field", help="Field to return (repeatable)"),
    allow_scans: bool = typer.Option(False, "--allow-scans", help="Permit full table scans"),
) -> None:
    """Plan a query against TABLE and print the chosen plan and native request."""
    from docstore.cli import state

    json_mode = state.json_output

    try:
        filters = parse_cli_filters(group_filter_args(filter_args))
        options = CollectionOptions(
            table_name=table,
            partition_key=partition_key,
            sort_key=sort_key,
            allow_scans=allow_scans,
        )
        query = Query(
            filters=tuple(filters),
            field_paths=tuple(fields or ()),
            order_by_field=order_by,
            order_ascending=not desc,
        )
    except (ValueError, DocstoreError) as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        store = _store.open_store(options)
    except Exception as e:
        print_error(f"Cannot create DynamoDB client: {e}")
        raise typer.Exit(ec.STORE_ERROR)

    try:
        plan = store.plan_query(query)
    except Exception as e:
        err = translate(e)
        print_error(f"{err.kind}: {err}")
        code = ec.PLAN_ERROR if err.kind == "InvalidArgument" else ec.STORE_ERROR
        raise typer.Exit(code)
    finally:
        store.close()

    data = {
        "plan": plan.label,
        "operation": plan.operation,
        "pagination_keys": list(plan.pagination_keys),
        "request": plan.request,
    }
    if json_mode:
        print_json(data)
    else:
        print_fields(data)
