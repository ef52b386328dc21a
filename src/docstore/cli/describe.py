"""docstore describe: show a table's key schema and secondary indexes."""

from __future__ import annotations

import typer

from docstore.cli import _exitcodes as ec
from docstore.cli import _store
from docstore.cli._output import index_rows, print_error, print_fields, print_index_table, print_json
from docstore.error_mapping import translate
from docstore.schema import TableSchema


def describe_cmd(
    table: str = typer.Argument(..., help="DynamoDB table name"),
) -> None:
    """Show the key schema and indexes of TABLE."""
    from docstore.cli import state

    json_mode = state.json_output

    try:
        client = _store.open_client()
    except Exception as e:
        print_error(f"Cannot create DynamoDB client: {e}")
        raise typer.Exit(ec.STORE_ERROR)

    try:
        resp = client.describe_table(TableName=table)
        schema = TableSchema.from_description(resp["Table"])
    except Exception as e:
        err = translate(e)
        print_error(f"{err.kind}: {err}")
        raise typer.Exit(ec.STORE_ERROR)

    data = schema.to_dict()
    if json_mode:
        print_json(data)
        return

    print_fields(
        {
            "Table": schema.table_name,
            "Partition key": schema.key.partition_key,
            "Sort key": schema.key.sort_key,
        }
    )
    rows = index_rows(data)
    if rows:
        print()
        print_index_table(rows)
