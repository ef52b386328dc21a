"""Docstore CLI: operator console for inspecting tables and query plans."""

from __future__ import annotations

from typing import Optional

import typer

from docstore.cli import describe, plan

app = typer.Typer(
    name="docstore",
    help="Docstore CLI: inspect DynamoDB tables and how queries against them are planned.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    region: str | None = None
    endpoint_url: str | None = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("docstore")
        except Exception:
            v = "unknown"
        print(f"docstore {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    region: Optional[str] = typer.Option(
        None,
        "--region",
        envvar=["DOCSTORE_REGION", "AWS_REGION"],
        help="AWS region of the table",
    ),
    endpoint_url: Optional[str] = typer.Option(
        None,
        "--endpoint-url",
        envvar="DOCSTORE_ENDPOINT_URL",
        help="DynamoDB endpoint override (e.g. http://localhost:8000)",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all docstore commands."""
    state.region = region
    state.endpoint_url = endpoint_url
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="describe")(describe.describe_cmd)
app.command(name="plan")(plan.plan_cmd)


def main() -> None:
    """Entry point for the docstore CLI."""
    app()
