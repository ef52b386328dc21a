"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from docstore.cli import _store, app
from tests.conftest import GAMES
from tests.fakes import FakeDynamoClient

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_dynamo(monkeypatch):
    """Route every CLI-built DynamoDB client to one in-memory games table."""
    fake = FakeDynamoClient(GAMES)
    monkeypatch.setattr(_store, "open_client", lambda: fake)
    return fake


def invoke(runner: CliRunner, args: list[str]) -> "Result":
    """Invoke the CLI with a fixed region so no AWS configuration is needed."""
    return runner.invoke(app, ["--region", "us-east-1"] + args, catch_exceptions=False)
