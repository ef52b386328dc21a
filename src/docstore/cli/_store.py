"""CLI helpers for building the DynamoDB client and store from CLI state."""

from __future__ import annotations

from typing import Any

from docstore.config import CollectionOptions, DocstoreConfig
from docstore.store import DynamoDocStore


def config_from_state() -> DocstoreConfig:
    """Build transport config from the global CLI options."""
    from docstore.cli import state

    return DocstoreConfig(region=state.region, endpoint_url=state.endpoint_url)


def open_client() -> Any:
    """Open a DynamoDB client using the global CLI options."""
    return DynamoDocStore._build_client(config_from_state())


def open_store(options: CollectionOptions) -> DynamoDocStore:
    """Open a store for ``options`` using the global CLI options."""
    return DynamoDocStore(options, client=open_client(), config=config_from_state())
