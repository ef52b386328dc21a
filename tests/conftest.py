"""Shared test fixtures for docstore tests."""

from __future__ import annotations

import pytest

from docstore import CollectionOptions, DocStoreClient, DocstoreConfig
from docstore.schema import TableSchema
from tests.fakes import FakeDynamoClient, index_description, table_description

# --- Table layouts ---

GAMES = table_description(
    "games",
    "Player",
    "Game",
    local_indexes=[index_description("ByScore", "Player", "Score")],
    global_indexes=[
        index_description("GlobalLeaderboard", "Game", "Score"),
        index_description(
            "ByTime", "Game", "Time", projection="INCLUDE", non_key_attributes=["Score"]
        ),
        index_description("ByLevel", "Level"),
    ],
)

USERS = table_description("users", "id")


@pytest.fixture
def games_options():
    return CollectionOptions(table_name="games", partition_key="Player", sort_key="Game")


@pytest.fixture
def games_schema():
    return TableSchema.from_description(GAMES)


@pytest.fixture
def fake_games():
    return FakeDynamoClient(GAMES)


@pytest.fixture
def fake_users():
    return FakeDynamoClient(USERS)


@pytest.fixture
def fast_config():
    return DocstoreConfig(region="us-east-1", batch_get_max_retries=2, batch_get_backoff_s=0.0)


@pytest.fixture
def games(fake_games, games_options, fast_config):
    """A games collection over an in-memory table."""
    client = DocStoreClient(games_options, client=fake_games, config=fast_config)
    yield client
    client.close()


@pytest.fixture
def users(fake_users, fast_config):
    """A partition-key-only collection over an in-memory table."""
    client = DocStoreClient(
        CollectionOptions(table_name="users", partition_key="id", allow_scans=True),
        client=fake_users,
        config=fast_config,
    )
    yield client
    client.close()
