"""Tests for collection options and client config."""

from __future__ import annotations

import pytest

from docstore import CollectionOptions, DEFAULT_REVISION_FIELD, InvalidArgumentError
from docstore.config import DocstoreConfig


def test_defaults():
    options = CollectionOptions(table_name="t", partition_key="id")
    assert options.sort_key is None
    assert options.allow_scans is False
    assert options.effective_revision_field == DEFAULT_REVISION_FIELD


def test_custom_revision_field():
    options = CollectionOptions(table_name="t", partition_key="id", revision_field="rev")
    assert options.effective_revision_field == "rev"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"table_name": "", "partition_key": "id"},
        {"table_name": "t", "partition_key": ""},
        {"table_name": "t", "partition_key": "id", "sort_key": ""},
        {"table_name": "t", "partition_key": "id", "sort_key": "id"},
        {"table_name": "t", "partition_key": "id", "revision_field": ""},
        {"table_name": "t", "partition_key": "id", "max_outstanding_action_rpcs": -1},
    ],
)
def test_invalid_options_rejected(kwargs):
    with pytest.raises(InvalidArgumentError):
        CollectionOptions(**kwargs)


def test_config_from_env(monkeypatch):
    monkeypatch.delenv("DOCSTORE_REGION", raising=False)
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    monkeypatch.setenv("DOCSTORE_ENDPOINT_URL", "http://localhost:8000")
    config = DocstoreConfig.from_env()
    assert config.region == "eu-west-1"
    assert config.endpoint_url == "http://localhost:8000"

    monkeypatch.setenv("DOCSTORE_REGION", "us-west-2")
    assert DocstoreConfig.from_env().region == "us-west-2"
