"""Configuration for docstore collections and the DynamoDB client."""

from __future__ import annotations

import os
from dataclasses import dataclass

from docstore.errors import InvalidArgumentError

DEFAULT_REVISION_FIELD = "DocstoreRevision"


@dataclass
class DocstoreConfig:
    """Client and transport settings."""

    region: str | None = None
    endpoint_url: str | None = None
    request_timeout_s: float = 10.0
    max_attempts: int = 5
    batch_get_max_retries: int = 5
    batch_get_backoff_s: float = 0.05

    @classmethod
    def from_env(cls) -> DocstoreConfig:
        """Build a config from DOCSTORE_* environment variables."""
        region = os.getenv("DOCSTORE_REGION") or os.getenv("AWS_REGION")
        endpoint = os.getenv("DOCSTORE_ENDPOINT_URL")
        return cls(region=region, endpoint_url=endpoint)


@dataclass(frozen=True)
class CollectionOptions:
    """Binding of a collection to a table and its key fields.

    ``max_outstanding_action_rpcs`` bounds the worker pool used for batched
    gets and non-atomic writes; 0 lets the executor pick its default size.
    """

    table_name: str
    partition_key: str
    sort_key: str | None = None
    allow_scans: bool = False
    revision_field: str | None = None
    max_outstanding_action_rpcs: int = 0

    def __post_init__(self) -> None:
        if not self.table_name:
            raise InvalidArgumentError("table_name is required")
        if not self.partition_key:
            raise InvalidArgumentError("partition_key is required")
        if self.sort_key is not None and not self.sort_key:
            raise InvalidArgumentError("sort_key must be None or a non-empty string")
        if self.sort_key == self.partition_key:
            raise InvalidArgumentError("sort_key must differ from partition_key")
        if self.max_outstanding_action_rpcs < 0:
            raise InvalidArgumentError("max_outstanding_action_rpcs must be >= 0")
        if self.revision_field is not None and not self.revision_field:
            raise InvalidArgumentError("revision_field must be None or a non-empty string")

    @property
    def effective_revision_field(self) -> str:
        return self.revision_field or DEFAULT_REVISION_FIELD
