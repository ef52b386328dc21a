"""Docstore: portable document collections over DynamoDB."""

__version__ = "0.1.0"

from docstore.actions import Action, ActionKind, ActionList, Increment
from docstore.client import DocStoreClient
from docstore.config import DEFAULT_REVISION_FIELD, CollectionOptions, DocstoreConfig
from docstore.document import Document
from docstore.errors import (
    DocstoreError,
    FailedPreconditionError,
    InvalidArgumentError,
    NoSuchElementError,
    ResourceAlreadyExistsError,
    ResourceConflictError,
    ResourceExhaustedError,
    ResourceNotFoundError,
    TransactionFailedError,
    UnknownError,
)
from docstore.iterator import DocumentIterator
from docstore.pagination import PaginationToken
from docstore.query import Filter, FilterOp, Query
from docstore.store import DocumentKey, DynamoDocStore

__all__ = [
    "__version__",
    "Action",
    "ActionKind",
    "ActionList",
    "Increment",
    "DocStoreClient",
    "DynamoDocStore",
    "DocumentKey",
    "CollectionOptions",
    "DocstoreConfig",
    "DEFAULT_REVISION_FIELD",
    "Document",
    "DocumentIterator",
    "PaginationToken",
    "Filter",
    "FilterOp",
    "Query",
    "DocstoreError",
    "InvalidArgumentError",
    "ResourceNotFoundError",
    "ResourceAlreadyExistsError",
    "ResourceExhaustedError",
    "ResourceConflictError",
    "FailedPreconditionError",
    "TransactionFailedError",
    "UnknownError",
    "NoSuchElementError",
]
