"""Translation of DynamoDB/botocore errors into the docstore taxonomy."""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError

from docstore.errors import (
    DocstoreError,
    FailedPreconditionError,
    InvalidArgumentError,
    ResourceConflictError,
    ResourceExhaustedError,
    ResourceNotFoundError,
    TransactionFailedError,
    UnknownError,
)

# https://docs.aws.amazon.com/amazondynamodb/latest/APIReference/CommonErrors.html
ERROR_MAPPING: dict[str, type[DocstoreError]] = {
    "AccessDeniedException": InvalidArgumentError,
    "UnrecognizedClientException": InvalidArgumentError,
    "ValidationException": InvalidArgumentError,
    "InternalServerError": UnknownError,
    "ServiceUnavailable": UnknownError,
    "ProvisionedThroughputExceededException": ResourceExhaustedError,
    "RequestLimitExceeded": ResourceExhaustedError,
    "ThrottlingException": ResourceExhaustedError,
    "LimitExceededException": ResourceExhaustedError,
    "ItemCollectionSizeLimitExceededException": ResourceExhaustedError,
    "ResourceNotFoundException": ResourceNotFoundError,
    "ConditionalCheckFailedException": FailedPreconditionError,
    "TransactionConflictException": ResourceConflictError,
    "TransactionCanceledException": TransactionFailedError,
    "TransactionInProgressException": TransactionFailedError,
}


def error_code(err: BaseException) -> str:
    """Return the provider error code of a ClientError, or an empty string."""
    if isinstance(err, ClientError):
        return str(err.response.get("Error", {}).get("Code", ""))
    return ""


def classify(err: BaseException) -> type[DocstoreError]:
    """Return the docstore error class for an exception.

    Errors that are already docstore errors keep their own class.
    """
    if isinstance(err, DocstoreError):
        return type(err)
    if isinstance(err, ClientError):
        return ERROR_MAPPING.get(error_code(err), UnknownError)
    if isinstance(err, (ParamValidationError, ValueError, TypeError)):
        return InvalidArgumentError
    if isinstance(err, BotoCoreError):
        return UnknownError
    return UnknownError


def translate(err: BaseException) -> DocstoreError:
    """Return a docstore error instance for an exception (the same object if already typed)."""
    if isinstance(err, DocstoreError):
        return err
    cls = classify(err)
    return cls(str(err), cause=err)
