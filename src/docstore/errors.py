"""Structured error types for docstore."""

from __future__ import annotations


class DocstoreError(Exception):
    """Base error for all docstore errors."""

    kind = "Unknown"

    def __init__(self, message: str = "", *, cause: BaseException | None = None) -> None:
        if not message and cause is not None:
            message = str(cause)
        super().__init__(message)
        self.cause = cause


class InvalidArgumentError(DocstoreError):
    """Raised for malformed queries/actions, missing key fields or disallowed scans."""

    kind = "InvalidArgument"


class ResourceNotFoundError(DocstoreError):
    """Raised when a document that must exist does not, or its revision is stale."""

    kind = "ResourceNotFound"


class ResourceAlreadyExistsError(DocstoreError):
    """Raised when a create would clobber an existing document."""

    kind = "ResourceAlreadyExists"


class ResourceExhaustedError(DocstoreError):
    """Raised on provider throttling or capacity errors."""

    kind = "ResourceExhausted"


class ResourceConflictError(DocstoreError):
    """Raised when a write conflicts with an in-flight transaction."""

    kind = "ResourceConflict"


class FailedPreconditionError(DocstoreError):
    """Raised for a conditional check failure that is not tied to an action kind."""

    kind = "FailedPrecondition"


class TransactionFailedError(DocstoreError):
    """Raised when an atomic write group is cancelled by the store."""

    kind = "TransactionFailed"


class UnknownError(DocstoreError):
    """Raised for provider errors with no known mapping."""

    kind = "Unknown"


class NoSuchElementError(LookupError):
    """Raised by DocumentIterator.next() when no document remains."""

    def __init__(self, message: str = "No more elements") -> None:
        super().__init__(message)
