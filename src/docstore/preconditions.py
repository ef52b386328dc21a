"""Conditional-expression preconditions implementing optimistic concurrency."""

from __future__ import annotations

from docstore.actions import ActionKind
from docstore.document import Document
from docstore.errors import InvalidArgumentError
from docstore.expressions import ExpressionBuilder


def revision_value(doc: Document, revision_field: str) -> str | None:
    """Return the document's revision token, or None when absent or empty."""
    value = doc.get_field(revision_field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError(
            f"Invalid revision field {revision_field} type as {type(value).__name__}, "
            "expect str type."
        )
    return value or None


def build_revision_precondition(
    doc: Document, revision_field: str, builder: ExpressionBuilder
) -> str | None:
    rev = revision_value(doc, revision_field)
    if rev is None:
        return None
    return f"{builder.name(revision_field)} = {builder.value(rev)}"


def build_precondition(
    kind: ActionKind,
    doc: Document,
    *,
    revision_field: str,
    partition_key: str,
    builder: ExpressionBuilder,
) -> str | None:
    """Return the condition expression guarding a write, or None for none.

    - CREATE: the document must not exist yet.
    - REPLACE/UPDATE: the revision must match, or without one the document must exist.
    - PUT/DELETE: the revision must match if one is given.
    - GET: never conditional.
    """
    if kind is ActionKind.CREATE:
        return f"attribute_not_exists({builder.name(partition_key)})"
    if kind in (ActionKind.REPLACE, ActionKind.UPDATE):
        condition = build_revision_precondition(doc, revision_field, builder)
        if condition is None:
            return f"attribute_exists({builder.name(partition_key)})"
        return condition
    if kind in (ActionKind.PUT, ActionKind.DELETE):
        return build_revision_precondition(doc, revision_field, builder)
    if kind is ActionKind.GET:
        return None
    raise InvalidArgumentError(f"Invalid action kind: {kind}")
