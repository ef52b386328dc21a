"""Filter and Query value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Union

from docstore.document import split_field_path
from docstore.errors import InvalidArgumentError

if TYPE_CHECKING:
    from docstore.pagination import PaginationToken


class FilterOp(str, Enum):
    EQ = "="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    IN = "in"
    NOT_IN = "not-in"


_COMPARISONS = {FilterOp.EQ, FilterOp.LT, FilterOp.GT, FilterOp.LE, FilterOp.GE}


def _is_scalar_filter_value(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (str, int, float, Decimal))


@dataclass(frozen=True)
class Filter:
    """A single ``field_path op value`` condition.

    Multiple filters on a query are AND-combined.
    """

    field_path: str
    op: FilterOp
    value: Any

    def __post_init__(self) -> None:
        try:
            op = FilterOp(self.op)
        except ValueError:
            raise InvalidArgumentError(f"Invalid filter operation: {self.op!r}") from None
        object.__setattr__(self, "op", op)
        split_field_path(self.field_path)

        if op in _COMPARISONS:
            if not _is_scalar_filter_value(self.value):
                raise InvalidArgumentError(
                    f"Invalid filter operation: {op.value} value: {self.value!r}"
                )
            return

        if not isinstance(self.value, (list, tuple, set, frozenset)):
            raise InvalidArgumentError(
                f"Filter value is not collection type: {self.field_path}"
            )
        values = tuple(self.value)
        if not values:
            raise InvalidArgumentError(f"{op.value} filter on {self.field_path} needs values")
        for v in values:
            if not _is_scalar_filter_value(v):
                raise InvalidArgumentError(f"Invalid filter operation: {op.value} value: {v!r}")
        object.__setattr__(self, "value", values)

    @property
    def top_level_field(self) -> str:
        return self.field_path.split(".", 1)[0]


FilterLike = Union[Filter, tuple]


def _coerce_filter(f: FilterLike) -> Filter:
    if isinstance(f, Filter):
        return f
    if isinstance(f, tuple) and len(f) == 3:
        return Filter(*f)
    raise InvalidArgumentError(f"expected Filter or (path, op, value) tuple, got {f!r}")


@dataclass(frozen=True)
class Query:
    """An immutable description of a read over a collection.

    ``offset`` and ``limit`` of 0 mean "no skip" and "no limit". A query
    resumed from a ``pagination_token`` may not also carry an offset.
    """

    filters: tuple[Filter, ...] = ()
    field_paths: tuple[str, ...] = ()
    order_by_field: str | None = None
    order_ascending: bool = True
    offset: int = 0
    limit: int = 0
    pagination_token: PaginationToken | str | None = None
    before_query: Callable[[dict[str, Any]], None] | None = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(_coerce_filter(f) for f in self.filters))
        object.__setattr__(self, "field_paths", tuple(self.field_paths))
        for path in self.field_paths:
            split_field_path(path)

        if self.offset < 0:
            raise InvalidArgumentError("offset must be non-negative.")
        if self.limit < 0:
            raise InvalidArgumentError("limit must be non-negative.")
        if self.offset > 0 and self.pagination_token is not None:
            raise InvalidArgumentError("query cannot have both an offset and a pagination token.")

        if isinstance(self.pagination_token, str):
            from docstore.pagination import PaginationToken

            object.__setattr__(
                self, "pagination_token", PaginationToken.decode(self.pagination_token)
            )

        if self.order_by_field is not None:
            if not self.order_by_field:
                raise InvalidArgumentError("order_by_field must not be empty.")
            if self.filters and not any(
                f.field_path == self.order_by_field for f in self.filters
            ):
                raise InvalidArgumentError(
                    f"OrderBy field {self.order_by_field} must appear in a Where clause"
                )

    def has_filter(self, field_name: str | None) -> bool:
        """Report whether some filter mentions the top-level field."""
        if not field_name:
            return False
        return any(f.field_path == field_name for f in self.filters)

    def has_equality_filter(self, field_name: str | None) -> bool:
        if not field_name:
            return False
        return any(f.op is FilterOp.EQ and f.field_path == field_name for f in self.filters)

    def ordering_consistent(self, sort_key: str | None) -> bool:
        """Either there is no ordering requirement, or it names ``sort_key``."""
        return not self.order_by_field or self.order_by_field == sort_key
