"""Paged execution of planned queries and the resumable DocumentIterator."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator

from docstore.codec import decode_doc
from docstore.document import Document
from docstore.errors import NoSuchElementError
from docstore.pagination import PaginationToken
from docstore.planner import QueryPlan

logger = logging.getLogger(__name__)

NativeItem = dict[str, dict[str, Any]]


class QueryRunner:
    """Issues one page of a planned Scan or Query at a time."""

    def __init__(
        self,
        client: Any,
        plan: QueryPlan,
        before_query: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.client = client
        self.plan = plan
        self._before_query = before_query
        self._ran = False

    @property
    def pagination_keys(self) -> tuple[str, ...]:
        return self.plan.pagination_keys

    def query_plan(self) -> str:
        return self.plan.label

    def run(
        self, start_after: dict[str, Any] | None, items: list[NativeItem]
    ) -> dict[str, Any] | None:
        """Fetch one page into ``items`` and return the store's LastEvaluatedKey."""
        request = dict(self.plan.request)
        if start_after:
            request["ExclusiveStartKey"] = start_after
        if self._before_query is not None and not self._ran:
            self._before_query(request)
        self._ran = True

        if self.plan.operation == "scan":
            response = self.client.scan(**request)
        else:
            response = self.client.query(**request)
        page = response.get("Items", [])
        items.extend(page)
        last = response.get("LastEvaluatedKey") or None
        logger.debug("%s page returned %d items (more=%s)", self.plan.label, len(page), bool(last))
        return last


class DocumentIterator:
    """Single-pass cursor over the results of a query.

    Pages are fetched lazily as the caller advances. The first ``offset``
    results are skipped, and at most ``limit`` are returned when ``limit``
    is positive.
    """

    def __init__(
        self,
        runner: QueryRunner,
        *,
        offset: int = 0,
        limit: int = 0,
        pagination_token: PaginationToken | None = None,
    ) -> None:
        self._runner = runner
        self._items: list[NativeItem] = []
        self._curr = 0
        self._offset = offset
        self._limit = limit
        self._count = 0
        self._last: dict[str, Any] | None = None
        self._token = PaginationToken(
            plan=runner.query_plan(),
            exclusive_start_key=(
                pagination_token.exclusive_start_key if pagination_token is not None else None
            ),
        )
        self._stopped = False

    def run(self, start_after: dict[str, Any] | None = None) -> None:
        """Fetch the first page, starting after ``start_after`` if given."""
        self._check_open()
        self._last = self._runner.run(start_after, self._items)

    # --- public cursor API ---

    def has_next(self) -> bool:
        self._check_open()
        if self._limit_reached():
            return False
        if not self._skip_to_offset():
            return False
        return self._ensure_items_available()

    def next(self, document: Document | None = None) -> Document:
        """Decode the next result into ``document`` (a new one if omitted) and return it."""
        if not self.has_next():
            raise NoSuchElementError()
        if document is None:
            document = Document()
        item = self._items[self._curr]
        decode_doc(item, document)
        self._token.exclusive_start_key = {
            name: item[name] for name in self._runner.pagination_keys if name in item
        }
        self._curr += 1
        self._count += 1
        return document

    def stop(self) -> None:
        """Release buffered results; the iterator cannot be used afterwards."""
        self._items = []
        self._last = None
        self._stopped = True

    @property
    def pagination_token(self) -> PaginationToken:
        """Token resuming after the last returned document; exhausted once fully drained."""
        return self._token

    def query_plan(self) -> str:
        return self._runner.query_plan()

    def __iter__(self) -> Iterator[Document]:
        while self.has_next():
            yield self.next()

    def __enter__(self) -> DocumentIterator:
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    # --- internals ---

    def _check_open(self) -> None:
        if self._stopped:
            raise RuntimeError("DocumentIterator has been stopped")

    def _buffer_drained(self) -> bool:
        return self._curr >= len(self._items)

    def _limit_reached(self) -> bool:
        if self._limit > 0 and self._count >= self._offset + self._limit:
            if not self._last and self._buffer_drained():
                self._token.exclusive_start_key = None
            return True
        return False

    def _skip_to_offset(self) -> bool:
        while self._count < self._offset:
            if not self._ensure_items_available():
                return False
            self._curr += 1
            self._count += 1
        return True

    def _ensure_items_available(self) -> bool:
        while self._buffer_drained():
            if not self._fetch_next_page():
                return False
        return True

    def _fetch_next_page(self) -> bool:
        if not self._last:
            self._token.exclusive_start_key = None
            return False
        self._items.clear()
        self._curr = 0
        self._last = self._runner.run(self._last, self._items)
        return True
