"""DocStoreClient: the portable entry point for document actions and queries."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from docstore.actions import Action, ActionKind, ActionList, BeforeDo, Increment
from docstore.config import CollectionOptions, DocstoreConfig
from docstore.document import Document, split_field_path
from docstore.error_mapping import translate
from docstore.errors import InvalidArgumentError
from docstore.iterator import DocumentIterator
from docstore.pagination import PaginationToken
from docstore.query import FilterLike, Query
from docstore.store import DocumentKey, DynamoDocStore

logger = logging.getLogger(__name__)

DocLike = Document | dict[str, Any]


def _as_document(doc: DocLike) -> Document:
    return doc if isinstance(doc, Document) else Document(doc)


class DocStoreClient:
    """A document collection bound to one DynamoDB table.

    Every error leaving this class is a :class:`~docstore.errors.DocstoreError`
    (or :class:`~docstore.errors.NoSuchElementError` from an exhausted
    iterator); provider errors are translated at this boundary.

    Usage::

        opts = CollectionOptions(table_name="games", partition_key="Player", sort_key="Game")
        with DocStoreClient(opts) as coll:
            coll.create({"Player": "ann", "Game": "chess", "Score": 3})
            doc = coll.get({"Player": "ann", "Game": "chess"})
    """

    def __init__(
        self,
        options: CollectionOptions,
        *,
        config: DocstoreConfig | None = None,
        client: Any | None = None,
        store: DynamoDocStore | None = None,
    ) -> None:
        self._store = store if store is not None else DynamoDocStore(
            options, client=client, config=config
        )

    @property
    def options(self) -> CollectionOptions:
        return self._store.options

    @property
    def store(self) -> DynamoDocStore:
        return self._store

    # --- single actions ---

    def actions(self) -> ActionList:
        return ActionList(self)

    def create(self, doc: DocLike) -> Document:
        """Create a document; a missing partition key is generated and written back."""
        doc = _as_document(doc)
        self.actions().create(doc).run()
        return doc

    def replace(self, doc: DocLike) -> Document:
        doc = _as_document(doc)
        self.actions().replace(doc).run()
        return doc

    def put(self, doc: DocLike) -> Document:
        doc = _as_document(doc)
        self.actions().put(doc).run()
        return doc

    def delete(self, doc: DocLike) -> None:
        self.actions().delete(doc).run()

    def get(self, doc: DocLike, *field_paths: str) -> Document:
        """Fill ``doc`` (which carries the key) from the store and return it."""
        doc = _as_document(doc)
        self.actions().get(doc, *field_paths).run()
        return doc

    def update(self, doc: DocLike, mods: dict[str, Any]) -> Document:
        """Apply field modifications: a value sets, None removes, :class:`Increment` adds."""
        doc = _as_document(doc)
        self.actions().update(doc, mods).run()
        return doc

    def batch_get(self, docs: Iterable[DocLike], *field_paths: str) -> list[Document]:
        docs = [_as_document(d) for d in docs]
        actions = self.actions()
        for doc in docs:
            actions.get(doc, *field_paths)
        actions.run()
        return docs

    def batch_put(self, docs: Iterable[DocLike]) -> list[Document]:
        docs = [_as_document(d) for d in docs]
        actions = self.actions()
        for doc in docs:
            actions.put(doc)
        actions.run()
        return docs

    # --- action lists ---

    def run_actions(self, actions: list[Action], before_do: BeforeDo | None = None) -> None:
        """Validate and execute actions, translating every failure to a docstore error."""
        try:
            self._store.check_closed()
            self._prepare(actions)
            self._store.run_actions(actions, before_do)
        except Exception as e:
            err = translate(e)
            if err is e:
                raise
            raise err from e

    def _prepare(self, actions: list[Action]) -> None:
        revision_field = self._store.revision_field
        seen: set[tuple[Any, ActionKind]] = set()
        for index, action in enumerate(actions):
            doc = action.document
            key = self._store.document_key(doc)
            if key is None and action.kind is not ActionKind.CREATE:
                raise InvalidArgumentError(f"document key should not be null: {doc!r}")
            if action.kind is ActionKind.CREATE and doc.get_field(revision_field) is not None:
                raise InvalidArgumentError(
                    f"cannot create a document with revision field {revision_field}"
                )
            for path in action.field_paths:
                split_field_path(path)
            if action.kind is ActionKind.UPDATE:
                _check_mods(action.mods)

            if key is not None:
                if (key, action.kind) in seen:
                    raise InvalidArgumentError(
                        f"duplicate key in actions: {key}, action kind: {action.kind.value}"
                    )
                seen.add((key, action.kind))
            action.key = key
            action.index = index

    # --- queries ---

    def query(
        self,
        *filters: FilterLike,
        field_paths: Iterable[str] = (),
        order_by: str | None = None,
        ascending: bool = True,
        offset: int = 0,
        limit: int = 0,
        pagination_token: PaginationToken | str | None = None,
        before_query: Callable[[dict[str, Any]], None] | None = None,
    ) -> DocumentIterator:
        """Run a query; filters are ``Filter`` objects or ``(path, op, value)`` tuples."""
        return self.run_get_query(
            self._build_query(
                filters, field_paths, order_by, ascending, offset, limit, pagination_token,
                before_query,
            )
        )

    def run_get_query(self, query: Query) -> DocumentIterator:
        try:
            return self._store.run_get_query(query)
        except Exception as e:
            err = translate(e)
            if err is e:
                raise
            raise err from e

    def query_plan(self, query: Query) -> str:
        try:
            return self._store.query_plan(query)
        except Exception as e:
            err = translate(e)
            if err is e:
                raise
            raise err from e

    @staticmethod
    def _build_query(
        filters: tuple[FilterLike, ...],
        field_paths: Iterable[str],
        order_by: str | None,
        ascending: bool,
        offset: int,
        limit: int,
        pagination_token: PaginationToken | str | None,
        before_query: Callable[[dict[str, Any]], None] | None,
    ) -> Query:
        return Query(
            filters=tuple(filters),
            field_paths=tuple(field_paths),
            order_by_field=order_by,
            order_ascending=ascending,
            offset=offset,
            limit=limit,
            pagination_token=pagination_token,
            before_query=before_query,
        )

    # --- misc ---

    def get_key(self, doc: DocLike) -> DocumentKey:
        return self._store.get_key(_as_document(doc))

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> DocStoreClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _check_mods(mods: dict[str, Any] | None) -> None:
    if not mods:
        raise InvalidArgumentError("mods should not be null or empty")
    for path, value in mods.items():
        split_field_path(path)
        if isinstance(value, Increment) and (
            isinstance(value.amount, bool) or not isinstance(value.amount, (int, float))
        ):
            raise InvalidArgumentError(f"increment of {path} must be numeric")
