"""DynamoDB-backed document store: action orchestration, batched gets and queries."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, NamedTuple

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from docstore.actions import Action, ActionKind, BeforeDo, Increment, group_actions, group_by_field_paths
from docstore.codec import decode_doc, decode_value, encode_doc, encode_key_fields, encode_value
from docstore.config import CollectionOptions, DocstoreConfig
from docstore.document import Document, split_field_path
from docstore.error_mapping import error_code
from docstore.errors import (
    FailedPreconditionError,
    InvalidArgumentError,
    ResourceAlreadyExistsError,
    ResourceExhaustedError,
    ResourceNotFoundError,
    TransactionFailedError,
)
from docstore.expressions import ExpressionBuilder
from docstore.iterator import DocumentIterator, QueryRunner
from docstore.planner import QueryPlan, QueryPlanner
from docstore.preconditions import build_precondition
from docstore.query import Query
from docstore.schema import TableSchema

logger = logging.getLogger(__name__)

BATCH_GET_SIZE = 100
MAX_TRANSACTION_ITEMS = 100

_KEY_VALUE_TYPES = (str, int, float, Decimal, bytes)


def unique_string() -> str:
    return str(uuid.uuid4())


def _is_absent(value: Any) -> bool:
    """Key values DynamoDB cannot store: missing, None, or an empty string or binary."""
    return value is None or (isinstance(value, (str, bytes)) and not value)


class DocumentKey(NamedTuple):
    """Key values of one document: partition value and sort value (None without a sort key)."""

    partition: Any
    sort: Any = None

    def __str__(self) -> str:
        return f"partitionKey:{self.partition},sortKey:{self.sort}"


@dataclass
class WriteOperation:
    """A single write prepared for execution, either alone or inside a transaction."""

    action: Action
    write_item: dict[str, Any]
    new_partition_key: str | None
    new_revision: str | None
    run: Callable[[], None]


class DynamoDocStore:
    """Document collection stored in one DynamoDB table.

    The table description is fetched on first use and cached for the life of
    the store. Batched gets and individual non-atomic writes run on a
    bounded worker pool; the two write phases of :meth:`run_actions` run on
    their own pair of threads so they never wait on pool slots they occupy.
    """

    def __init__(
        self,
        options: CollectionOptions,
        *,
        client: Any | None = None,
        config: DocstoreConfig | None = None,
    ) -> None:
        self.options = options
        self._config = config or DocstoreConfig()
        self._client = client if client is not None else self._build_client(self._config)

        workers = options.max_outstanding_action_rpcs or None
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="docstore-rpc")
        self._phase_executor = ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="docstore-write-phase"
        )

        self._schema: TableSchema | None = None
        self._schema_lock = threading.Lock()
        self._closed = False
        self._close_lock = threading.Lock()

    @staticmethod
    def _build_client(config: DocstoreConfig) -> Any:
        session = boto3.Session(region_name=config.region)
        return session.client(
            "dynamodb",
            region_name=config.region,
            endpoint_url=config.endpoint_url,
            config=BotoConfig(
                connect_timeout=config.request_timeout_s,
                read_timeout=config.request_timeout_s,
                retries={"max_attempts": config.max_attempts, "mode": "standard"},
            ),
        )

    @property
    def client(self) -> Any:
        return self._client

    @property
    def revision_field(self) -> str:
        return self.options.effective_revision_field

    # --- schema ---

    @property
    def schema(self) -> TableSchema:
        """The table's key and index schema, described once and then reused."""
        if self._schema is None:
            with self._schema_lock:
                if self._schema is None:
                    resp = self._client.describe_table(TableName=self.options.table_name)
                    schema = TableSchema.from_description(resp["Table"])
                    self._check_schema(schema)
                    self._schema = schema
        return self._schema

    def _check_schema(self, schema: TableSchema) -> None:
        if (
            schema.key.partition_key != self.options.partition_key
            or schema.key.sort_key != self.options.sort_key
        ):
            raise InvalidArgumentError(
                f"table {self.options.table_name} has key ({schema.key}) but the collection "
                f"is configured with partition_key={self.options.partition_key!r}, "
                f"sort_key={self.options.sort_key!r}"
            )

    # --- keys ---

    def document_key(self, doc: Document) -> DocumentKey | None:
        """Return the document's key values, or None when the partition key is missing."""
        pk = doc.get_field(self.options.partition_key)
        if _is_absent(pk):
            return None
        if isinstance(pk, bool) or not isinstance(pk, _KEY_VALUE_TYPES):
            raise InvalidArgumentError(
                f"partition key {self.options.partition_key} has unsupported type "
                f"{type(pk).__name__}"
            )
        sk = None
        if self.options.sort_key is not None:
            sk = doc.get_field(self.options.sort_key)
            if sk is not None and (isinstance(sk, bool) or not isinstance(sk, _KEY_VALUE_TYPES)):
                raise InvalidArgumentError(
                    f"sort key {self.options.sort_key} has unsupported type {type(sk).__name__}"
                )
        return DocumentKey(pk, sk)

    def get_key(self, doc: Document) -> DocumentKey:
        key = self.document_key(doc)
        if key is None:
            raise InvalidArgumentError("partition key cannot be null or empty")
        return key

    def _item_key(self, item: dict[str, Any]) -> DocumentKey:
        pk = decode_value(item[self.options.partition_key])
        sk = None
        if self.options.sort_key is not None and self.options.sort_key in item:
            sk = decode_value(item[self.options.sort_key])
        return DocumentKey(pk, sk)

    def _missing_key_fields(self, doc: Document) -> list[str]:
        return [
            name
            for name in (self.options.partition_key, self.options.sort_key)
            if name is not None and _is_absent(doc.get_field(name))
        ]

    def check_write(self, action: Action) -> None:
        """Reject a write that cannot succeed, before any request is sent.

        A CREATE may omit its partition key, which is then generated; every
        other write needs all key fields. Updates may not touch key or
        revision fields.
        """
        missing = self._missing_key_fields(action.document)
        if action.kind is ActionKind.CREATE:
            missing = [name for name in missing if name != self.options.partition_key]
            if missing:
                raise InvalidArgumentError(f"Missing sort key: {missing[0]}")
        elif missing:
            raise InvalidArgumentError(f"Missing key field: {missing[0]}")

        if action.kind is ActionKind.UPDATE:
            if not action.mods:
                raise InvalidArgumentError("mods should not be null or empty")
            protected = {self.options.partition_key, self.options.sort_key, self.revision_field}
            for path in action.mods:
                if split_field_path(path)[0] in protected:
                    raise InvalidArgumentError(f"cannot update key or revision field {path}")

    # --- actions ---

    def run_actions(self, actions: list[Action], before_do: BeforeDo | None = None) -> None:
        """Execute a list of actions.

        Every write is validated before any request is sent. Gets that must
        see the pre-write state run first. Non-atomic and atomic writes then
        run concurrently with the independent gets; both write phases are
        awaited before the first failure is raised, and only then do the gets
        that must see the writes run.
        """
        self.check_closed()
        groups = group_actions(actions)
        if len(groups.atomic_writes) > MAX_TRANSACTION_ITEMS:
            raise InvalidArgumentError(
                f"an atomic write group supports at most {MAX_TRANSACTION_ITEMS} actions"
            )
        for action in groups.writes + groups.atomic_writes:
            self.check_write(action)

        self._run_gets(groups.before_gets, before_do)

        writes = self._phase_executor.submit(self._run_writes, groups.writes, before_do)
        atomic_writes = self._phase_executor.submit(
            self._run_atomic_writes, groups.atomic_writes, before_do
        )

        get_error: BaseException | None = None
        try:
            self._run_gets(groups.gets, before_do)
        except Exception as e:
            get_error = e

        failures = [get_error, writes.exception(), atomic_writes.exception()]
        first = next((err for err in failures if err is not None), None)
        if first is not None:
            raise first

        self._run_gets(groups.after_gets, before_do)

    # --- gets ---

    def _run_gets(self, gets: list[Action], before_do: BeforeDo | None) -> None:
        if not gets:
            return
        futures: list[Future[None]] = []
        for group in group_by_field_paths(gets):
            for start in range(0, len(group), BATCH_GET_SIZE):
                batch = group[start : start + BATCH_GET_SIZE]
                futures.append(self._executor.submit(self._batch_get, batch, before_do))
        logger.debug("running %d gets in %d batches", len(gets), len(futures))
        _raise_first_failure(futures)

    def _batch_get(self, gets: list[Action], before_do: BeforeDo | None) -> None:
        table = self.options.table_name
        keys: list[dict[str, Any]] = []
        by_key: dict[DocumentKey, Action] = {}
        for action in gets:
            encoded = encode_key_fields(
                action.document, self.options.partition_key, self.options.sort_key
            )
            if encoded is None:
                raise InvalidArgumentError("Failed to encode keys.")
            keys.append(encoded)
            by_key[self.get_key(action.document)] = action

        keys_and_attributes: dict[str, Any] = {"Keys": keys, "ConsistentRead": False}
        field_paths = list(gets[0].field_paths)
        if field_paths:
            for name in (self.options.partition_key, self.options.sort_key):
                if name is not None and name not in field_paths:
                    field_paths.append(name)
            builder = ExpressionBuilder()
            keys_and_attributes["ProjectionExpression"] = builder.projection(field_paths)
            builder.apply(keys_and_attributes)

        request: dict[str, Any] = {"RequestItems": {table: keys_and_attributes}}
        if before_do is not None:
            before_do(request)

        found: set[DocumentKey] = set()
        attempts = 0
        while True:
            response = self._client.batch_get_item(**request)
            for item in response.get("Responses", {}).get(table, []):
                key = self._item_key(item)
                action = by_key.get(key)
                if action is None:
                    continue
                decode_doc(item, action.document)
                found.add(key)

            unprocessed = response.get("UnprocessedKeys", {}).get(table)
            if not unprocessed or not unprocessed.get("Keys"):
                break
            if attempts >= self._config.batch_get_max_retries:
                raise ResourceExhaustedError(
                    f"batch get left {len(unprocessed['Keys'])} keys unprocessed "
                    f"after {attempts} retries"
                )
            attempts += 1
            logger.warning(
                "batch get on %s left %d keys unprocessed; retry %d",
                table,
                len(unprocessed["Keys"]),
                attempts,
            )
            time.sleep(self._config.batch_get_backoff_s * (2 ** (attempts - 1)))
            request = {"RequestItems": {table: unprocessed}}

        missing = [key for key in by_key if key not in found]
        if missing:
            raise ResourceNotFoundError(f"document not found: {missing[0]}")

    # --- writes ---

    def _run_writes(self, writes: list[Action], before_do: BeforeDo | None) -> None:
        if not writes:
            return
        ops = [self.new_write_operation(action, before_do) for action in writes]
        futures = [self._executor.submit(op.run) for op in ops]

        completed: list[WriteOperation] = []
        first_error: BaseException | None = None
        for op, future in zip(ops, futures):
            err = future.exception()
            if err is None:
                completed.append(op)
                continue
            if first_error is None:
                first_error = err
            else:
                logger.warning(
                    "%s of %s failed: %s",
                    op.action.kind.value,
                    op.action.key or self.document_key(op.action.document),
                    err,
                )
        self._update_revisions(completed)
        if first_error is not None:
            raise first_error

    def _run_atomic_writes(self, writes: list[Action], before_do: BeforeDo | None) -> None:
        if not writes:
            return
        ops =[self.new_write_operation(action, before_do) for action in writes]
        request: dict[str, Any] = {
            "TransactItems": [op.write_item for op in ops],
            "ClientRequestToken": unique_string(),
        }
        if before_do is not None:
            before_do(request)
        logger.debug(
            "transaction of %d writes with token %s",
            len(ops),
            request["ClientRequestToken"],
        )
        try:
            self._client.transact_write_items(**request)
        except ClientError as e:
            if error_code(e) == "TransactionCanceledException":
                raise TransactionFailedError(str(e), cause=e) from e
            raise
        self._update_revisions(ops)

    def _update_revisions(self, ops: list[WriteOperation]) -> None:
        for op in ops:
            doc = op.action.document
            if op.new_partition_key:
                doc.set_field(self.options.partition_key, op.new_partition_key)
            if op.new_revision:
                doc.set_field(self.revision_field, op.new_revision)

    def new_write_operation(
        self, action: Action, before_do: BeforeDo | None = None
    ) -> WriteOperation:
        self.check_write(action)
        if action.kind in (ActionKind.CREATE, ActionKind.REPLACE, ActionKind.PUT):
            return self._new_put(action, before_do)
        if action.kind is ActionKind.UPDATE:
            return self._new_update(action, before_do)
        if action.kind is ActionKind.DELETE:
            return self._new_delete(action, before_do)
        raise InvalidArgumentError(f"Unknown action: {action.kind}")

    def _precondition(self, action: Action, builder: ExpressionBuilder) -> str | None:
        return build_precondition(
            action.kind,
            action.document,
            revision_field=self.revision_field,
            partition_key=self.options.partition_key,
            builder=builder,
        )

    def _new_put(self, action: Action, before_do: BeforeDo | None) -> WriteOperation:
        item = encode_doc(action.document)
        new_partition_key = None
        if self._missing_key_fields(action.document):
            new_partition_key = unique_string()
            item[self.options.partition_key] = encode_value(new_partition_key)

        builder = ExpressionBuilder()
        condition = self._precondition(action, builder)

        revision = unique_string()
        item[self.revision_field] = encode_value(revision)

        put: dict[str, Any] = {"TableName": self.options.table_name, "Item": item}
        if condition is not None:
            put["ConditionExpression"] = condition
            builder.apply(put)

        return WriteOperation(
            action,
            {"Put": put},
            new_partition_key,
            revision,
            lambda: self._run_write(self._client.put_item, put, action, before_do),
        )

    def _new_update(self, action: Action, before_do: BeforeDo | None) -> WriteOperation:
        key = encode_key_fields(action.document, self.options.partition_key, self.options.sort_key)
        if key is None:
            raise InvalidArgumentError("Failed to encode keys.")

        builder = ExpressionBuilder()
        condition = self._precondition(action, builder)

        sets: list[str] = []
        removes: list[str] = []
        for path, value in (action.mods or {}).items():
            name = builder.name(path)
            if value is None:
                removes.append(name)
            elif isinstance(value, Increment):
                zero = builder.value(0)
                amount = builder.value(value.amount)
                sets.append(f"{name} = if_not_exists({name}, {zero}) + {amount}")
            else:
                sets.append(f"{name} = {builder.value(value)}")

        revision = unique_string()
        sets.append(f"{builder.name(self.revision_field)} = {builder.value(revision)}")

        expression = "SET " + ", ".join(sets)
        if removes:
            expression += " REMOVE " + ", ".join(removes)

        update: dict[str, Any] = {
            "TableName": self.options.table_name,
            "Key": key,
            "UpdateExpression": expression,
        }
        if condition is not None:
            update["ConditionExpression"] = condition
        builder.apply(update)

        return WriteOperation(
            action,
            {"Update": update},
            None,
            revision,
            lambda: self._run_write(self._client.update_item, update, action, before_do),
        )

    def _new_delete(self, action: Action, before_do: BeforeDo | None) -> WriteOperation:
        key = encode_key_fields(action.document, self.options.partition_key, self.options.sort_key)
        if key is None:
            raise InvalidArgumentError("Failed to encode keys.")

        delete: dict[str, Any] = {"TableName": self.options.table_name, "Key": key}
        builder = ExpressionBuilder()
        condition = self._precondition(action, builder)
        if condition is not None:
            delete["ConditionExpression"] = condition
            builder.apply(delete)

        return WriteOperation(
            action,
            {"Delete": delete},
            None,
            None,
            lambda: self._run_write(self._client.delete_item, delete, action, before_do),
        )

    def _run_write(
        self,
        call: Callable[..., Any],
        request: dict[str, Any],
        action: Action,
        before_do: BeforeDo | None,
    ) -> None:
        request = dict(request)
        if before_do is not None:
            before_do(request)
        try:
            call(**request)
        except ClientError as e:
            if error_code(e) != "ConditionalCheckFailedException":
                raise
            if action.kind is ActionKind.CREATE:
                raise ResourceAlreadyExistsError(str(e), cause=e) from e
            raise ResourceNotFoundError(str(e), cause=e) from e

    # --- queries ---

    def plan_query(self, query: Query) -> QueryPlan:
        return QueryPlanner(self.options, self.schema).plan(query)

    def query_plan(self, query: Query) -> str:
        """Describe how ``query`` would run: "Scan", "Table" or "Index <name>"."""
        return self.plan_query(query).label

    def run_get_query(self, query: Query) -> DocumentIterator:
        self.check_closed()
        plan = self.plan_query(query)
        token = query.pagination_token
        if isinstance(token, str):
            raise InvalidArgumentError("pagination token must be decoded before running a query")
        if token is not None:
            token.check_plan(plan.label)

        runner = QueryRunner(self._client, plan, query.before_query)
        it = DocumentIterator(
            runner, offset=query.offset, limit=query.limit, pagination_token=token
        )
        # An exhausted token resumes nothing: the iterator stays empty.
        if token is None:
            it.run(None)
        elif not token.is_exhausted():
            it.run(token.exclusive_start_key)
        return it

    # --- lifecycle ---

    def check_closed(self) -> None:
        with self._close_lock:
            if self._closed:
                raise FailedPreconditionError("DocStore has been closed")

    def close(self) -> None:
        """Release the worker pools and the DynamoDB client; safe to call twice."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._phase_executor.shutdown(wait=True)
        self._executor.shutdown(wait=True)
        close = getattr(self._client, "close", None)
        if callable(close):
            close()


def _raise_first_failure(futures: list[Future[None]]) -> None:
    """Wait for every future, then raise the first failure in submission order."""
    first: BaseException | None = None
    for future in futures:
        err = future.exception()
        if err is not None and first is None:
            first = err
    if first is not None:
        raise first
