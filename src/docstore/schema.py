"""Table and index key schemas parsed from DescribeTable."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docstore.errors import InvalidArgumentError

PROJECTION_ALL = "ALL"
PROJECTION_KEYS_ONLY = "KEYS_ONLY"
PROJECTION_INCLUDE = "INCLUDE"


@dataclass(frozen=True)
class Key:
    """Names of the partition and (optional) sort key attributes of a table or index."""

    partition_key: str
    sort_key: str | None = None

    def __str__(self) -> str:
        return f"partitionKey:{self.partition_key},sortKey:{self.sort_key}"


@dataclass(frozen=True)
class IndexDescription:
    name: str
    key: Key
    projection_type: str = PROJECTION_ALL
    non_key_attributes: tuple[str, ...] = ()
    is_global: bool = False

    @property
    def projects_all(self) -> bool:
        return self.projection_type == PROJECTION_ALL


@dataclass(frozen=True)
class TableSchema:
    """Key schema of a table plus its local and global secondary indexes.

    Indexes keep the order in which DescribeTable lists them; the planner
    picks the first eligible one.
    """

    table_name: str
    key: Key
    local_indexes: tuple[IndexDescription, ...] = field(default_factory=tuple)
    global_indexes: tuple[IndexDescription, ...] = field(default_factory=tuple)

    @classmethod
    def from_description(cls, table: dict[str, Any]) -> TableSchema:
        """Build a schema from the ``Table`` member of a DescribeTable response."""
        key = key_attributes(table.get("KeySchema", []))
        if key is None:
            raise InvalidArgumentError(
                f"table {table.get('TableName')!r} has no partition key in its key schema"
            )
        local = tuple(
            _index_from_description(d, is_global=False)
            for d in table.get("LocalSecondaryIndexes") or []
        )
        global_ = tuple(
            _index_from_description(d, is_global=True)
            for d in table.get("GlobalSecondaryIndexes") or []
        )
        return cls(
            table_name=str(table.get("TableName", "")),
            key=key,
            local_indexes=local,
            global_indexes=global_,
        )

    def to_dict(self) -> dict[str, Any]:
        def _index(ix: IndexDescription) -> dict[str, Any]:
            return {
                "name": ix.name,
                "partition_key": ix.key.partition_key,
                "sort_key": ix.key.sort_key,
                "projection": ix.projection_type,
                "non_key_attributes": list(ix.non_key_attributes),
            }

        return {
            "table_name": self.table_name,
            "partition_key": self.key.partition_key,
            "sort_key": self.key.sort_key,
            "local_indexes": [_index(ix) for ix in self.local_indexes],
            "global_indexes": [_index(ix) for ix in self.global_indexes],
        }


def key_attributes(key_schema: list[dict[str, Any]]) -> Key | None:
    """Extract partition/sort key names from a KeySchema list; None without a HASH key."""
    partition_key: str | None = None
    sort_key: str | None = None
    for element in key_schema:
        key_type = element.get("KeyType")
        if key_type == "HASH":
            partition_key = element["AttributeName"]
        elif key_type == "RANGE":
            sort_key = element["AttributeName"]
        else:
            raise InvalidArgumentError(f"Invalid key type: {key_type}")
    if partition_key is None:
        return None
    return Key(partition_key, sort_key)


def _index_from_description(desc: dict[str, Any], *, is_global: bool) -> IndexDescription:
    key = key_attributes(desc.get("KeySchema", []))
    if key is None:
        raise InvalidArgumentError(f"index {desc.get('IndexName')!r} has no partition key")
    projection = desc.get("Projection") or {}
    return IndexDescription(
        name=desc["IndexName"],
        key=key,
        projection_type=projection.get("ProjectionType", PROJECTION_ALL),
        non_key_attributes=tuple(projection.get("NonKeyAttributes") or ()),
        is_global=is_global,
    )
