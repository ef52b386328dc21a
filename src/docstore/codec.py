"""Codec between Documents and DynamoDB attribute-value maps.

Built on boto3's TypeSerializer/TypeDeserializer; this module only adapts
Python-native numbers and binary values to what those expect and back.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from docstore.document import Document
from docstore.errors import InvalidArgumentError

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_native(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, Document):
        return {k: _to_native(v) for k, v in value.as_dict().items()}
    if isinstance(value, dict):
        return {k: _to_native(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_native(v) for v in value]
    if isinstance(value, (str, int, bytes, Decimal, set, frozenset)):
        return value
    raise InvalidArgumentError(f"unsupported document value type: {type(value).__name__}")


def _from_native(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, Binary):
        return value.value
    if isinstance(value, dict):
        return {k: _from_native(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_native(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return [_from_native(v) for v in value]
    return value


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a single Python value as a DynamoDB attribute value."""
    try:
        return _serializer.serialize(_to_native(value))
    except TypeError as e:
        raise InvalidArgumentError(f"cannot encode value {value!r}: {e}") from e


def decode_value(attr: dict[str, Any]) -> Any:
    return _from_native(_deserializer.deserialize(attr))


def encode_doc(doc: Document) -> dict[str, dict[str, Any]]:
    """Encode every top-level field of a document."""
    return {name: encode_value(value) for name, value in doc.as_dict().items()}


def decode_doc(item: dict[str, dict[str, Any]], doc: Document) -> None:
    """Decode a native item into ``doc``, overwriting the fields the item carries."""
    for name, attr in item.items():
        doc.set_field(name, decode_value(attr))


def encode_key_fields(
    doc: Document, partition_key: str, sort_key: str | None
) -> dict[str, dict[str, Any]] | None:
    """Encode only the key fields of ``doc``; None if a configured key is missing."""
    pk = doc.get_field(partition_key)
    if pk is None:
        return None
    out = {partition_key: encode_value(pk)}
    if sort_key is not None:
        sk = doc.get_field(sort_key)
        if sk is None:
            return None
        out[sort_key] = encode_value(sk)
    return out
