"""Allocation of expression attribute names and values for DynamoDB requests."""

from __future__ import annotations

from typing import Any

from docstore.codec import encode_value
from docstore.document import split_field_path


class ExpressionBuilder:
    """Collects ``ExpressionAttributeNames`` and ``ExpressionAttributeValues``.

    Names are aliased per path segment (``#n0``, ``#n1`` ...) and reused when
    the same segment appears again; values always get a fresh placeholder
    (``:v0``, ``:v1`` ...), so fragments built by different callers never
    collide.
    """

    def __init__(self) -> None:
        self.names: dict[str, str] = {}
        self.values: dict[str, dict[str, Any]] = {}
        self._aliases: dict[str, str] = {}

    def name(self, path: str) -> str:
        """Return the aliased form of a dotted field path, e.g. ``#n0.#n1``."""
        return ".".join(self._alias(segment) for segment in split_field_path(path))

    def _alias(self, segment: str) -> str:
        alias = self._aliases.get(segment)
        if alias is None:
            alias = f"#n{len(self._aliases)}"
            self._aliases[segment] = alias
            self.names[alias] = segment
        return alias

    def value(self, value: Any) -> str:
        placeholder = f":v{len(self.values)}"
        self.values[placeholder] = encode_value(value)
        return placeholder

    def projection(self, field_paths: list[str] | tuple[str, ...]) -> str:
        return ",".join(self.name(fp) for fp in field_paths)

    def apply(self, request: dict[str, Any]) -> dict[str, Any]:
        """Attach the collected names/values to a request dict, omitting empty maps."""
        if self.names:
            request["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            request["ExpressionAttributeValues"] = dict(self.values)
        return request
