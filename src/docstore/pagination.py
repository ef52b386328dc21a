"""Opaque, plan-bound pagination cursors."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any

from docstore.errors import InvalidArgumentError

# Key attributes are S, N or B; only B needs a text form.


def _attr_to_json(attr: dict[str, Any]) -> dict[str, Any]:
    if "B" in attr:
        return {"B": base64.b64encode(bytes(attr["B"])).decode("ascii")}
    return attr


def _attr_from_json(attr: dict[str, Any]) -> dict[str, Any]:
    if "B" in attr:
        return {"B": base64.b64decode(attr["B"])}
    return attr


@dataclass
class PaginationToken:
    """Resume point for a query or scan.

    ``plan`` is the label of the plan that produced the token ("Scan",
    "Table" or "Index <name>"); a token is only accepted by a query that
    plans to the same label. ``exclusive_start_key`` is the native
    attribute map of the last returned item's pagination keys, or None when
    the result set has been fully drained.
    """

    plan: str
    exclusive_start_key: dict[str, Any] | None = None

    def is_exhausted(self) -> bool:
        return not self.exclusive_start_key

    def check_plan(self, plan: str) -> None:
        if self.plan != plan:
            raise InvalidArgumentError(
                f"pagination token was produced by plan '{self.plan}' "
                f"and cannot resume plan '{plan}'"
            )

    def encode(self) -> str:
        key = None
        if self.exclusive_start_key is not None:
            key = {name: _attr_to_json(attr) for name, attr in self.exclusive_start_key.items()}
        payload = {"plan": self.plan, "key": key}
        raw = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    @classmethod
    def decode(cls, text: str) -> PaginationToken:
        try:
            raw = base64.urlsafe_b64decode(text.encode("ascii"))
            payload = json.loads(raw.decode("utf-8"))
            plan = payload["plan"]
            key = payload.get("key")
        except Exception as e:
            raise InvalidArgumentError("invalid pagination token") from e
        if not isinstance(plan, str) or (key is not None and not isinstance(key, dict)):
            raise InvalidArgumentError("invalid pagination token")
        if key is not None:
            key = {name: _attr_from_json(attr) for name, attr in key.items()}
        return cls(plan=plan, exclusive_start_key=key)

    def __str__(self) -> str:
        return self.encode()
