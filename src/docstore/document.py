"""Document: an ordered, dynamically-typed field map with dotted-path access."""

from __future__ import annotations

from typing import Any, Iterator, Mapping, TypeVar

from pydantic import BaseModel

from docstore.errors import InvalidArgumentError

M = TypeVar("M", bound=BaseModel)


def split_field_path(path: str) -> list[str]:
    """Split a dotted field path, rejecting empty paths and empty segments."""
    if not path:
        raise InvalidArgumentError("field path must not be empty")
    parts = path.split(".")
    for part in parts:
        if not part:
            raise InvalidArgumentError(f"field path '{path}' has an empty segment")
    return parts


class Document:
    """A document wrapping a dict of top-level fields.

    A dict passed in is kept by reference, so revision and key write-backs
    performed by the store are visible through the caller's dict.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        if data is None:
            data = {}
        if isinstance(data, Document):
            data = data._fields
        if not isinstance(data, dict):
            data = dict(data)
        self._fields: dict[str, Any] = data

    @classmethod
    def from_model(cls, model: BaseModel) -> Document:
        return cls(model.model_dump())

    def to_model(self, model_cls: type[M]) -> M:
        return model_cls.model_validate(self._fields)

    # --- top-level fields ---

    def get_field(self, name: str) -> Any:
        return self._fields.get(name)

    def set_field(self, name: str, value: Any) -> None:
        self._fields[name] = value

    def has_field(self, name: str) -> bool:
        return name in self._fields

    def field_names(self) -> list[str]:
        return list(self._fields)

    # --- dotted paths ---

    def get(self, path: str, default: Any = None) -> Any:
        """Return the value at a dotted path, or ``default`` when any segment is missing."""
        current: Any = self._fields
        for segment in split_field_path(path):
            if not isinstance(current, dict) or segment not in current:
                return default
            current = current[segment]
        return current

    def set(self, path: str, value: Any) -> None:
        """Set the value at a dotted path, creating intermediate maps as needed."""
        parts = split_field_path(path)
        current = self._fields
        for segment in parts[:-1]:
            nxt = current.get(segment)
            if nxt is None:
                nxt = {}
                current[segment] = nxt
            elif not isinstance(nxt, dict):
                raise InvalidArgumentError(
                    f"cannot set '{path}': '{segment}' is not a map"
                )
            current = nxt
        current[parts[-1]] = value

    def as_dict(self) -> dict[str, Any]:
        return self._fields

    # --- mapping protocol ---

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._fields[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Document):
            return self._fields == other._fields
        if isinstance(other, dict):
            return self._fields == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"Document({self._fields!r})"
