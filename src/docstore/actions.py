"""Actions, the fluent ActionList, and classification into execution groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Hashable

from docstore.document import Document

if TYPE_CHECKING:
    from docstore.client import DocStoreClient

BeforeDo = Callable[[dict[str, Any]], None]


class ActionKind(str, Enum):
    CREATE = "create"
    REPLACE = "replace"
    PUT = "put"
    GET = "get"
    DELETE = "delete"
    UPDATE = "update"

    @property
    def is_write(self) -> bool:
        return self is not ActionKind.GET


@dataclass(frozen=True)
class Increment:
    """Update modification that atomically adds ``amount`` to a numeric field."""

    amount: int | float


@dataclass(eq=False)
class Action:
    """One operation on one document.

    ``key`` and ``index`` are filled in by the client before execution:
    ``key`` is the document's key values (None for a CREATE without a
    partition key) and ``index`` the position in the caller's list.
    """

    kind: ActionKind
    document: Document
    field_paths: tuple[str, ...] = ()
    mods: dict[str, Any] | None = None
    in_atomic_write: bool = False
    key: Hashable | None = None
    index: int = 0


@dataclass
class ActionGroups:
    """The five ordered execution groups of an action list."""

    before_gets: list[Action] = field(default_factory=list)
    gets: list[Action] = field(default_factory=list)
    writes: list[Action] = field(default_factory=list)
    atomic_writes: list[Action] = field(default_factory=list)
    after_gets: list[Action] = field(default_factory=list)


def group_actions(actions: list[Action]) -> ActionGroups:
    """Separate actions into writes and the gets that precede, follow or overlap them.

    A get on a key written earlier in the list runs after the writes; a
    write on a key read earlier moves that read before the writes. Gets on
    untouched keys run concurrently with the writes.
    """
    before_gets: dict[Hashable, Action] = {}
    after_gets: dict[Hashable, Action] = {}
    concurrent_gets: dict[Hashable, Action] = {}
    writes: dict[Hashable, Action] = {}
    atomic_writes: dict[Hashable, Action] = {}
    keyless: list[Action] = []
    atomic_keyless: list[Action] = []

    for action in actions:
        key = action.key
        if key is None:
            (atomic_keyless if action.in_atomic_write else keyless).append(action)
        elif action.kind is ActionKind.GET:
            if key in writes or key in atomic_writes:
                after_gets[key] = action
            else:
                concurrent_gets[key] = action
        else:
            if key in concurrent_gets:
                before_gets[key] = concurrent_gets.pop(key)
            if action.in_atomic_write:
                atomic_writes[key] = action
            else:
                writes[key] = action

    def _ordered(items: list[Action]) -> list[Action]:
        return sorted(items, key=lambda a: a.index)

    return ActionGroups(
        before_gets=_ordered(list(before_gets.values())),
        gets=_ordered(list(concurrent_gets.values())),
        writes=_ordered(list(writes.values()) + keyless),
        atomic_writes=_ordered(list(atomic_writes.values()) + atomic_keyless),
        after_gets=_ordered(list(after_gets.values())),
    )


def group_by_field_paths(gets: list[Action]) -> list[list[Action]]:
    """Collect get actions into groups sharing the same field paths, in first-seen order."""
    groups: dict[tuple[str, ...], list[Action]] = {}
    for action in gets:
        groups.setdefault(tuple(action.field_paths), []).append(action)
    return list(groups.values())


class ActionList:
    """Fluent collector of actions, executed together by :meth:`run`."""

    def __init__(self, client: DocStoreClient) -> None:
        self._client = client
        self._actions: list[Action] = []
        self._atomic = False
        self._before_do: BeforeDo | None = None

    @property
    def actions(self) -> list[Action]:
        return self._actions

    def _add(self, kind: ActionKind, doc: Document | dict[str, Any], **kwargs: Any) -> ActionList:
        if not isinstance(doc, Document):
            doc = Document(doc)
        in_atomic = self._atomic and kind.is_write
        self._actions.append(Action(kind, doc, in_atomic_write=in_atomic, **kwargs))
        return self

    def create(self, doc: Document | dict[str, Any]) -> ActionList:
        return self._add(ActionKind.CREATE, doc)

    def replace(self, doc: Document | dict[str, Any]) -> ActionList:
        return self._add(ActionKind.REPLACE, doc)

    def put(self, doc: Document | dict[str, Any]) -> ActionList:
        return self._add(ActionKind.PUT, doc)

    def delete(self, doc: Document | dict[str, Any]) -> ActionList:
        return self._add(ActionKind.DELETE, doc)

    def get(self, doc: Document | dict[str, Any], *field_paths: str) -> ActionList:
        return self._add(ActionKind.GET, doc, field_paths=tuple(field_paths))

    def update(self, doc: Document | dict[str, Any], mods: dict[str, Any]) -> ActionList:
        return self._add(ActionKind.UPDATE, doc, mods=dict(mods) if mods is not None else None)

    def enable_atomic_writes(self) -> ActionList:
        """Every write added after this call joins one all-or-nothing transaction."""
        self._atomic = True
        return self

    def before_do(self, callback: BeforeDo) -> ActionList:
        self._before_do = callback
        return self

    def run(self) -> None:
        self._client.run_actions(self._actions, self._before_do)
