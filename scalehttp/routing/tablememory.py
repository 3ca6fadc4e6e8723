"""An immutable snapshot of scaled objects indexed by identity and by routing key."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from ..objects import HTTPScaledObject, NamespacedName
from .key import new_keys_from_httpso

__all__ = ["TableMemory"]


def _is_after(new: datetime | None, old: datetime | None) -> bool:
    if new is None:
        return False
    if old is None:
        return True
    return new > old


@dataclass(frozen=True)
class TableMemory:
    """Scaled objects by namespaced name (``index``) and by routing key (``store``).

    Every change returns a new memory; an existing one is never modified.
    """

    index: Mapping[NamespacedName, HTTPScaledObject] = field(default_factory=dict)
    store: Mapping[str, HTTPScaledObject] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "index", MappingProxyType(dict(self.index)))
        object.__setattr__(self, "store", MappingProxyType(dict(self.store)))

    def remember(self, httpso: HTTPScaledObject | None) -> TableMemory:
        """Return a memory that also holds a copy of ``httpso``.

        Where two objects claim the same key, the one created first keeps it.
        """
        if httpso is None:
            return self
        httpso = httpso.deep_copy()

        index = dict(self.index)
        index[httpso.namespaced_name()] = httpso

        store = dict(self.store)
        for key in new_keys_from_httpso(httpso):
            old = store.get(key)
            if old is not None and _is_after(httpso.creation_timestamp, old.creation_timestamp):
                continue
            store[key] = httpso

        return TableMemory(index, store)

    def recall(self, namespaced_name: NamespacedName | None) -> HTTPScaledObject | None:
        """Return a copy of the object with the given name, or ``None``."""
        if namespaced_name is None:
            return None
        httpso = self.index.get(namespaced_name)
        return None if httpso is None else httpso.deep_copy()

    def forget(self, namespaced_name: NamespacedName | None) -> TableMemory:
        """Return a memory without the named object.

        Keys held by another object of a different name are left alone.
        """
        if namespaced_name is None:
            return self
        httpso = self.index.get(namespaced_name)
        if httpso is None:
            return self

        index = {name: obj for name, obj in self.index.items() if name != namespaced_name}
        store = dict(self.store)
        for key in new_keys_from_httpso(httpso):
            old = store.get(key)
            if old is None or old.namespaced_name() != namespaced_name:
                continue
            del store[key]

        return TableMemory(index, store)

    def route(self, key: str | None) -> HTTPScaledObject | None:
        """Return the object whose key is the longest prefix of ``key``, or ``None``."""
        if key is None:
            return None
        for end in range(len(key), -1, -1):
            found = self.store.get(key[:end])
            if found is not None:
                return found
        return None