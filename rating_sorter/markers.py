"""Weak, identity-keyed bookkeeping for tree nodes."""

from __future__ import annotations

import weakref
from typing import Any, Dict, Optional, Tuple


class NodeMap:
    """Mapping keyed by node identity that never keeps a node alive.

    Tree nodes compare structurally, so neither ``dict`` nor
    ``WeakKeyDictionary`` can key them reliably.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, Tuple["weakref.ref[Any]", Any]] = {}

    def _drop(self, key: int) -> None:
        self._entries.pop(key, None)

    def __setitem__(self, node: Any, value: Any) -> None:
        key = id(node)
        self_ref = weakref.ref(self)

        def _collected(_ref: Any, key: int = key) -> None:
            owner = self_ref()
            if owner is not None:
                owner._drop(key)

        self._entries[key] = (weakref.ref(node, _collected), value)

    def get(self, node: Any, default: Optional[Any] = None) -> Any:
        entry = self._entries.get(id(node))
        if entry is None or entry[0]() is not node:
            return default
        return entry[1]

    def __contains__(self, node: Any) -> bool:
        entry = self._entries.get(id(node))
        return entry is not None and entry[0]() is node

    def __len__(self) -> int:
        return sum(1 for ref, _ in self._entries.values() if ref() is not None)


class NodeMarker(NodeMap):
    """Set of nodes already processed."""

    def add(self, node: Any) -> None:
        self[node] = True
