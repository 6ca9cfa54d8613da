"""In-memory store of named item lists shared by the MCP tools."""

from __future__ import annotations

import threading
import uuid
from typing import Dict, Iterable, Tuple


class ListNotFoundError(KeyError):
    """Raised when a list id is not present in the store."""

    def __init__(self, list_id: str):
        super().__init__(list_id)
        self.list_id = list_id

    def __str__(self) -> str:
        return f'No list found with ID "{self.list_id}"'


class ListStore:
    """Thread-safe mapping of list ids to immutable item tuples.

    Readers always get a tuple snapshot, so a run keeps iterating the items it
    started with even if the list is updated or deleted meanwhile.
    """

    def __init__(self) -> None:
        self._lists: Dict[str, Tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        while True:
            list_id = f"list-{uuid.uuid4().hex[:12]}"
            if list_id not in self._lists:
                return list_id

    def create(self, items: Iterable[str]) -> str:
        snapshot = tuple(items)
        with self._lock:
            list_id = self._new_id()
            self._lists[list_id] = snapshot
        return list_id

    def get(self, list_id: str) -> Tuple[str, ...]:
        with self._lock:
            try:
                return self._lists[list_id]
            except KeyError:
                raise ListNotFoundError(list_id) from None

    def update(self, list_id: str, items: Iterable[str]) -> int:
        """Replace the items of ``list_id``; returns the previous item count."""
        snapshot = tuple(items)
        with self._lock:
            if list_id not in self._lists:
                raise ListNotFoundError(list_id)
            old_count = len(self._lists[list_id])
            self._lists[list_id] = snapshot
        return old_count

    def delete(self, list_id: str) -> int:
        """Remove ``list_id``; returns how many items it held."""
        with self._lock:
            try:
                return len(self._lists.pop(list_id))
            except KeyError:
                raise ListNotFoundError(list_id) from None

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {list_id: len(items) for list_id, items in self._lists.items()}

    def __contains__(self, list_id: object) -> bool:
        with self._lock:
            return list_id in self._lists

    def __len__(self) -> int:
        with self._lock:
            return len(self._lists)
