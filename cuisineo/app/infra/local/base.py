# cuisineo/app/infra/local/base.py
"""
Browser-scoped persisted key/value store (the equivalent of localStorage).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class LocalStore(ABC):
    """String-keyed store holding the pre-migration seed and the migration flag."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        pass


class InMemoryLocalStore(LocalStore):
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
