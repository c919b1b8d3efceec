"""Named stores — look up a Store by name instead of passing it around.

The registry is an ordinary object owned by the application; nothing in
valstore keeps process-wide state.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from valstore.errors import ConfigurationError
from valstore.store import Store

logger = logging.getLogger("valstore.registry")


class StoreRegistry:
    """Name -> Store mapping."""

    def __init__(self) -> None:
        self._stores: dict[str, Store] = {}

    def create(self, name: str, initial: Any) -> Store:
        """Build a Store from initial and register it under name."""
        store = Store(initial)
        self.register(name, store)
        return store

    def register(self, name: str, store: Store) -> None:
        if name in self._stores:
            logger.info("Replacing store %r", name)
        else:
            logger.info("Registered store %r", name)
        self._stores[name] = store

    def get(self, name: str) -> Store:
        store = self._stores.get(name)
        if store is None:
            raise ConfigurationError(
                f'Store with name "{name}" not found! Use create("{name}", {{...}}) first.'
            )
        return store

    def remove(self, name: str) -> Store | None:
        store = self._stores.pop(name, None)
        if store is not None:
            logger.info("Removed store %r", name)
        return store

    def names(self) -> list[str]:
        return list(self._stores)

    def __contains__(self, name: object) -> bool:
        return name in self._stores

    def __len__(self) -> int:
        return len(self._stores)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._stores))
