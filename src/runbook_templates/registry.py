"""Generic registry for managing named items.

The filter registry is built on this class. A registry can be frozen once
populated, after which registration raises; lookups stay available and are
safe to perform from multiple threads.

Example:
    ```python
    from runbook_templates.registry import Registry

    registry = Registry[str]("names")
    registry.register("key1", "value1")
    registry.get("key1")
    # 'value1'
    registry.freeze()
    ```
"""

import threading
from typing import Dict, Generic, Iterator, List, TypeVar

from runbook_templates.exceptions import RegistryError

T = TypeVar("T")


class Registry(Generic[T]):
    """Thread-safe registry of items keyed by unique name.

    Attributes:
        name: Name of the registry (for error messages)
    """

    def __init__(self, name: str):
        """Initialize the registry.

        Args:
            name: Registry name for identification
        """
        self._name = name
        self._items: Dict[str, T] = {}
        self._lock = threading.RLock()
        self._frozen = False

    @property
    def name(self) -> str:
        """Get registry name."""
        return self._name

    @property
    def frozen(self) -> bool:
        """Whether registration is closed."""
        return self._frozen

    def register(self, key: str, item: T, allow_overwrite: bool = False) -> None:
        """Register an item by key.

        Args:
            key: Unique identifier for the item
            item: Item to register
            allow_overwrite: Whether to allow overwriting existing items

        Raises:
            RegistryError: If the registry is frozen, or the key already
                exists and allow_overwrite is False
        """
        with self._lock:
            if self._frozen:
                raise RegistryError(
                    f"Registry {self._name} is frozen",
                    context={"key": key, "registry": self._name},
                )
            if not allow_overwrite and key in self._items:
                raise RegistryError(
                    f"Item '{key}' already registered in {self._name}",
                    context={"key": key, "registry": self._name},
                )
            self._items[key] = item

    def freeze(self) -> None:
        """Close the registry to further registration."""
        with self._lock:
            self._frozen = True

    def get(self, key: str) -> T:
        """Get an item by key.

        Raises:
            RegistryError: If item not found
        """
        with self._lock:
            if key not in self._items:
                raise RegistryError(
                    f"Item not found: {key}",
                    context={
                        "key": key,
                        "registry": self._name,
                        "available_keys": list(self._items.keys()),
                    },
                )
            return self._items[key]

    def get_optional(self, key: str) -> T | None:
        """Get an item by key, returning None if not found."""
        with self._lock:
            return self._items.get(key)

    def has(self, key: str) -> bool:
        """Check if item exists."""
        with self._lock:
            return key in self._items

    def list_keys(self) -> List[str]:
        """List all registered keys in registration order."""
        with self._lock:
            return list(self._items.keys())

    def list_items(self) -> List[T]:
        """List all registered items in registration order."""
        with self._lock:
            return list(self._items.values())

    def count(self) -> int:
        """Get count of registered items."""
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_keys())

    def __len__(self) -> int:
        return self.count()
